from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from ...core.config import Settings
from ...core.errors import ValidationError, status_code_for
from ...schemas.application import ApplicationResponse
from ...services.pipeline import ApplicationOutcome, ApplicationPipeline
from ..dependencies import get_pipeline, get_settings
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


def outcome_response(outcome: ApplicationOutcome) -> JSONResponse:
    """Translate a pipeline outcome into the response envelope"""
    body = ApplicationResponse(success=outcome.success, message=outcome.message)
    status_code = 200 if outcome.success else status_code_for(outcome.error)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def check_content_length(request: Request, max_size: int) -> None:
    """Reject a body that announces more bytes than any valid submission can hold"""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_size:
        raise ValidationError("Fichier trop volumineux", detail=f"content-length {declared} > {max_size} bytes")


@router.post(
    "/send-application",
    response_model=ApplicationResponse,
    responses={400: {"model": ApplicationResponse}, 500: {"model": ApplicationResponse}},
)
async def send_application(
    request: Request,
    pipeline: ApplicationPipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_settings)
):
    """
    Receive a job application form and forward it by email.

    Multipart fields: nom, prenom, nationalite, situation_matrimoniale, age,
    telephone, metier; files: photo (0-1), cv (0-1), certificats (0-5).
    """
    logger.info("📩 Nouvelle candidature reçue")

    # Shared with the error handlers so they can clean up after a parse failure
    stored = []
    request.state.uploaded_files = stored

    # Starlette spools every part before the receiver sees it
    check_content_length(request, settings.max_request_size)

    async with request.form() as form:
        outcome = await pipeline.submit(form, stored)

    if outcome.success:
        logger.info(f"✅ Candidature traitée ({len(outcome.files)} fichier(s))")
    return outcome_response(outcome)
