"""
Submission pipeline: receive files, validate fields, compose, dispatch, clean up.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional

from pydantic import BaseModel

from applymail.core.config import Settings
from applymail.core.errors import ApplicationError, UnexpectedError
from applymail.schemas.application import (
    ApplicationSubmission,
    FileRole,
    NotificationEmail,
    SendResult,
    UploadedFile,
)
from applymail.services.cleanup import cleanup_files
from applymail.services.composer import build_subject, render_notification
from applymail.services.mailer import MailClient, build_attachments, dispatch_notification
from applymail.services.uploads import FileReceiver
from applymail.services.validation import validate_submission

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Candidature envoyée !"


class ApplicationOutcome(BaseModel):
    """Result of one pipeline run, translated to HTTP at the route"""
    success: bool
    message: str
    error: Optional[ApplicationError] = None
    files: List[UploadedFile] = []
    send_result: Optional[SendResult] = None

    class Config:
        arbitrary_types_allowed = True

    @classmethod
    def failed(cls, error: ApplicationError, files: List[UploadedFile]) -> "ApplicationOutcome":
        return cls(success=False, message=error.message, error=error, files=files)


class ApplicationPipeline:
    """Runs one application submission end to end"""

    def __init__(
        self,
        settings: Settings,
        mail_client: MailClient,
        receiver: FileReceiver,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.settings = settings
        self.mail_client = mail_client
        self.receiver = receiver
        self.clock = clock

    async def submit(self, form: Mapping[str, Any], stored: Optional[List[UploadedFile]] = None) -> ApplicationOutcome:
        """
        Process a parsed multipart form.

        Files are recorded in ``stored`` as soon as they are written and are
        removed before this method returns, whatever the outcome.
        """
        stored = stored if stored is not None else []
        try:
            await self.receiver.receive(form, stored)
            submission = validate_submission(ApplicationSubmission.from_form(form))
            result = await self._send(submission, stored)
            outcome = ApplicationOutcome(success=True, message=SUCCESS_MESSAGE, files=list(stored), send_result=result)
        except ApplicationError as e:
            logger.warning(f"❌ Candidature refusée: {e}")
            outcome = ApplicationOutcome.failed(e, list(stored))
        except Exception as e:
            logger.exception(f"❌ Erreur: {e}")
            outcome = ApplicationOutcome.failed(UnexpectedError(detail=str(e)), list(stored))
        finally:
            cleanup_files(stored)
        return outcome

    async def _send(self, submission: ApplicationSubmission, stored: List[UploadedFile]) -> SendResult:
        has_photo = any(f.role == FileRole.PHOTO for f in stored)
        html, content_id = render_notification(submission, has_photo, self.clock())
        attachments = await build_attachments(
            stored,
            submission.first_name,
            submission.last_name,
            photo_content_id=content_id,
        )

        email = NotificationEmail(
            sender=self.settings.MAIL_FROM,
            recipient=self.settings.MAIL_TO,
            subject=build_subject(submission, self.settings.MAIL_SUBJECT_PREFIX),
            html=html,
            attachments=attachments,
        )
        logger.info(f"✉️ Sending application of {submission.full_name} with {len(attachments)} attachment(s)")
        return await dispatch_notification(self.mail_client, email)
