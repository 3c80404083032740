from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from fastapi import Depends, Request
import logging

from ..core.config import Settings
from ..services.mailer import MailClient
from ..services.pipeline import ApplicationPipeline
from ..services.uploads import FileReceiver

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    """Settings the application was created with"""
    return request.app.state.settings


def get_mail_client(request: Request) -> MailClient:
    """Mail client built at startup"""
    return request.app.state.mail_client


def get_clock(settings: Settings = Depends(get_settings)) -> Callable[[], datetime]:
    """Clock used for the receipt timestamp, in the configured timezone"""
    try:
        tz = ZoneInfo(settings.TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {settings.TIMEZONE}, falling back to UTC")
        tz = ZoneInfo("UTC")
    return lambda: datetime.now(tz)


def get_pipeline(
    settings: Settings = Depends(get_settings),
    mail_client: MailClient = Depends(get_mail_client),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ApplicationPipeline:
    receiver = FileReceiver(
        upload_dir=settings.upload_path,
        max_file_size=settings.MAX_FILE_SIZE,
        max_certificates=settings.MAX_CERTIFICATES,
    )
    return ApplicationPipeline(settings, mail_client, receiver, clock=clock)


# Re-export for convenience
__all__ = ['get_settings', 'get_mail_client', 'get_clock', 'get_pipeline']
