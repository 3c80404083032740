"""
Mail dispatch for application notifications.

``MailClient`` is the boundary to the outbound mail provider. Two providers
are available: the Resend HTTP API and plain SMTP. Both do blocking I/O, which
is moved off the event loop with ``asyncio.to_thread``.
"""

import asyncio
import base64
import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import make_msgid
from pathlib import Path
from typing import List, Optional

import requests

from applymail.core.config import Settings
from applymail.core.errors import DispatchError, UnexpectedError
from applymail.schemas.application import (
    Attachment,
    FileRole,
    MailError,
    NotificationEmail,
    SendResult,
    UploadedFile,
)

logger = logging.getLogger(__name__)


class MailClient(ABC):
    """Sends one notification email and reports the outcome"""

    name = "mail"

    @abstractmethod
    async def send(self, email: NotificationEmail) -> SendResult:
        """Send the email. Provider failures come back as ``SendResult.error``."""

    def verify(self) -> bool:
        """Check the provider can be reached. Logged at startup, never fatal."""
        return True

    def close(self) -> None:
        pass


class ResendMailClient(MailClient):
    """Mail client for the Resend HTTP API"""

    name = "resend"

    def __init__(self, api_key: str, api_url: str = "https://api.resend.com/emails", timeout: float = 30.0):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self.session = requests.Session()

    def _payload(self, email: NotificationEmail) -> dict:
        attachments = []
        for attachment in email.attachments:
            item = {
                "filename": attachment.filename,
                "content": base64.b64encode(attachment.content).decode("ascii"),
            }
            if attachment.content_id:
                item["content_id"] = attachment.content_id
            attachments.append(item)

        return {
            "from": email.sender,
            "to": [email.recipient],
            "subject": email.subject,
            "html": email.html,
            "attachments": attachments,
        }

    def _send_sync(self, email: NotificationEmail) -> SendResult:
        response = self.session.post(
            self.api_url,
            json=self._payload(email),
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
        )

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            return SendResult(error=MailError(
                name=data.get("name", "http_error"),
                message=data.get("message", response.text or response.reason or "Unknown error"),
                status_code=response.status_code,
            ))
        return SendResult(id=data.get("id"))

    async def send(self, email: NotificationEmail) -> SendResult:
        return await asyncio.to_thread(self._send_sync, email)

    def verify(self) -> bool:
        if not self.api_key:
            logger.error("❌ RESEND_API_KEY is not set, emails will fail")
            return False
        logger.info("✅ Resend client ready")
        return True

    def close(self) -> None:
        self.session.close()


class SmtpMailClient(MailClient):
    """Mail client for an SMTP server with STARTTLS"""

    name = "smtp"

    def __init__(self, host: str, port: int, username: str, password: str, timeout: float = 30.0):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout

    def build_message(self, email: NotificationEmail) -> EmailMessage:
        message = EmailMessage()
        message["From"] = email.sender
        message["To"] = email.recipient
        message["Subject"] = email.subject
        message.set_content("Nouvelle candidature reçue. Ouvrez ce message dans un client HTML.")
        message.add_alternative(email.html, subtype="html")

        html_part = message.get_payload()[1]
        for attachment in email.attachments:
            maintype, subtype = _guess_type(attachment.filename)
            if attachment.content_id:
                # Inline parts go next to the HTML body so cid: references resolve
                html_part.add_related(
                    attachment.content,
                    maintype=maintype,
                    subtype=subtype,
                    cid=f"<{attachment.content_id}>",
                    filename=attachment.filename,
                )
            else:
                message.add_attachment(
                    attachment.content,
                    maintype=maintype,
                    subtype=subtype,
                    filename=attachment.filename,
                )
        message["Message-ID"] = make_msgid()
        return message

    def _connect(self) -> smtplib.SMTP:
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            server.starttls(context=ssl.create_default_context())
            if self.username:
                server.login(self.username, self.password)
        except Exception:
            server.close()
            raise
        return server

    def _send_sync(self, email: NotificationEmail) -> SendResult:
        message = self.build_message(email)
        try:
            with self._connect() as server:
                server.send_message(message)
        except smtplib.SMTPException as e:
            return SendResult(error=MailError(name=type(e).__name__, message=str(e)))
        return SendResult(id=message["Message-ID"])

    async def send(self, email: NotificationEmail) -> SendResult:
        return await asyncio.to_thread(self._send_sync, email)

    def verify(self) -> bool:
        try:
            with self._connect() as server:
                server.noop()
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ Erreur SMTP: {e}")
            return False
        logger.info("✅ SMTP prêt — emails activés")
        return True


def _guess_type(filename: str):
    suffix = Path(filename).suffix.lower()
    if suffix == ".pdf":
        return "application", "pdf"
    if suffix in (".jpg", ".jpeg"):
        return "image", "jpeg"
    if suffix in (".png", ".gif", ".webp", ".bmp"):
        return "image", suffix[1:]
    return "application", "octet-stream"


def build_mail_client(settings: Settings) -> MailClient:
    """Create the mail client selected by MAIL_PROVIDER"""
    if settings.MAIL_PROVIDER == "smtp":
        return SmtpMailClient(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            timeout=settings.MAIL_TIMEOUT,
        )
    return ResendMailClient(
        api_key=settings.RESEND_API_KEY,
        api_url=settings.RESEND_API_URL,
        timeout=settings.MAIL_TIMEOUT,
    )


def attachment_filename(uploaded: UploadedFile, first_name: str, last_name: str, index: int = 1) -> str:
    """Descriptive filename for an attachment, e.g. ``cv_Jean_Dupont.pdf``"""
    if uploaded.role == FileRole.PHOTO:
        return f"photo_{first_name}_{last_name}{Path(uploaded.original_filename).suffix}"
    if uploaded.role == FileRole.CV:
        return f"cv_{first_name}_{last_name}.pdf"
    return f"certificat_{index}_{first_name}_{last_name}.pdf"


async def build_attachments(
    files: List[UploadedFile],
    first_name: str,
    last_name: str,
    photo_content_id: Optional[str] = None,
) -> List[Attachment]:
    """
    Read stored files back into attachment descriptors.

    Order is photo, CV, then certificates in the order they were received.

    Raises:
        UnexpectedError: a stored file could not be read
    """
    order = {FileRole.PHOTO: 0, FileRole.CV: 1, FileRole.CERTIFICATE: 2}
    attachments = []
    certificate_index = 0

    for uploaded in sorted(files, key=lambda f: order[f.role]):
        if uploaded.role == FileRole.CERTIFICATE:
            certificate_index += 1
        try:
            content = await asyncio.to_thread(Path(uploaded.path).read_bytes)
        except OSError as e:
            raise UnexpectedError(detail=f"could not read {uploaded.path}: {e}") from e

        attachments.append(Attachment(
            filename=attachment_filename(uploaded, first_name, last_name, certificate_index),
            content=content,
            content_id=photo_content_id if uploaded.role == FileRole.PHOTO else None,
        ))
    return attachments


async def dispatch_notification(client: MailClient, email: NotificationEmail) -> SendResult:
    """
    Hand the email to the mail client. Not retried.

    Raises:
        DispatchError: the client returned an error or raised
    """
    if not email.recipient:
        raise DispatchError(detail="MAIL_TO is not configured")

    try:
        result = await client.send(email)
    except Exception as e:
        logger.error(f"❌ Erreur {client.name}: {e}")
        raise DispatchError(detail=str(e)) from e

    if result.error:
        logger.error(f"❌ Erreur {client.name}: {result.error.name}: {result.error.message}")
        raise DispatchError(detail=result.error.message)

    logger.info(f"✅ Email envoyé avec succès via {client.name} à {email.recipient}")
    return result
