"""
File receiver for application submissions.

Checks every file part of the multipart form against the rules of its field
and writes the accepted ones to the temporary upload directory.
"""

import asyncio
import os
import uuid
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from starlette.datastructures import UploadFile

from applymail.core.errors import ValidationError
from applymail.schemas.application import FILE_FIELDS, FileRole, UploadedFile

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
CHUNK_SIZE = 1024 * 1024


def generate_storage_path(original_name: str, upload_dir: Path, now: datetime, token: str) -> Path:
    """
    Build a collision-resistant path for a received file.

    Args:
        original_name: Filename as sent by the client, only its extension is kept
        upload_dir: Directory the file will live in
        now: Current time, used as a millisecond timestamp prefix
        token: Random hex string, its first 8 characters are used

    Returns:
        Path like ``<upload_dir>/1718000000000-1a2b3c4d.pdf``
    """
    extension = Path(os.path.basename(original_name or "")).suffix
    millis = int(now.timestamp() * 1000)
    return Path(upload_dir) / f"{millis}-{token[:8]}{extension}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _random_token() -> str:
    return uuid.uuid4().hex


def check_file_type(field_name: str, content_type: Optional[str]) -> None:
    """Reject a part whose MIME type does not match its field"""
    content_type = (content_type or "").lower()
    role = FILE_FIELDS[field_name]
    if role == FileRole.PHOTO and not content_type.startswith("image/"):
        raise ValidationError("La photo doit être une image", detail=f"{field_name}: {content_type}")
    if role in (FileRole.CV, FileRole.CERTIFICATE) and content_type != PDF_MIME_TYPE:
        raise ValidationError("Les documents doivent être en PDF", detail=f"{field_name}: {content_type}")


class FileReceiver:
    """Stores the file parts of a submission in the upload directory"""

    def __init__(
        self,
        upload_dir: Path,
        max_file_size: int = 25 * 1024 * 1024,
        max_certificates: int = 5,
        clock: Callable[[], datetime] = _utc_now,
        token_factory: Callable[[], str] = _random_token,
    ):
        self.upload_dir = Path(upload_dir)
        self.max_file_size = max_file_size
        self.clock = clock
        self.token_factory = token_factory
        self.max_counts: Dict[FileRole, int] = {
            FileRole.PHOTO: 1,
            FileRole.CV: 1,
            FileRole.CERTIFICATE: max_certificates,
        }

    async def receive(self, form: Mapping[str, Any], stored: List[UploadedFile]) -> List[UploadedFile]:
        """
        Validate and store every file part of the form.

        Each file is appended to ``stored`` before its bytes are written, so the
        caller can remove everything this method touched even when it raises.

        Raises:
            ValidationError: a part has an unexpected field name, the wrong MIME
                type, exceeds the size ceiling or its field's count ceiling
        """
        counts = {role: 0 for role in self.max_counts}

        for field_name, value in form.multi_items():
            if not isinstance(value, UploadFile):
                continue

            if field_name not in FILE_FIELDS:
                raise ValidationError("Champ de fichier inattendu", detail=field_name)

            # Unused file inputs arrive as an empty part without a filename
            if not value.filename:
                continue

            role = FILE_FIELDS[field_name]
            counts[role] += 1
            if counts[role] > self.max_counts[role]:
                raise ValidationError(
                    f"Trop de fichiers pour le champ {field_name}",
                    detail=f"max {self.max_counts[role]}"
                )

            check_file_type(field_name, value.content_type)
            await self._store(role, value, stored)

        return stored

    async def _store(self, role: FileRole, upload: UploadFile, stored: List[UploadedFile]) -> UploadedFile:
        path = generate_storage_path(upload.filename, self.upload_dir, self.clock(), self.token_factory())
        uploaded = UploadedFile(
            role=role,
            original_filename=upload.filename,
            path=path,
            content_type=upload.content_type or "",
        )
        stored.append(uploaded)

        # Disk I/O runs in a worker thread to keep the event loop free
        size = 0
        target = await asyncio.to_thread(open, path, "wb")
        try:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > self.max_file_size:
                    break
                await asyncio.to_thread(target.write, chunk)
        finally:
            await asyncio.to_thread(target.close)

        if size > self.max_file_size:
            await asyncio.to_thread(os.remove, path)
            logger.warning(f"⚠️ Rejected oversized {role.value} file: {upload.filename}")
            raise ValidationError("Fichier trop volumineux", detail=f"{upload.filename} > {self.max_file_size} bytes")

        uploaded.size = size
        logger.info(f"📎 Stored {role.value} file {upload.filename} ({size} bytes) at {path.name}")
        return uploaded
