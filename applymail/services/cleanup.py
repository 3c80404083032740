"""
Cleanup of temporary upload files.
"""

import os
import time
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from applymail.core.errors import CleanupFailure
from applymail.schemas.application import UploadedFile

logger = logging.getLogger(__name__)


def cleanup_file(path: Path) -> bool:
    """
    Remove one temporary file.

    Returns:
        True if the file was removed, False if it was already gone

    Raises:
        CleanupFailure: when the file exists but could not be removed
    """
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        raise CleanupFailure(path, e) from e


def cleanup_files(files: Iterable[UploadedFile]) -> List[CleanupFailure]:
    """
    Best-effort removal of every stored file of a request.

    Safe to call more than once. A failure on one file is logged and the
    remaining files are still attempted.

    Returns:
        The failures that occurred, empty when everything was removed
    """
    failures = []
    removed = 0
    for uploaded in files:
        try:
            if cleanup_file(uploaded.path):
                removed += 1
        except CleanupFailure as failure:
            logger.warning(f"⚠️ Erreur nettoyage: {failure.path} ({failure.reason})")
            failures.append(failure)

    if removed:
        logger.info(f"🧹 Removed {removed} temporary file(s)")
    return failures


def sweep_upload_dir(upload_dir: Path, older_than: float = 0, now: Optional[float] = None) -> int:
    """
    Remove files left behind in the upload directory by failed cleanups.

    Args:
        upload_dir: Directory to sweep
        older_than: Minimum age in seconds, based on modification time
        now: Current epoch time, defaults to ``time.time()``

    Returns:
        How many files were removed
    """
    upload_dir = Path(upload_dir)
    if not upload_dir.is_dir():
        return 0

    now = time.time() if now is None else now
    removed = 0
    for entry in upload_dir.iterdir():
        try:
            if not entry.is_file() or now - entry.stat().st_mtime < older_than:
                continue
            if cleanup_file(entry):
                removed += 1
        except FileNotFoundError:
            continue
        except CleanupFailure as failure:
            logger.warning(f"⚠️ Could not sweep {failure.path}: {failure.reason}")
    if removed:
        logger.info(f"🧹 Swept {removed} leftover file(s) from {upload_dir}")
    return removed
