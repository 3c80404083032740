"""
Unit tests for the file receiver.
"""

import asyncio
import io
from datetime import datetime, timezone
from pathlib import Path

import pytest
from starlette.datastructures import FormData, Headers, UploadFile

from applymail.core.errors import ValidationError
from applymail.schemas.application import FileRole
from applymail.services.uploads import FileReceiver, generate_storage_path

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def make_upload(filename, content, content_type):
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def make_receiver(upload_dir, **kwargs):
    upload_dir.mkdir(parents=True, exist_ok=True)
    tokens = iter(f"{i:08x}ffff" for i in range(100))
    return FileReceiver(upload_dir, clock=lambda: NOW, token_factory=lambda: next(tokens), **kwargs)


def receive(receiver, items, stored=None):
    stored = [] if stored is None else stored
    asyncio.run(receiver.receive(FormData(items), stored))
    return stored


class TestGenerateStoragePath:

    def test_timestamp_token_and_extension(self, tmp_path):
        path = generate_storage_path("mon cv.PDF", tmp_path, NOW, "1a2b3c4d5e6f")
        assert path == tmp_path / f"{int(NOW.timestamp() * 1000)}-1a2b3c4d.PDF"

    def test_name_without_extension(self, tmp_path):
        path = generate_storage_path("photo", tmp_path, NOW, "abcdef0123")
        assert path.name.endswith("-abcdef01")

    def test_directories_in_client_name_are_dropped(self, tmp_path):
        path = generate_storage_path("../../etc/passwd.jpg", tmp_path, NOW, "abcdef0123")
        assert path.parent == tmp_path
        assert path.suffix == ".jpg"

    def test_deterministic(self, tmp_path):
        first = generate_storage_path("a.pdf", tmp_path, NOW, "00000000")
        second = generate_storage_path("a.pdf", tmp_path, NOW, "00000000")
        assert first == second


class TestFileReceiver:

    def test_accepts_all_roles(self, tmp_path, jpeg_bytes, pdf_bytes):
        receiver = make_receiver(tmp_path)
        stored = receive(receiver, [
            ("nom", "Dupont"),
            ("photo", make_upload("me.png", jpeg_bytes, "image/png")),
            ("cv", make_upload("cv.pdf", pdf_bytes, "application/pdf")),
            ("certificats", make_upload("c1.pdf", pdf_bytes, "application/pdf")),
            ("certificats", make_upload("c2.pdf", pdf_bytes, "application/pdf")),
        ])

        assert [f.role for f in stored] == [FileRole.PHOTO, FileRole.CV, FileRole.CERTIFICATE, FileRole.CERTIFICATE]
        assert stored[0].path.read_bytes() == jpeg_bytes
        assert stored[0].size == len(jpeg_bytes)
        assert stored[1].original_filename == "cv.pdf"
        assert stored[1].content_type == "application/pdf"
        assert len({f.path for f in stored}) == 4
        assert all(f.path.parent == tmp_path for f in stored)

    def test_photo_with_text_type_is_rejected(self, tmp_path):
        receiver = make_receiver(tmp_path)
        stored = []
        with pytest.raises(ValidationError) as exc_info:
            receive(receiver, [("photo", make_upload("a.txt", b"hi", "text/plain"))], stored)

        assert exc_info.value.message == "La photo doit être une image"
        assert stored == []
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.parametrize("field", ["cv", "certificats"])
    def test_documents_must_be_pdf(self, tmp_path, field, jpeg_bytes):
        receiver = make_receiver(tmp_path)
        with pytest.raises(ValidationError):
            receive(receiver, [(field, make_upload("doc.jpg", jpeg_bytes, "image/jpeg"))])
        assert list(tmp_path.iterdir()) == []

    def test_five_certificates_accepted(self, tmp_path, pdf_bytes):
        receiver = make_receiver(tmp_path)
        items = [("certificats", make_upload(f"c{i}.pdf", pdf_bytes, "application/pdf")) for i in range(5)]
        assert len(receive(receiver, items)) == 5

    def test_sixth_certificate_rejected(self, tmp_path, pdf_bytes):
        receiver = make_receiver(tmp_path)
        items = [("certificats", make_upload(f"c{i}.pdf", pdf_bytes, "application/pdf")) for i in range(6)]
        stored = []
        with pytest.raises(ValidationError):
            receive(receiver, items, stored)

        # The first five were written and are left for the caller to clean up
        assert len(stored) == 5

    def test_second_cv_rejected(self, tmp_path, pdf_bytes):
        receiver = make_receiver(tmp_path)
        items = [("cv", make_upload(f"cv{i}.pdf", pdf_bytes, "application/pdf")) for i in range(2)]
        with pytest.raises(ValidationError):
            receive(receiver, items)

    def test_certificate_ceiling_is_configurable(self, tmp_path, pdf_bytes):
        receiver = make_receiver(tmp_path, max_certificates=2)
        items = [("certificats", make_upload(f"c{i}.pdf", pdf_bytes, "application/pdf")) for i in range(3)]
        with pytest.raises(ValidationError):
            receive(receiver, items)

    def test_oversized_file_removed(self, tmp_path):
        receiver = make_receiver(tmp_path, max_file_size=10)
        stored = []
        with pytest.raises(ValidationError) as exc_info:
            receive(receiver, [("cv", make_upload("cv.pdf", b"x" * 11, "application/pdf"))], stored)

        assert exc_info.value.message == "Fichier trop volumineux"
        assert len(stored) == 1
        assert not stored[0].path.exists()

    def test_disk_writes_run_in_worker_threads(self, tmp_path, monkeypatch, pdf_bytes):
        calls = []
        real_to_thread = asyncio.to_thread

        async def recording_to_thread(func, *args, **kwargs):
            calls.append(func.__name__)
            return await real_to_thread(func, *args, **kwargs)

        monkeypatch.setattr("applymail.services.uploads.asyncio.to_thread", recording_to_thread)
        receiver = make_receiver(tmp_path)
        stored = receive(receiver, [("cv", make_upload("cv.pdf", pdf_bytes, "application/pdf"))])

        assert calls == ["open", "write", "close"]
        assert stored[0].path.read_bytes() == pdf_bytes

    def test_oversized_file_removed_in_worker_thread(self, tmp_path, monkeypatch):
        calls = []
        real_to_thread = asyncio.to_thread

        async def recording_to_thread(func, *args, **kwargs):
            calls.append(func.__name__)
            return await real_to_thread(func, *args, **kwargs)

        monkeypatch.setattr("applymail.services.uploads.asyncio.to_thread", recording_to_thread)
        receiver = make_receiver(tmp_path, max_file_size=10)
        with pytest.raises(ValidationError):
            receive(receiver, [("cv", make_upload("cv.pdf", b"x" * 11, "application/pdf"))])

        assert calls == ["open", "close", "remove"]

    def test_file_at_ceiling_accepted(self, tmp_path):
        receiver = make_receiver(tmp_path, max_file_size=10)
        stored = receive(receiver, [("cv", make_upload("cv.pdf", b"x" * 10, "application/pdf"))])
        assert stored[0].size == 10

    def test_unexpected_field_rejected(self, tmp_path, pdf_bytes):
        receiver = make_receiver(tmp_path)
        with pytest.raises(ValidationError):
            receive(receiver, [("lettre", make_upload("l.pdf", pdf_bytes, "application/pdf"))])

    def test_empty_file_input_ignored(self, tmp_path):
        receiver = make_receiver(tmp_path)
        stored = receive(receiver, [("photo", make_upload("", b"", "application/octet-stream"))])
        assert stored == []
