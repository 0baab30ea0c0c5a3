"""
DevCamper Backend — Photo Storage Unit Tests
==============================================

What:  Tests for FileService validation (presence, declared type, size,
       sniffed type), naming and storage.
Why:   Photo upload is the only place client bytes reach the disk.
How:   Each test gets its own upload directory under tmp_path. libmagic is
       patched out (`_detect_mime`) so the tests don't depend on it.

Test Strategy:
    ✅ Missing file, non-image declared type, oversized file → 400
    ✅ Content that sniffs as non-image → 400
    ✅ libmagic failure → 500
    ✅ Stored name is photo_<bootcamp id><ext>; second upload overwrites
    ✅ resolve() never escapes the upload directory
"""

import uuid
from unittest.mock import patch

import pytest

from app.exceptions import FileStorageError, ValidationError
from app.services.file_service import FileService


class TestFileValidation:
    """Tests for the validation steps in FileService."""

    @pytest.fixture(autouse=True)
    def _service(self, tmp_path):
        self.service = FileService(upload_path=str(tmp_path / "uploads"), max_size=1000)

    # ── Presence ──────────────────────────────────────────────────────────

    def test_missing_file_rejected(self):
        """No file part at all."""
        with pytest.raises(ValidationError, match="Please upload a file"):
            self.service.validate_present(None, None)

    def test_empty_file_rejected(self):
        """An empty body counts as no file."""
        with pytest.raises(ValidationError, match="Please upload a file"):
            self.service.validate_present("photo.jpg", b"")

    # ── Declared Type ─────────────────────────────────────────────────────

    def test_image_type_accepted(self):
        self.service.validate_declared_type("image/png")

    @pytest.mark.parametrize("content_type", [None, "", "application/pdf", "text/plain"])
    def test_non_image_type_rejected(self, content_type):
        with pytest.raises(ValidationError, match="Please upload an image file"):
            self.service.validate_declared_type(content_type)

    # ── Size ──────────────────────────────────────────────────────────────

    def test_size_at_limit_passes(self):
        """Files exactly at the limit should pass."""
        self.service.validate_size(1000)

    def test_size_over_limit_rejected(self):
        with pytest.raises(ValidationError, match="Please upload an image less than 1000"):
            self.service.validate_size(1001)

    # ── Sniffed Type ──────────────────────────────────────────────────────

    def test_sniffed_image_passes(self, sample_image_bytes):
        with patch.object(self.service, "_detect_mime", return_value="image/jpeg"):
            assert self.service.validate_content_type(sample_image_bytes) == "image/jpeg"

    def test_renamed_non_image_rejected(self):
        """A PDF sent as image/jpeg is still a PDF."""
        with patch.object(self.service, "_detect_mime", return_value="application/pdf"):
            with pytest.raises(ValidationError, match="Please upload an image file"):
                self.service.validate_content_type(b"%PDF-1.4")

    def test_detection_failure_is_storage_error(self):
        with patch.object(self.service, "_detect_mime", side_effect=RuntimeError("no libmagic")):
            with pytest.raises(FileStorageError, match="Could not verify file type"):
                self.service.validate_content_type(b"\x00\x01")


class TestPhotoStorage:
    """Naming, writing and serving stored photos."""

    @pytest.fixture(autouse=True)
    def _service(self, tmp_path):
        self.root = tmp_path / "uploads"
        self.service = FileService(upload_path=str(self.root), max_size=1000)

    # ── Naming ────────────────────────────────────────────────────────────

    def test_photo_name_keeps_extension(self):
        bootcamp_id = uuid.uuid4()
        assert self.service.photo_name(bootcamp_id, "Me At Camp.JPG") == f"photo_{bootcamp_id}.jpg"

    def test_photo_name_ignores_path_components(self):
        bootcamp_id = uuid.uuid4()
        assert self.service.photo_name(bootcamp_id, "../../etc/passwd.png") == f"photo_{bootcamp_id}.png"

    def test_photo_name_without_extension(self):
        bootcamp_id = uuid.uuid4()
        assert self.service.photo_name(bootcamp_id, "photo") == f"photo_{bootcamp_id}"

    # ── Pipeline ──────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_save_photo_writes_file(self, sample_image_bytes):
        bootcamp_id = uuid.uuid4()
        with patch.object(self.service, "_detect_mime", return_value="image/jpeg"):
            name = await self.service.save_photo(
                bootcamp_id, "camp.jpg", "image/jpeg", sample_image_bytes
            )

        assert name == f"photo_{bootcamp_id}.jpg"
        assert (self.root / name).read_bytes() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_second_upload_overwrites(self, sample_image_bytes):
        bootcamp_id = uuid.uuid4()
        with patch.object(self.service, "_detect_mime", return_value="image/jpeg"):
            await self.service.save_photo(bootcamp_id, "a.jpg", "image/jpeg", b"first")
            name = await self.service.save_photo(
                bootcamp_id, "b.jpg", "image/jpeg", sample_image_bytes
            )

        assert list(self.root.iterdir()) == [self.root / name]
        assert (self.root / name).read_bytes() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_oversized_photo_never_written(self):
        with pytest.raises(ValidationError):
            await self.service.save_photo(uuid.uuid4(), "big.jpg", "image/jpeg", b"x" * 1001)
        assert not self.root.exists()

    @pytest.mark.asyncio
    async def test_unwritable_directory(self, tmp_path):
        """A file where the directory should be makes mkdir fail."""
        blocker = tmp_path / "blocked"
        blocker.write_bytes(b"")
        service = FileService(upload_path=str(blocker / "uploads"))

        with pytest.raises(FileStorageError):
            await service.store("photo_x.jpg", b"data")

    # ── Serving ───────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_resolve_stored_file(self):
        path = await self.service.store("photo_1.jpg", b"data")
        assert self.service.resolve("photo_1.jpg") == path

    def test_resolve_missing_file(self):
        assert self.service.resolve("photo_nope.jpg") is None

    def test_resolve_rejects_traversal(self, tmp_path):
        (tmp_path / "secret.txt").write_text("x")
        assert self.service.resolve("../secret.txt") is None
