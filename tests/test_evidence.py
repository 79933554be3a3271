"""
Test Evidence

Size policy, naming and the upload pipeline.
"""

import base64
import re
import pytest
from io import BytesIO
from unittest.mock import MagicMock, patch

from PIL import Image, features

from trinetra.core.exceptions import MissingEvidenceError, UnsupportedMediaError, UploadFailedError, ValidationFailed
from trinetra.models.evidence import EvidenceKind
from trinetra.services.evidence import EvidenceStore, generate_object_name, normalize_image, validate_mime_type
from trinetra.services.evidence.service import decode_data_url


class TestImagePolicy:

    def test_small_image_is_untouched(self, small_png):
        result = normalize_image(small_png, "image/png")

        assert result.data == small_png
        assert result.content_type == "image/png"
        assert result.extension == "png"
        assert result.compressed is False

    def test_threshold_is_inclusive(self, small_png):
        result = normalize_image(small_png, "image/png", max_bytes=len(small_png))
        assert result.data == small_png

    def test_large_image_is_recompressed(self, large_png):
        """Test images above 1 MiB shrink to the size policy."""
        assert len(large_png) > 1048576

        result = normalize_image(large_png, "image/png")

        assert result.compressed is True
        assert result.content_type == "image/webp"
        assert result.extension == "webp"
        assert result.size <= len(large_png)
        assert result.original_size == len(large_png)

        with Image.open(BytesIO(result.data)) as img:
            width, height = img.size
            assert img.format == "WEBP"
        assert max(width, height) <= 1080
        assert abs(width / height - 1600 / 1200) < 0.01

    def test_transparent_image_keeps_alpha(self):
        img = Image.new("LA", (400, 300), color=(120, 128))
        buffer = BytesIO()
        img.save(buffer, format="PNG")

        result = normalize_image(buffer.getvalue(), "image/png", max_bytes=10, max_dimension=200)

        with Image.open(BytesIO(result.data)) as out:
            assert out.mode == "RGBA"
            assert out.size == (200, 150)

    def test_exif_orientation_is_applied(self):
        """Test a phone photo tagged 'rotate 90' is stored upright."""
        exif = Image.Exif()
        exif[0x0112] = 6
        buffer = BytesIO()
        Image.new("RGB", (400, 200), color=(10, 120, 200)).save(buffer, format="JPEG", exif=exif)

        result = normalize_image(buffer.getvalue(), "image/jpeg", max_bytes=10, max_dimension=100)

        with Image.open(BytesIO(result.data)) as out:
            assert out.size == (50, 100)

    @pytest.mark.skipif(not features.check("avif"), reason="Pillow built without AVIF")
    def test_large_avif_is_recompressed(self, large_png):
        with Image.open(BytesIO(large_png)) as img:
            buffer = BytesIO()
            img.save(buffer, format="AVIF", quality=90)

        result = normalize_image(buffer.getvalue(), "image/avif", max_bytes=1024)

        assert result.compressed is True
        assert result.content_type == "image/webp"

    @pytest.mark.parametrize("content_type", ["application/pdf", "text/plain", "image/svg+xml", None, ""])
    def test_disallowed_types(self, content_type):
        with pytest.raises(UnsupportedMediaError):
            validate_mime_type(content_type)

    def test_mime_type_normalized(self):
        assert validate_mime_type("IMAGE/JPEG; charset=binary") == "image/jpeg"
        assert validate_mime_type("image/jpg") == "image/jpeg"

    def test_undecodable_large_image(self):
        with pytest.raises(ValidationFailed):
            normalize_image(b"\x00" * 2048, "image/jpeg", max_bytes=1024)

    def test_empty_image(self):
        with pytest.raises(ValidationFailed):
            normalize_image(b"", "image/png")


class TestNaming:

    def test_alert_photo_has_no_prefix(self):
        name = generate_object_name("webp", now_ms=1718000000000)
        assert re.fullmatch(r"1718000000000_[0-9a-z]{6}\.webp", name)

    def test_prefixes(self):
        assert generate_object_name("jpg", "sighting_").startswith("sighting_")
        assert generate_object_name(".PNG", "id_proof_").endswith(".png")

    def test_suffix_varies(self):
        names = {generate_object_name("jpg", now_ms=1) for _ in range(20)}
        assert len(names) > 1


class TestEvidenceStore:

    def test_upload_sets_cache_and_public_read(self):
        bucket = MagicMock()
        blob = bucket.blob.return_value
        blob.public_url = "https://storage.googleapis.com/b/photo.jpg"

        url = EvidenceStore(bucket).upload("photo.jpg", b"data", "image/jpeg")

        assert url == blob.public_url
        assert blob.cache_control == "public, max-age=3600"
        blob.upload_from_string.assert_called_once_with(b"data", content_type="image/jpeg", if_generation_match=0)
        blob.make_public.assert_called_once()

    def test_duplicate_key_rejected(self, bucket):
        store = EvidenceStore(bucket)
        store.upload("same.jpg", b"one", "image/jpeg")

        with pytest.raises(UploadFailedError):
            store.upload("same.jpg", b"two", "image/jpeg")

        assert bucket.objects["same.jpg"][0] == b"one"

    def test_storage_failure(self):
        bucket = MagicMock()
        bucket.blob.return_value.upload_from_string.side_effect = RuntimeError("quota")

        with pytest.raises(UploadFailedError):
            EvidenceStore(bucket).upload("x.jpg", b"data", "image/jpeg")


class TestEvidenceService:

    def test_upload_small_sighting_photo(self, evidence_service, bucket, small_png):
        response = evidence_service.ingest_upload(small_png, "image/png", EvidenceKind.SIGHTING_PHOTO)

        assert response.path.startswith("sighting_")
        assert response.path.endswith(".png")
        assert response.public_url == f"https://storage.googleapis.com/trinetra-test/{response.path}"
        assert response.compressed is False
        assert bucket.objects[response.path] == (small_png, "image/png")
        assert response.path in bucket.public

    def test_upload_large_alert_photo(self, evidence_service, bucket, large_png):
        response = evidence_service.ingest_upload(large_png, "image/png", EvidenceKind.ALERT_PHOTO)

        assert re.fullmatch(r"\d+_[0-9a-z]{6}\.webp", response.path)
        assert response.content_type == "image/webp"
        assert response.compressed is True
        assert response.size_bytes <= response.original_size_bytes

    def test_id_proof_prefix(self, evidence_service, small_png):
        response = evidence_service.ingest_upload(small_png, "image/png", EvidenceKind.ID_PROOF)
        assert response.path.startswith("id_proof_")

    def test_unsupported_type_uploads_nothing(self, evidence_service, bucket):
        with pytest.raises(UnsupportedMediaError):
            evidence_service.ingest_upload(b"%PDF-1.7", "application/pdf", EvidenceKind.SIGHTING_PHOTO)
        assert bucket.objects == {}

    def test_empty_file(self, evidence_service, bucket):
        with pytest.raises(MissingEvidenceError):
            evidence_service.ingest_upload(b"", "image/png", EvidenceKind.SIGHTING_PHOTO)
        assert bucket.objects == {}

    def test_browser_capture(self, evidence_service, bucket, small_png):
        data_url = "data:image/png;base64," + base64.b64encode(small_png).decode()

        response = evidence_service.ingest_data_url(data_url, EvidenceKind.SIGHTING_PHOTO)

        assert bucket.objects[response.path][0] == small_png

    def test_decode_data_url(self, small_png):
        data, mime = decode_data_url("data:image/jpeg;base64," + base64.b64encode(b"abc").decode())
        assert data == b"abc"
        assert mime == "image/jpeg"

    @pytest.mark.parametrize("data_url", ["", "https://example.com/a.jpg", "data:image/png;base64,@@@"])
    def test_bad_data_url(self, data_url):
        with pytest.raises(ValidationFailed):
            decode_data_url(data_url)

    def test_device_capture_uploads_jpeg(self, evidence_service, bucket):
        camera = MagicMock()
        camera.__enter__.return_value = camera
        camera.confirm.return_value = b"\xff\xd8jpeg"

        with patch("trinetra.services.evidence.service.CameraCapture", return_value=camera) as factory:
            response = evidence_service.capture_from_device("user", EvidenceKind.SIGHTING_PHOTO)

        factory.assert_called_once_with("user")
        camera.capture.assert_called_once()
        assert response.content_type == "image/jpeg"
        assert response.path.endswith(".jpg")
        assert bucket.objects[response.path][0] == b"\xff\xd8jpeg"
