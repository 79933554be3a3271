"""
Evidence Service - turns a selected file, a browser capture or a kiosk
camera still into a public photo URL.

Pipeline: validate type → size policy → name → upload. Any failure
aborts before the caller persists a record that would reference it.
"""

from trinetra.core.exceptions import MissingEvidenceError, ValidationFailed
from trinetra.models.evidence import EvidenceKind, EvidenceResponse
from trinetra.services.evidence.camera import CameraCapture, FacingMode
from trinetra.services.evidence.image_policy import normalize_image, validate_mime_type
from trinetra.services.evidence.naming import generate_object_name
from trinetra.services.evidence.storage import EvidenceStore
from typing import Optional, Tuple
import base64
import binascii
import logging
import re

logger = logging.getLogger(__name__)

NAME_PREFIXES = {
    EvidenceKind.ALERT_PHOTO: "",
    EvidenceKind.SIGHTING_PHOTO: "sighting_",
    EvidenceKind.ID_PROOF: "id_proof_",
}

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w/+.-]+)(?:;[\w=.-]+)*;base64,(?P<payload>.*)$", re.DOTALL)


def decode_data_url(data_url: str) -> Tuple[bytes, str]:
    """
    Split a base64 data: URL into (bytes, mime type).

    Raises:
        ValidationFailed: not a base64 data URL or undecodable payload
    """
    match = DATA_URL_PATTERN.match((data_url or "").strip())
    if not match:
        raise ValidationFailed("Captured image must be a base64 data URL")
    try:
        data = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationFailed("Captured image payload is not valid base64")
    return data, match.group("mime")


class EvidenceService:

    def __init__(self, store: Optional[EvidenceStore] = None):
        self.store = store or EvidenceStore()

    def ingest_upload(self, data: bytes, content_type: str, kind: EvidenceKind) -> EvidenceResponse:
        """
        Store one photo and return where it lives.

        Args:
            data: Raw bytes as selected or captured
            content_type: Declared MIME type
            kind: What the photo is for (decides the name prefix)

        Raises:
            UnsupportedMediaError: type not on the allow-list (nothing uploaded)
            MissingEvidenceError: empty file
            UploadFailedError: storage failure
        """
        validate_mime_type(content_type)
        if not data:
            raise MissingEvidenceError("Selected file is empty")

        image = normalize_image(data, content_type)
        object_name = generate_object_name(image.extension, NAME_PREFIXES[EvidenceKind(kind)])
        public_url = self.store.upload(object_name, image.data, image.content_type)

        return EvidenceResponse(
            path=object_name,
            public_url=public_url,
            content_type=image.content_type,
            size_bytes=image.size,
            original_size_bytes=image.original_size,
            compressed=image.compressed,
        )

    def ingest_data_url(self, data_url: str, kind: EvidenceKind) -> EvidenceResponse:
        """Store a frame captured in the browser."""
        data, mime = decode_data_url(data_url)
        return self.ingest_upload(data, mime, kind)

    def capture_from_device(self, facing_mode=FacingMode.ENVIRONMENT,
                            kind: EvidenceKind = EvidenceKind.SIGHTING_PHOTO) -> EvidenceResponse:
        """
        Take a single still from the local camera and store it.

        The camera is released before the upload starts.
        """
        with CameraCapture(facing_mode) as camera:
            camera.capture()
            still = camera.confirm()
        logger.info(f"Captured {len(still)} byte still from {FacingMode(facing_mode).value} camera")
        return self.ingest_upload(still, "image/jpeg", kind)


_evidence_service = None


def get_evidence_service() -> EvidenceService:
    """Get or create EvidenceService singleton."""
    global _evidence_service
    if _evidence_service is None:
        _evidence_service = EvidenceService()
    return _evidence_service
