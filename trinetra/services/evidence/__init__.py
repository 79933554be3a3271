"""
Evidence - photo capture, size policy and upload to the evidence bucket.
"""

from .camera import CameraCapture, FacingMode
from .image_policy import ALLOWED_MIME_TYPES, NormalizedImage, normalize_image, validate_mime_type
from .naming import generate_object_name
from .service import EvidenceService, get_evidence_service
from .storage import EvidenceStore

__all__ = [
    "ALLOWED_MIME_TYPES",
    "CameraCapture",
    "EvidenceService",
    "EvidenceStore",
    "FacingMode",
    "NormalizedImage",
    "generate_object_name",
    "get_evidence_service",
    "normalize_image",
    "validate_mime_type",
]
