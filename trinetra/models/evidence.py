"""
Evidence (photo) upload models.
"""

from pydantic import BaseModel, Field
from enum import Enum


class EvidenceKind(str, Enum):
    ALERT_PHOTO = "alert_photo"
    SIGHTING_PHOTO = "sighting_photo"
    ID_PROOF = "id_proof"


class EvidenceCaptureRequest(BaseModel):
    """A still frame captured in the browser, sent as a data: URL."""
    data_url: str = Field(..., min_length=1)
    kind: EvidenceKind = Field(default=EvidenceKind.SIGHTING_PHOTO)


class EvidenceResponse(BaseModel):
    path: str = Field(..., description="Object key in the evidence bucket")
    public_url: str
    content_type: str
    size_bytes: int
    original_size_bytes: int
    compressed: bool = Field(default=False, description="Whether the size policy re-encoded the image")
