"""
Evidence endpoints - photo upload ahead of alert, sighting or police sign-up.

Each endpoint returns the public URL to put in the form that follows.
"""

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from trinetra.models.evidence import EvidenceCaptureRequest, EvidenceKind, EvidenceResponse
from trinetra.services.evidence import EvidenceService, FacingMode, get_evidence_service

router = APIRouter(prefix="/evidence", tags=["Evidence"])


@router.post("/upload", response_model=EvidenceResponse, status_code=status.HTTP_201_CREATED)
def upload_evidence(
    file: UploadFile = File(..., description="Image file (jpeg, png, webp, gif, avif)"),
    kind: EvidenceKind = Query(EvidenceKind.SIGHTING_PHOTO),
    evidence: EvidenceService = Depends(get_evidence_service)
):
    """
    Upload a selected photo.

    Files above 1 MiB are shrunk to at most 1080 px and stored as WebP.
    """
    data = file.file.read()
    return evidence.ingest_upload(data, file.content_type, kind)


@router.post("/capture", response_model=EvidenceResponse, status_code=status.HTTP_201_CREATED)
def upload_capture(request: EvidenceCaptureRequest, evidence: EvidenceService = Depends(get_evidence_service)):
    """Upload a still frame captured by the browser camera (data: URL)."""
    return evidence.ingest_data_url(request.data_url, request.kind)


@router.post("/device-capture", response_model=EvidenceResponse, status_code=status.HTTP_201_CREATED)
def capture_from_device(
    facing_mode: FacingMode = Query(FacingMode.ENVIRONMENT),
    kind: EvidenceKind = Query(EvidenceKind.SIGHTING_PHOTO),
    evidence: EvidenceService = Depends(get_evidence_service)
):
    """
    Take a photo with the camera attached to this server (station kiosk).

    503 when the camera is busy or unavailable.
    """
    return evidence.capture_from_device(facing_mode, kind)
