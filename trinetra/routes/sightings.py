"""
Sighting endpoints.

Submitting a sighting is open to everyone; signing in only attaches the
reporter's account. Reading sightings is for verified police.
"""

from fastapi import APIRouter, Depends, status
from typing import List, Optional
from trinetra.models.profile import SessionContext
from trinetra.models.sighting import Sighting, SightingCreate
from trinetra.routes.deps import get_optional_session, require_authority
from trinetra.services.sighting_service import SightingService, get_sighting_service

router = APIRouter(tags=["Sightings"])


@router.post("/alerts/{alert_id}/sightings", response_model=Sighting, status_code=status.HTTP_201_CREATED)
def submit_sighting(
    alert_id: str,
    sighting: SightingCreate,
    session: Optional[SessionContext] = Depends(get_optional_session),
    sightings: SightingService = Depends(get_sighting_service)
):
    """
    Report that the child of an alert was seen.

    A photo is mandatory: upload it first (POST /evidence/upload or
    /evidence/capture with kind=sighting_photo) and send its public URL.
    """
    return sightings.submit(alert_id, sighting, session)


@router.get("/alerts/{alert_id}/sightings", response_model=List[Sighting])
def list_alert_sightings(
    alert_id: str,
    session: SessionContext = Depends(require_authority),
    sightings: SightingService = Depends(get_sighting_service)
):
    return sightings.list_by_alert(alert_id)


@router.get("/sightings", response_model=List[Sighting])
def list_recent_sightings(
    session: SessionContext = Depends(require_authority),
    sightings: SightingService = Depends(get_sighting_service)
):
    """Latest sightings across all alerts, for the police dashboard."""
    return sightings.list_recent()
