"""
Alert endpoints.

Anyone may read alerts. Creating, resolving and deleting require a
verified police account.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from trinetra.core.exceptions import BackendError, NotFoundError
from trinetra.models.alert import Alert, AlertCreate, AlertStatusUpdateRequest
from trinetra.models.base import BaseResponse
from trinetra.models.profile import SessionContext
from trinetra.routes.deps import require_authority
from trinetra.services.alert_lifecycle import AlertLifecycle
from trinetra.services.alert_service import AlertService, get_alert_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/alerts", tags=["Alerts"])


@router.post("", response_model=Alert, status_code=status.HTTP_201_CREATED)
def create_alert(
    alert: AlertCreate,
    session: SessionContext = Depends(require_authority),
    alerts: AlertService = Depends(get_alert_service)
):
    """
    Raise a new missing-child alert.

    The photo must already be uploaded (POST /evidence/upload?kind=alert_photo).
    Connected clients on /ws/alerts are notified once the alert is stored.
    """
    return alerts.create(alert, session.profile)


@router.get("/active", response_model=List[Alert])
def list_active_alerts(alerts: AlertService = Depends(get_alert_service)):
    """All active alerts, newest first."""
    return alerts.list_active()


@router.get("/resolved", response_model=List[Alert])
def list_resolved_alerts(alerts: AlertService = Depends(get_alert_service)):
    """Most recently resolved alerts."""
    return alerts.list_resolved()


@router.get("/{alert_id}", response_model=Alert)
def get_alert(alert_id: str, alerts: AlertService = Depends(get_alert_service)):
    alert = alerts.get_by_id(alert_id)
    if alert is None:
        raise NotFoundError(f"Alert {alert_id} not found")
    return alert


@router.patch("/{alert_id}/status", response_model=Alert)
def update_alert_status(
    alert_id: str,
    request: AlertStatusUpdateRequest,
    session: SessionContext = Depends(require_authority),
    alerts: AlertService = Depends(get_alert_service)
):
    """
    Mark an alert resolved. Resolving an already resolved alert is a no-op.
    """
    current = alerts.get_by_id(alert_id)
    if current is None:
        raise NotFoundError(f"Alert {alert_id} not found")

    if not AlertLifecycle.is_valid_transition(current.status, request.status.value):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": f"Cannot change status from {current.status.value} to {request.status.value}",
                "allowed_transitions": AlertLifecycle.get_allowed_transitions(current.status),
            }
        )

    if not alerts.set_status(alert_id, request.status.value):
        raise BackendError("Failed to update alert status")

    updated = alerts.get_by_id(alert_id)
    if updated is None:
        raise NotFoundError(f"Alert {alert_id} not found")

    logger.info(f"Alert {alert_id} set to {request.status.value} by {session.account_id}")
    return updated


@router.delete("/{alert_id}", response_model=BaseResponse)
def delete_alert(
    alert_id: str,
    session: SessionContext = Depends(require_authority),
    alerts: AlertService = Depends(get_alert_service)
):
    """Hard delete. Administrative; prefer resolving."""
    if alerts.get_by_id(alert_id) is None:
        raise NotFoundError(f"Alert {alert_id} not found")
    if not alerts.delete(alert_id):
        raise BackendError("Failed to delete alert")

    logger.info(f"Alert {alert_id} deleted by {session.account_id}")
    return BaseResponse(message=f"Alert {alert_id} deleted")
