"""
Alert Lifecycle - strict state machine for alert status.

DESIGN PRINCIPLES:
- Alerts are born active
- No backward transitions: resolved and inactive are terminal
- Setting the current status again is an accepted no-op
"""

from typing import Dict, List
import logging

from trinetra.models.alert import AlertStatus

logger = logging.getLogger(__name__)


class AlertLifecycle:
    """
    Rules:
    - active → resolved (authority marks the child as found)
    - active → inactive (administrative removal, no API route)
    - nothing leaves resolved or inactive
    """

    INITIAL_STATUS = AlertStatus.ACTIVE

    # Allowed transitions map: {from_status: [to_status, ...]}
    ALLOWED_TRANSITIONS: Dict[AlertStatus, List[AlertStatus]] = {
        AlertStatus.ACTIVE: [AlertStatus.RESOLVED, AlertStatus.INACTIVE],
        AlertStatus.RESOLVED: [],
        AlertStatus.INACTIVE: [],
    }

    @classmethod
    def is_valid_transition(cls, from_status: str, to_status: str) -> bool:
        """
        Check if a status transition is valid.

        Args:
            from_status: Current status
            to_status: Desired new status

        Returns:
            True if transition is allowed, False otherwise
        """
        try:
            from_enum = AlertStatus(from_status)
            to_enum = AlertStatus(to_status)
        except ValueError:
            return False

        # Same status is always valid (idempotent)
        if from_enum == to_enum:
            return True

        return to_enum in cls.ALLOWED_TRANSITIONS.get(from_enum, [])

    @classmethod
    def get_allowed_transitions(cls, current_status: str) -> List[str]:
        """List of statuses reachable from current_status."""
        try:
            current_enum = AlertStatus(current_status)
        except ValueError:
            return []
        return [status.value for status in cls.ALLOWED_TRANSITIONS.get(current_enum, [])]

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.get_allowed_transitions(status)
