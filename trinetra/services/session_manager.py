"""
Session Manager - session state for one long-lived client connection.

The auth provider owns session validity and refresh. This manager only
reacts to session-changed notifications and re-resolves the profile.
A generation counter makes sure a profile resolved for an older session
is never applied after a newer notification arrived.
"""

from fastapi.concurrency import run_in_threadpool
from trinetra.core.exceptions import AuthenticationFailed, TrinetraError
from trinetra.models.profile import Profile, SessionContext
from trinetra.services.profile_service import can_manage_alerts
from typing import Callable, List, Optional
import logging

logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional[SessionContext]], None]


class SessionManager:
    """
    Lifecycle:
    - start(token) on connect
    - on_session_changed(token | None) whenever the client reports a new session
    - sign_out() drops the session but keeps the manager usable
    - close() on disconnect; later notifications are ignored
    """

    def __init__(self, account_service=None):
        if account_service is None:
            from trinetra.services.account_service import get_account_service
            account_service = get_account_service()
        self.accounts = account_service
        self._generation = 0
        self._session: Optional[SessionContext] = None
        self._listeners: List[SessionListener] = []
        self._closed = False

    @property
    def session(self) -> Optional[SessionContext]:
        return self._session

    @property
    def profile(self) -> Optional[Profile]:
        return self._session.profile if self._session else None

    @property
    def can_manage_alerts(self) -> bool:
        return can_manage_alerts(self.profile)

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def start(self, id_token: Optional[str] = None) -> Optional[SessionContext]:
        self._closed = False
        return await self.on_session_changed(id_token)

    async def on_session_changed(self, id_token: Optional[str]) -> Optional[SessionContext]:
        """
        Re-resolve the session for a new token (None means signed out).

        Returns the session in effect after this notification.
        """
        if self._closed:
            return None

        self._generation += 1
        generation = self._generation

        context: Optional[SessionContext] = None
        if id_token:
            try:
                context = await run_in_threadpool(self.accounts.resolve_session, id_token)
            except AuthenticationFailed:
                logger.info("Session token rejected; treating connection as signed out")
            except TrinetraError as e:
                logger.error(f"Session resolution failed: {e.message}")

        if generation != self._generation or self._closed:
            logger.debug(f"Discarding stale session resolution (generation {generation})")
            return self._session

        self._apply(context)
        return context

    def sign_out(self):
        self._generation += 1
        self._apply(None)

    def close(self):
        self._generation += 1
        self._closed = True
        self._session = None
        self._listeners.clear()

    def _apply(self, context: Optional[SessionContext]):
        self._session = context
        for listener in list(self._listeners):
            try:
                listener(context)
            except Exception as e:
                logger.error(f"Session listener failed: {e}", exc_info=True)
