"""SessionController – login/logout verbs and session lifecycle.

The controller never caches "am I logged in": :attr:`SessionController.state`
is recomputed from :class:`CredentialStore` on every access, with a transient
``AUTHENTICATING`` state while any login call is in flight.

Logout is reachable three ways, all funnelling into :meth:`logout`:

* explicitly by the user,
* by the request pipeline's unauthorized signal (401/403 on any call),
* by the :class:`ExpiryWatch` noticing the credential has expired.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Final

from portal_client.cache import QueryCache
from portal_client.core.claims import jwt_expiry
from portal_client.core.errors import ErrorKind
from portal_client.core.models import LoginRequest, LoginResponse, LoginResult, Outcome
from portal_client.core.signals import UnauthorizedSignal
from portal_client.core.store import CredentialStore
from portal_client.core.timer import ExpiryWatch, Sleep
from portal_client.http.pipeline import RequestPipeline
from portal_client.session.navigation import Navigator, Routes
from portal_client.utils.logging import mask_sensitive

_LOG = logging.getLogger("portal-client.session.controller")

LOGIN_ENDPOINT: Final[str] = "/auth/login"
MSG_LOGIN_FAILED: Final[str] = "Login failed"
MSG_LOGIN_UNEXPECTED: Final[str] = "An unexpected error occurred during login"


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class SessionController:
    """Application service orchestrating the authentication state machine."""

    def __init__(
        self,
        store: CredentialStore,
        pipeline: RequestPipeline,
        navigator: Navigator,
        *,
        signal: UnauthorizedSignal | None = None,
        cache: QueryCache | None = None,
        login_view: str = Routes.LOGIN,
        default_view: str = Routes.STUDENTS,
        expiry_check_seconds: float | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.store = store
        self.pipeline = pipeline
        self.navigator = navigator
        self.cache = cache
        self.login_view = login_view
        self.default_view = default_view
        self._check_interval = expiry_check_seconds or pipeline.config.expiry_check_seconds
        self._sleep = sleep
        self._logins_in_flight = 0
        self._watch: ExpiryWatch | None = None
        self._signal = signal
        if signal is not None:
            signal.connect(self.notify_unauthorized)

        # Startup state is resolved from the store alone, no validation round trip.
        initial = self.state
        _LOG.info("Session controller initialised in state=%s", initial.value)

    # ------------------------------------------------------------------ #
    # state                                                              #
    # ------------------------------------------------------------------ #
    @property
    def state(self) -> SessionState:
        if self._logins_in_flight:
            return SessionState.AUTHENTICATING
        if self.store.get() is not None:
            return SessionState.AUTHENTICATED
        return SessionState.UNAUTHENTICATED

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    @property
    def watching(self) -> bool:
        return self._watch is not None and self._watch.running

    # ------------------------------------------------------------------ #
    # lifecycle                                                          #
    # ------------------------------------------------------------------ #
    def start(self) -> None:
        """Arm the auto-logout watch when a credential with expiry exists.

        Must be called from inside a running event loop.
        """
        if self.store.get() is not None and self.store.expiry() is not None:
            self._arm_watch()

    def close(self) -> None:
        """Release the watch; the session itself is left untouched."""
        self._disarm_watch()
        if self._signal is not None:
            self._signal.disconnect()

    async def __aenter__(self) -> "SessionController":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # verbs                                                              #
    # ------------------------------------------------------------------ #
    async def login(self, email: str, password: str) -> LoginResult:
        """Exchange credentials for a token and enter the authenticated view."""
        request = LoginRequest(email=email, password=password)
        self._logins_in_flight += 1
        try:
            outcome = await self.pipeline.post(LOGIN_ENDPOINT, request.to_payload())
        finally:
            self._logins_in_flight -= 1

        if not outcome.success:
            message = self._login_error_message(outcome)
            _LOG.info("Login failed for %s: %s", mask_sensitive(email, 3), message)
            return LoginResult(success=False, error=message)

        try:
            login = LoginResponse.from_payload(outcome.data)
        except ValueError as exc:
            _LOG.error("Malformed login response: %s", exc)
            return LoginResult(success=False, error=MSG_LOGIN_UNEXPECTED)

        expires_at = login.expires_at
        if expires_at is None:
            expires_at = jwt_expiry(login.token)
        self.store.set(login.token, expires_at)
        if self.cache is not None:
            self.cache.clear()
        if expires_at is not None:
            self._arm_watch()
        _LOG.info("Login succeeded for %s", mask_sensitive(email, 3))
        self.navigator.navigate(self.default_view)
        return LoginResult(success=True)

    def logout(self) -> None:
        """End the session and show the login view; safe to call repeatedly."""
        self._disarm_watch()
        self.store.clear()
        if self.cache is not None:
            self.cache.clear()
        _LOG.info("Session ended")
        self.navigator.navigate(self.login_view)

    def notify_unauthorized(self) -> None:
        """Receiver for auth rejections reported by the pipeline."""
        _LOG.warning("Server rejected credential; logging out")
        self.logout()

    # ------------------------------------------------------------------ #
    # route guards                                                       #
    # ------------------------------------------------------------------ #
    def require_authenticated(self) -> bool:
        """Return True when authenticated, otherwise redirect to the login view."""
        if self.is_authenticated:
            return True
        self.navigator.navigate(self.login_view)
        return False

    def redirect_if_authenticated(self) -> bool:
        """Send an authenticated user away from the login view."""
        if not self.is_authenticated:
            return False
        self.navigator.navigate(self.default_view)
        return True

    # ------------------------------------------------------------------ #
    # internals                                                          #
    # ------------------------------------------------------------------ #
    @staticmethod
    def _login_error_message(outcome: Outcome) -> str:
        error = outcome.error
        if error is None:
            return MSG_LOGIN_FAILED
        if error.kind is not ErrorKind.AUTH_ERROR:
            return error.message or MSG_LOGIN_FAILED
        details = error.details
        if isinstance(details, dict) and isinstance(details.get("message"), str) and details["message"]:
            return details["message"]
        return MSG_LOGIN_FAILED

    def _arm_watch(self) -> None:
        self._disarm_watch()
        self._watch = ExpiryWatch(
            self._session_lapsed,
            self._on_expired,
            interval=self._check_interval,
            sleep=self._sleep,
        )
        self._watch.start()

    def _disarm_watch(self) -> None:
        watch, self._watch = self._watch, None
        if watch is not None:
            watch.cancel()

    def _session_lapsed(self) -> bool:
        # get() also covers a credential already cleared by a concurrent call
        return self.store.is_expired() or self.store.get() is None

    def _on_expired(self) -> None:
        # Called from inside the watch task; drop the handle without cancelling it.
        self._watch = None
        self.logout()
