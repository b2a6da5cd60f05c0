"""
Session lifecycle: login, logout and start-up restore.

SessionController wires the SessionStore to the ApiClient. It subscribes
to the client's expiry signal so a 401 from any request ends the session
the same way an explicit logout() does.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from po_dashboard.errors import ApiError
from po_dashboard.lib import logs
from po_dashboard.models.session import Credential, Identity
from po_dashboard.services.api_client import ApiClient
from po_dashboard.services.session_store import SessionStore

LOG = logs.logger(__file__)

LOGIN_PATH = "/login"
_LOGIN_FALLBACK = "Login failed. Please try again."


class AccessGate(str, Enum):
    """What a protected view should do with the current session."""

    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True, slots=True)
class LoginResult:
    """Outcome of a login attempt. error is set only when success is False."""

    success: bool
    error: str | None = None


class SessionController:
    """
    Tracks who is signed in.

    Attributes:
        identity: The signed-in user, or None.
        ready: False until bootstrap() has run.
    """

    def __init__(self, client: ApiClient, store: SessionStore) -> None:
        self._client = client
        self._store = store
        self._listeners: list[Callable[[Identity | None], None]] = []
        self.identity: Identity | None = None
        self.ready = False
        client.add_expiry_listener(self._on_session_expired)

    @property
    def is_authenticated(self) -> bool:
        """True while a user is signed in."""
        return self.identity is not None

    def gate(self) -> AccessGate:
        """Resolve access for protected views."""
        if not self.ready:
            return AccessGate.LOADING
        if self.is_authenticated:
            return AccessGate.AUTHENTICATED
        return AccessGate.UNAUTHENTICATED

    def add_listener(self, listener: Callable[[Identity | None], None]) -> None:
        """Register a callback receiving the new identity on every change."""
        self._listeners.append(listener)

    def bootstrap(self) -> None:
        """
        Restore the persisted session at start-up.

        The restored credential is trusted as-is; it is not validated with
        the server. A revoked token surfaces on the first 401.
        """
        credential = self._store.restore()
        self._set_identity(credential.identity if credential else None)
        self.ready = True
        LOG.info("Session ready - authenticated:%s", self.is_authenticated)

    async def login(self, username: str, password: str) -> LoginResult:
        """
        Authenticate with the API and persist the resulting session.

        Never raises; failures come back as a LoginResult carrying the
        server's message or a generic fallback.

        Args:
            username: Email or username.
            password: Plain text password (never logged).
        """
        try:
            payload = await self._client.post_form(
                LOGIN_PATH, {"username": username, "password": password}
            )
            credential = Credential.from_login_response(payload or {})
        except ApiError as e:
            LOG.warning("Login failed for %s: %s", username, e.message)
            return LoginResult(success=False, error=e.detail or _LOGIN_FALLBACK)
        except (TypeError, ValueError) as e:
            LOG.error("Login response was incomplete: %s", e)
            return LoginResult(success=False, error=_LOGIN_FALLBACK)

        self._store.save(credential)
        self._set_identity(credential.identity)
        LOG.info("Logged in as %s", credential.identity.email or credential.identity.id)
        return LoginResult(success=True)

    def logout(self) -> None:
        """Forget the session. Safe to call when nobody is signed in."""
        self._store.clear()
        self._set_identity(None)

    def _on_session_expired(self) -> None:
        LOG.info("Session expired; signing out")
        self.logout()

    def _set_identity(self, identity: Identity | None) -> None:
        changed = identity != self.identity
        self.identity = identity
        if not changed:
            return
        for listener in list(self._listeners):
            try:
                listener(identity)
            except Exception:
                LOG.exception("Session listener failed")
