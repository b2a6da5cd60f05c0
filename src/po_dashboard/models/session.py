"""
Session models: the authenticated identity and the credential that carries it.

A Credential is either complete (non-empty token plus identity) or it does
not exist; constructors reject partial data so a half-written record can
never be treated as a session.
"""

from dataclasses import dataclass
from typing import Any, Mapping

from benedict import benedict


@dataclass(frozen=True, slots=True)
class Identity:
    """The signed-in user as reported by the login endpoint."""

    id: str
    email: str
    display_name: str

    def to_dict(self) -> dict:
        """Serialize using the login endpoint's field names."""
        return {"id": self.id, "email": self.email, "name": self.display_name}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Identity":
        """Deserialize a persisted identity. Raises ValueError when id is missing."""
        if data.get("id") in (None, ""):
            raise ValueError("identity is missing its id")
        return cls(
            id=str(data["id"]),
            email=str(data.get("email") or ""),
            display_name=str(data.get("name") or ""),
        )


@dataclass(frozen=True, slots=True)
class Credential:
    """
    Bearer token plus the identity it belongs to.

    Attributes:
        token: Opaque access token sent as `Authorization: Bearer <token>`.
        identity: The user the token was issued to.
    """

    token: str
    identity: Identity

    def __post_init__(self) -> None:
        if not self.token:
            raise ValueError("credential token must not be empty")

    @property
    def authorization(self) -> str:
        """Return the Authorization header value."""
        return f"Bearer {self.token}"

    def to_dict(self) -> dict:
        """Serialize to the persisted record layout."""
        return {"access_token": self.token, "user": self.identity.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Credential":
        """
        Deserialize a persisted credential record.

        Raises:
            ValueError: If the token or identity is missing or malformed.
        """
        if not isinstance(data, Mapping):
            raise ValueError("credential record must be an object")
        user = data.get("user")
        if not isinstance(user, Mapping):
            raise ValueError("credential record has no user")
        return cls(token=str(data.get("access_token") or ""), identity=Identity.from_dict(user))

    @classmethod
    def from_login_response(cls, payload: Mapping[str, Any]) -> "Credential":
        """
        Build a credential from a successful `POST /login` body.

        The endpoint answers `{access_token, user_id, email, name}`.

        Raises:
            ValueError: If the response lacks a token or user id.
        """
        if not isinstance(payload, Mapping):
            raise ValueError("login response must be an object")
        b = benedict(payload)
        return cls(
            token=str(b.get("access_token") or ""),
            identity=Identity.from_dict(
                {
                    "id": b.get("user_id"),
                    "email": b.get("email", ""),
                    "name": b.get("name", ""),
                }
            ),
        )
