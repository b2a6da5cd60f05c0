"""
Durable storage for the signed-in user's credential.

The store keeps the active Credential in memory and mirrors it into a
single key of a disk cache, so a later process can restore it. Writing one
key is atomic, which keeps the persisted slot either complete or absent.
"""

from pathlib import Path

from po_dashboard.lib import caches, logs, objects
from po_dashboard.models.session import Credential

LOG = logs.logger(__file__)

_CREDENTIAL_KEY = "session.credential"


class SessionStore:
    """
    Holds the current Credential and its persisted copy.

    Attributes:
        credential: The active credential, or None when signed out.
    """

    def __init__(self, cache_dir: str | Path) -> None:
        """
        Open the credential slot.

        Args:
            cache_dir: Directory for the disk cache. Created if missing.
        """
        self._cache = caches.DiskCache(cache_dir)
        self.credential: Credential | None = None

    @property
    def token(self) -> str | None:
        """Token of the active credential."""
        return self.credential.token if self.credential else None

    def restore(self) -> Credential | None:
        """
        Load the persisted credential and make it active.

        Malformed records are discarded and reported as no session; this
        method never raises for bad data.

        Returns:
            The restored Credential, or None.
        """
        raw = self._cache.get(_CREDENTIAL_KEY)
        if raw is None:
            self.credential = None
            return None
        try:
            credential = Credential.from_dict(objects.from_json(raw))
        except (TypeError, ValueError) as e:
            LOG.warning("Discarding malformed persisted session: %s", e)
            self.clear()
            return None
        self.credential = credential
        LOG.info("Restored session for user %s", credential.identity.id)
        return credential

    def save(self, credential: Credential) -> None:
        """Persist a credential, replacing any previous one, and make it active."""
        self._cache.set(_CREDENTIAL_KEY, objects.to_json(credential))
        self.credential = credential
        LOG.info("Saved session for user %s", credential.identity.id)

    def clear(self) -> None:
        """Forget the credential in memory and on disk. Idempotent."""
        self._cache.delete(_CREDENTIAL_KEY)
        self.credential = None

    def close(self) -> None:
        """Release the underlying disk cache."""
        self._cache.close()
