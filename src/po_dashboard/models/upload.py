"""
Upload models: file candidates and the attempts made to ingest them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from po_dashboard.errors import UploadRejection


class FileKind(str, Enum):
    """Which ingestion endpoint a file belongs to."""

    PURCHASE_ORDER = "po"
    ACCEPTANCE = "acceptance"

    @property
    def label(self) -> str:
        """Short name used in user-facing messages."""
        return "PO" if self is FileKind.PURCHASE_ORDER else "Acceptance"

    @property
    def endpoint(self) -> str:
        """Ingestion endpoint path."""
        if self is FileKind.PURCHASE_ORDER:
            return "/api/upload"
        return "/api/upload-acceptance"


class UploadOutcome(str, Enum):
    """Lifecycle of an UploadAttempt. ACCEPTED and REJECTED are terminal."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class FileCandidate:
    """
    A file selected for upload.

    Content is read lazily so an oversized file is rejected without
    loading it.

    Attributes:
        name: File name as shown to the user.
        size_bytes: Size of the file in bytes.
        path: Location on disk, when the candidate came from a file.
        content: In-memory bytes, when the candidate did not.
    """

    name: str
    size_bytes: int
    path: Path | None = None
    content: bytes | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> "FileCandidate":
        """Describe a file on disk without reading it."""
        path = Path(path)
        return cls(name=path.name, size_bytes=path.stat().st_size, path=path)

    @classmethod
    def from_bytes(cls, name: str, content: bytes) -> "FileCandidate":
        """Describe an in-memory file."""
        return cls(name=name, size_bytes=len(content), content=content)

    def read(self) -> bytes:
        """Return the file's bytes."""
        if self.content is not None:
            return self.content
        if self.path is None:
            raise ValueError(f"File candidate {self.name} has no content")
        return self.path.read_bytes()


@dataclass(slots=True)
class UploadAttempt:
    """
    One user-initiated upload.

    Attributes:
        file_kind: Target ingestion endpoint.
        file_name: Name of the submitted file.
        file_size_bytes: Size of the submitted file.
        outcome: Current lifecycle state.
        rejection: Validation failure reason, when rejected before dispatch.
        message: User-facing confirmation or failure text.
        created_at: When the attempt was made.
    """

    file_kind: FileKind
    file_name: str
    file_size_bytes: int
    outcome: UploadOutcome = UploadOutcome.PENDING
    rejection: UploadRejection | None = None
    message: str = ""
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_terminal(self) -> bool:
        """True once the attempt was accepted or rejected."""
        return self.outcome is not UploadOutcome.PENDING

    def accept(self, message: str) -> None:
        """Mark the attempt accepted."""
        self._finish(UploadOutcome.ACCEPTED, message)

    def reject(self, message: str, rejection: UploadRejection | None = None) -> None:
        """Mark the attempt rejected."""
        self._finish(UploadOutcome.REJECTED, message)
        self.rejection = rejection

    def _finish(self, outcome: UploadOutcome, message: str) -> None:
        if self.is_terminal:
            raise RuntimeError(f"Upload of {self.file_name} already {self.outcome.value}")
        self.outcome = outcome
        self.message = message

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "file_kind": self.file_kind.value,
            "file_name": self.file_name,
            "file_size_bytes": self.file_size_bytes,
            "outcome": self.outcome.value,
            "rejection": self.rejection.value if self.rejection else None,
            "message": self.message,
            "created_at": self.created_at.isoformat(),
        }
