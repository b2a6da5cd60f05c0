"""
Upload coordinator for PO and acceptance files.

Files are checked client-side before any network call:
1. the extension must be .csv, .xlsx or .xls (case-insensitive)
2. the size must not exceed 50 MiB

Accepted files are posted as multipart/form-data to the ingestion endpoint
of their FileKind. Every submission produces a terminal UploadAttempt; no
failure escapes submit().
"""

import asyncio
from pathlib import Path

from po_dashboard import config
from po_dashboard.errors import ApiError, UploadRejection, UploadValidationError
from po_dashboard.lib import logs, paths
from po_dashboard.models.upload import FileCandidate, FileKind, UploadAttempt
from po_dashboard.services.api_client import ApiClient

LOG = logs.logger(__file__)

_UNSUPPORTED_MESSAGE = "Please upload a CSV or Excel file (.csv, .xlsx, .xls)"
_TOO_LARGE_MESSAGE = "File size must be less than 50MB"


def validate(
    candidate: FileCandidate,
    allowed_extensions: frozenset[str] = config.ALLOWED_UPLOAD_EXTENSIONS,
    max_bytes: int = config.MAX_UPLOAD_BYTES,
) -> None:
    """
    Check a file candidate against the upload rules.

    Raises:
        UploadValidationError: With UNSUPPORTED_TYPE or TOO_LARGE.
    """
    if paths.extension(candidate.name) not in allowed_extensions:
        raise UploadValidationError(UploadRejection.UNSUPPORTED_TYPE, _UNSUPPORTED_MESSAGE)
    if candidate.size_bytes > max_bytes:
        raise UploadValidationError(UploadRejection.TOO_LARGE, _TOO_LARGE_MESSAGE)


class UploadCoordinator:
    """
    Submits files and keeps the upload panel's presentation state.

    Attributes:
        uploading: True while a dispatch is in flight.
        message: Latest user-facing message ("" when cleared).
        message_type: "success", "error" or "".
        history: Every attempt made, oldest first.
    """

    def __init__(
        self,
        client: ApiClient,
        message_clear_delay: float | None = config.MESSAGE_CLEAR_DELAY,
    ) -> None:
        """
        Args:
            client: HTTP adapter used for dispatch.
            message_clear_delay: Seconds before a success message clears;
                None keeps messages until the next submission.
        """
        self._client = client
        self._message_clear_delay = message_clear_delay
        self._clear_handle: asyncio.TimerHandle | None = None
        self.uploading = False
        self.message = ""
        self.message_type = ""
        self.history: list[UploadAttempt] = []

    async def submit(
        self, file: FileCandidate | str | Path, file_kind: FileKind
    ) -> UploadAttempt:
        """
        Validate and upload one file.

        Args:
            file: The candidate, or a path to build one from.
            file_kind: Which ingestion endpoint receives the file.

        Returns:
            The terminal UploadAttempt (accepted or rejected).
        """
        self._cancel_clear()
        fallback = f"Failed to upload {file_kind.label} file. Please try again."
        try:
            candidate = (
                file if isinstance(file, FileCandidate) else FileCandidate.from_path(file)
            )
        except OSError as e:
            LOG.error("Could not open %s: %s", file, e)
            attempt = UploadAttempt(
                file_kind=file_kind, file_name=Path(file).name, file_size_bytes=0
            )
            self.history.append(attempt)
            attempt.reject(fallback)
            self._show(attempt.message, "error")
            return attempt

        attempt = UploadAttempt(
            file_kind=file_kind,
            file_name=candidate.name,
            file_size_bytes=candidate.size_bytes,
        )
        self.history.append(attempt)

        try:
            validate(candidate)
        except UploadValidationError as e:
            LOG.info("Rejected %s before upload: %s", candidate.name, e.reason.value)
            attempt.reject(e.message, e.reason)
            self._show(attempt.message, "error")
            return attempt

        self.uploading = True
        self._show("", "")
        try:
            await self._client.post_file(
                file_kind.endpoint, "file", candidate.name, candidate.read()
            )
        except ApiError as e:
            LOG.error("Upload of %s failed: %s", candidate.name, e.message)
            attempt.reject(e.detail or fallback)
            self._show(attempt.message, "error")
            return attempt
        except OSError as e:
            LOG.error("Could not read %s: %s", candidate.name, e)
            attempt.reject(fallback)
            self._show(attempt.message, "error")
            return attempt
        finally:
            self.uploading = False

        LOG.info("Uploaded %s file %s", file_kind.label, candidate.name)
        attempt.accept(
            f"{file_kind.label} file uploaded successfully! "
            "Processing has started in the background."
        )
        self._show(attempt.message, "success")
        self._schedule_clear()
        return attempt

    def clear_message(self) -> None:
        """Dismiss the current message."""
        self._cancel_clear()
        self._show("", "")

    def _show(self, message: str, message_type: str) -> None:
        self.message = message
        self.message_type = message_type

    def _schedule_clear(self) -> None:
        if self._message_clear_delay is None:
            return
        loop = asyncio.get_running_loop()
        self._clear_handle = loop.call_later(self._message_clear_delay, self.clear_message)

    def _cancel_clear(self) -> None:
        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None
