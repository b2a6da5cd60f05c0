"""
Data models for the PO Dashboard client.

This package provides:
- Session models (Credential, Identity)
- Query models for the merged data view (QueryParameters, PageResult)
- Upload models (FileCandidate, UploadAttempt)

All models use Python dataclasses and expose to_dict() for display layers.
"""

from po_dashboard.models.common import (
    CATEGORY_OPTIONS,
    FILTER_FIELDS,
    STATUS_OPTIONS,
    DashboardSnapshot,
    ExportResult,
    PageResult,
    QueryParameters,
    QueryStatus,
    Record,
)
from po_dashboard.models.session import Credential, Identity
from po_dashboard.models.upload import (
    FileCandidate,
    FileKind,
    UploadAttempt,
    UploadOutcome,
)

__all__ = [
    "CATEGORY_OPTIONS",
    "Credential",
    "DashboardSnapshot",
    "ExportResult",
    "FILTER_FIELDS",
    "FileCandidate",
    "FileKind",
    "Identity",
    "PageResult",
    "QueryParameters",
    "QueryStatus",
    "Record",
    "STATUS_OPTIONS",
    "UploadAttempt",
    "UploadOutcome",
]
