"""
Query models for the merged purchase-order data view.

This module defines:

- QueryParameters: the filter and pagination inputs of the data view
- PageResult: one page of merged records plus pagination metadata
- QueryStatus: lifecycle of the most recently dispatched fetch
- DashboardSnapshot: analytics and chart payloads for the overview page

QueryParameters is immutable; the data view replaces it wholesale so a
fetch can capture the exact parameters it was dispatched with.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping

from benedict import benedict

# Rows are passed through untouched; only "status" is ever read.
Record = dict[str, Any]

FILTER_FIELDS = ("status", "category", "project_name", "search")

STATUS_OPTIONS = (
    "CLOSED",
    "Pending AC80%",
    "Pending PAC20%",
    "Pending ACPAC",
    "CANCELLED",
)
CATEGORY_OPTIONS = ("Survey", "Transportation", "Site Engineer", "Service")


class QueryStatus(str, Enum):
    """Status of the data view's latest dispatched fetch."""

    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class QueryParameters:
    """
    Filter and pagination inputs for `GET /api/merged-data`.

    Empty strings and None both mean "unset" and are left out of the
    outgoing query.

    Attributes:
        status: Acceptance status filter.
        category: PO category filter.
        project_name: Project name filter.
        search: Free text search over PO number and description.
        page: Page number (1-indexed).
        page_size: Rows per page.
    """

    status: str | None = None
    category: str | None = None
    project_name: str | None = None
    search: str | None = None
    page: int = 1
    page_size: int = 50

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be > 0, got {self.page_size}")

    def with_filter(self, name: str, value: str | None) -> "QueryParameters":
        """Return a copy with one filter changed and the page reset to 1."""
        if name not in FILTER_FIELDS:
            raise ValueError(f"Unknown filter field: {name}")
        return replace(self, **{name: value or None}, page=1)

    def with_page(self, page: int) -> "QueryParameters":
        """Return a copy pointing at another page."""
        return replace(self, page=page)

    def with_page_size(self, page_size: int) -> "QueryParameters":
        """Return a copy with a new page size and the page reset to 1."""
        return replace(self, page_size=page_size, page=1)

    def filters(self) -> dict[str, str]:
        """Return the active filters, omitting unset and empty values."""
        return {
            name: value
            for name in FILTER_FIELDS
            if (value := getattr(self, name)) not in (None, "")
        }

    def to_query(self) -> dict[str, Any]:
        """Return the query string for the paginated data endpoint."""
        return {"page": self.page, "per_page": self.page_size, **self.filters()}

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "status": self.status,
            "category": self.category,
            "project_name": self.project_name,
            "search": self.search,
            "page": self.page,
            "page_size": self.page_size,
        }


@dataclass(frozen=True, slots=True)
class PageResult:
    """
    A single page of merged records as returned by the server.

    Attributes:
        items: Ordered records of the page.
        total_count: Number of records matching the filters.
        total_pages: Number of pages at the requested page size.
        has_next: Whether a following page exists.
        has_prev: Whether a preceding page exists.
    """

    items: tuple[Record, ...] = ()
    total_count: int = 0
    total_pages: int = 0
    has_next: bool = False
    has_prev: bool = False

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "PageResult":
        """
        Build a page from a `GET /api/merged-data` body.

        Raises:
            ValueError: If the body is not an object or items is not a list.
        """
        if not isinstance(payload, Mapping):
            raise ValueError("page response must be an object")
        items = payload.get("items") or []
        if not isinstance(items, list):
            raise ValueError("page response items must be a list")
        return cls(
            items=tuple(items),
            total_count=int(payload.get("total_count") or 0),
            total_pages=int(payload.get("total_pages") or 0),
            has_next=bool(payload.get("has_next", False)),
            has_prev=bool(payload.get("has_prev", False)),
        )

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "items": list(self.items),
            "total_count": self.total_count,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_prev": self.has_prev,
        }


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Spreadsheet bytes for the current filters and a suggested file name."""

    content: bytes
    filename: str


@dataclass(slots=True)
class DashboardSnapshot:
    """
    Aggregate payloads backing the overview page.

    Both payloads are passed through as received; the properties below only
    read the headline figures.
    """

    analytics: dict = field(default_factory=dict)
    charts: dict = field(default_factory=dict)

    def _stat(self, key: str) -> float:
        return benedict(self.analytics).get(f"basic_stats.{key}", 0) or 0

    @property
    def total_records(self) -> int:
        """Total merged records."""
        return int(self._stat("total_merged_records"))

    @property
    def total_value(self) -> float:
        """Total PO value."""
        return float(self._stat("total_value"))

    @property
    def total_pos(self) -> int:
        """Number of distinct purchase orders."""
        return int(self._stat("total_pos"))

    @property
    def is_empty(self) -> bool:
        """True when the server has no analytics yet (nothing uploaded)."""
        return not self.analytics

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dictionary."""
        return {"analytics": self.analytics, "charts": self.charts}
