"""
View state for the merged data table and the overview dashboard.

DataViewState owns the query parameters and the page currently shown.
Every dispatch is tagged with a request epoch; a response is applied only
if its epoch is still the latest, so a slow response to an older filter or
page can never replace a newer one. In-flight requests are not cancelled,
their results are dropped on arrival.
"""

import asyncio
from typing import Any

from po_dashboard import config
from po_dashboard.errors import ApiError, DashboardError
from po_dashboard.lib import logs
from po_dashboard.models.common import (
    DashboardSnapshot,
    ExportResult,
    PageResult,
    QueryParameters,
    QueryStatus,
)
from po_dashboard.services.api_client import ApiClient

LOG = logs.logger(__file__)

DATA_PATH = "/api/merged-data"
EXPORT_PATH = "/api/merged-data/export"
ANALYTICS_PATH = "/api/dashboard-analytics"
CHARTS_PATH = "/api/charts-data"

_LOAD_FAILED = "Failed to load data"


class DataViewState:
    """
    Filter/pagination state machine for the merged data table.

    set_filter(), set_page(), set_page_size() and refresh() update the
    parameters synchronously and return the asyncio.Task running the fetch.

    Attributes:
        params: Parameters of the most recent dispatch.
        last_result: Page from the latest applied response, or None.
        status: idle, loading or error.
        error_message: Message for the error status.
        export_error: Message of the last failed export.
        request_epoch: Epoch of the most recent dispatch.
    """

    def __init__(self, client: ApiClient, page_size: int = config.PAGE_SIZE) -> None:
        self._client = client
        self._tasks: set[asyncio.Task] = set()
        self.params = QueryParameters(page_size=page_size)
        self.last_result: PageResult | None = None
        self.status = QueryStatus.IDLE
        self.error_message: str | None = None
        self.export_error: str | None = None
        self.request_epoch = 0

    @property
    def is_loading(self) -> bool:
        """True while the latest dispatch has not resolved."""
        return self.status is QueryStatus.LOADING

    @property
    def items(self) -> tuple:
        """Records of the page currently shown."""
        return self.last_result.items if self.last_result else ()

    def set_filter(self, name: str, value: str | None) -> asyncio.Task:
        """
        Change one filter and fetch its first page.

        Args:
            name: One of status, category, project_name, search.
            value: New value; "" or None clears the filter.
        """
        self.params = self.params.with_filter(name, value)
        return self._dispatch()

    def set_page(self, page: int) -> asyncio.Task:
        """Go to a page, clamped to [1, total_pages] once the total is known."""
        page = max(page, 1)
        if self.last_result and self.last_result.total_pages >= 1:
            page = min(page, self.last_result.total_pages)
        self.params = self.params.with_page(page)
        return self._dispatch()

    def set_page_size(self, page_size: int) -> asyncio.Task:
        """Change rows per page and fetch the first page."""
        self.params = self.params.with_page_size(page_size)
        return self._dispatch()

    def refresh(self) -> asyncio.Task:
        """Fetch the current parameters again."""
        return self._dispatch()

    def apply(self, params: QueryParameters) -> asyncio.Task:
        """Replace every parameter at once, e.g. to open a saved view, and fetch."""
        self.params = params
        return self._dispatch()

    def next_page(self) -> asyncio.Task | None:
        """Go forward one page when the current result says one exists."""
        if not (self.last_result and self.last_result.has_next):
            return None
        return self.set_page(self.params.page + 1)

    def previous_page(self) -> asyncio.Task | None:
        """Go back one page when the current result says one exists."""
        if not (self.last_result and self.last_result.has_prev):
            return None
        return self.set_page(self.params.page - 1)

    async def drain(self) -> None:
        """Wait for every outstanding fetch to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def export(self) -> ExportResult | None:
        """
        Download the spreadsheet for the current filters (all pages).

        Does not touch last_result or status. Failures are recorded in
        export_error and None is returned.
        """
        self.export_error = None
        try:
            payload = await self._client.get_bytes(EXPORT_PATH, params=self.params.filters())
        except ApiError as e:
            LOG.error("Export failed: %s", e.message)
            self.export_error = "Failed to export data"
            return None
        return ExportResult(
            content=payload.content,
            filename=payload.filename or config.EXPORT_FILENAME,
        )

    def summary(self) -> str:
        """Row count summary, e.g. 'Showing 50 of 1,234 records'."""
        total = self.last_result.total_count if self.last_result else 0
        return f"Showing {len(self.items)} of {total:,} records"

    def snapshot(self) -> dict[str, Any]:
        """Return the JSON-compatible view of the state for rendering."""
        result = self.last_result or PageResult()
        return {
            "params": self.params.to_dict(),
            **result.to_dict(),
            "status": self.status.value,
            "error_message": self.error_message,
            "summary": self.summary(),
        }

    def _dispatch(self) -> asyncio.Task:
        self.request_epoch += 1
        self.status = QueryStatus.LOADING
        task = asyncio.create_task(self._fetch(self.request_epoch, self.params))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _fetch(self, epoch: int, params: QueryParameters) -> None:
        try:
            payload = await self._client.get_json(DATA_PATH, params=params.to_query())
            result = PageResult.from_response(payload)
        except (DashboardError, TypeError, ValueError) as e:
            if epoch != self.request_epoch:
                LOG.debug("Ignoring failure of stale request epoch:%s", epoch)
                return
            LOG.error("Error fetching data: %s", e)
            self.status = QueryStatus.ERROR
            self.error_message = _LOAD_FAILED
            return

        if epoch != self.request_epoch:
            LOG.debug(
                "Discarding stale response epoch:%s current:%s", epoch, self.request_epoch
            )
            return
        self.last_result = result
        self.status = QueryStatus.IDLE
        self.error_message = None
        LOG.info(
            "Loaded page %s/%s - %s records",
            params.page,
            result.total_pages,
            len(result.items),
        )


class DashboardState:
    """
    Loads the analytics and chart payloads for the overview page.

    Attributes:
        snapshot: Latest applied payloads, or None.
        is_loading: True while the latest load is in flight.
        error_message: Set when the latest load failed.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self._epoch = 0
        self.snapshot: DashboardSnapshot | None = None
        self.is_loading = False
        self.error_message: str | None = None

    async def load(self) -> DashboardSnapshot | None:
        """Fetch both payloads concurrently; returns the snapshot when applied."""
        self._epoch += 1
        epoch = self._epoch
        self.is_loading = True
        try:
            analytics, charts = await asyncio.gather(
                self._client.get_json(ANALYTICS_PATH),
                self._client.get_json(CHARTS_PATH),
            )
        except DashboardError as e:
            if epoch == self._epoch:
                LOG.error("Error fetching dashboard data: %s", e)
                self.error_message = "Failed to load dashboard data"
                self.is_loading = False
            return None

        if epoch != self._epoch:
            return None
        self.snapshot = DashboardSnapshot(analytics=analytics or {}, charts=charts or {})
        self.error_message = None
        self.is_loading = False
        return self.snapshot
