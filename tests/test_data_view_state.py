"""Tests for the merged data view state machine."""

import asyncio

import httpx
import pytest
import pytest_asyncio

from conftest import page_payload
from po_dashboard.models.common import PageResult, QueryParameters, QueryStatus
from po_dashboard.state import DataViewState


def _pages(total_pages: int = 10):
    """Handler answering each page with one record named after the request."""

    def handler(request: httpx.Request) -> httpx.Response:
        params = request.url.params
        page = int(params.get("page", 1))
        record = {"po_id": f"PO-{page}", "status": params.get("status", "Pending AC80%")}
        return httpx.Response(
            200,
            json=page_payload(
                [record], total_count=total_pages * 50, total_pages=total_pages, page=page
            ),
        )

    return handler


class GatedPages:
    """Holds each response until the test releases it, keyed by search text."""

    def __init__(self) -> None:
        self.gates: dict[str, asyncio.Event] = {}
        self.responses: dict[str, httpx.Response] = {}

    def hold(self, key: str, response: httpx.Response | None = None) -> None:
        self.gates[key] = asyncio.Event()
        self.responses[key] = response or httpx.Response(
            200, json=page_payload([{"po_id": key}], total_pages=1)
        )

    def release(self, key: str) -> None:
        self.gates[key].set()

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        key = request.url.params.get("search")
        await self.gates[key].wait()
        return self.responses[key]


@pytest_asyncio.fixture
async def view(client) -> DataViewState:
    return DataViewState(client, page_size=50)


class TestFetchSequencing:
    @pytest.mark.asyncio
    async def test_out_of_order_responses_keep_latest(self, view, api):
        gated = GatedPages()
        gated.hold("A")
        gated.hold("B")
        api.route("GET", "/api/merged-data", gated)

        task_a = view.set_filter("search", "A")
        task_b = view.set_filter("search", "B")
        gated.release("B")
        await task_b
        assert view.last_result.items[0]["po_id"] == "B"

        gated.release("A")
        await task_a
        assert view.last_result.items[0]["po_id"] == "B"
        assert view.status is QueryStatus.IDLE
        assert view.request_epoch == 2

    @pytest.mark.asyncio
    async def test_stale_response_arriving_first_is_discarded(self, view, api):
        gated = GatedPages()
        gated.hold("A")
        gated.hold("B")
        api.route("GET", "/api/merged-data", gated)

        task_a = view.set_filter("search", "A")
        task_b = view.set_filter("search", "B")
        gated.release("A")
        await task_a

        assert view.last_result is None
        assert view.status is QueryStatus.LOADING

        gated.release("B")
        await task_b
        assert view.last_result.items[0]["po_id"] == "B"
        assert view.status is QueryStatus.IDLE

    @pytest.mark.asyncio
    async def test_stale_failure_does_not_change_status(self, view, api):
        gated = GatedPages()
        gated.hold("A", httpx.Response(500))
        gated.hold("B")
        api.route("GET", "/api/merged-data", gated)

        task_a = view.set_filter("search", "A")
        task_b = view.set_filter("search", "B")
        gated.release("B")
        await task_b
        gated.release("A")
        await task_a

        assert view.status is QueryStatus.IDLE
        assert view.error_message is None
        assert view.last_result.items[0]["po_id"] == "B"

    @pytest.mark.asyncio
    async def test_many_overlapping_dispatches(self, view, api):
        gated = GatedPages()
        keys = [f"q{n}" for n in range(6)]
        for key in keys:
            gated.hold(key)
        api.route("GET", "/api/merged-data", gated)

        tasks = [view.set_filter("search", key) for key in keys]
        for key in reversed(keys):
            gated.release(key)
        await asyncio.gather(*tasks)

        assert view.last_result.items[0]["po_id"] == "q5"

    @pytest.mark.asyncio
    async def test_status_is_loading_on_dispatch(self, view, api):
        api.route("GET", "/api/merged-data", _pages())

        task = view.refresh()

        assert view.status is QueryStatus.LOADING
        assert view.is_loading
        await task
        assert view.status is QueryStatus.IDLE

    @pytest.mark.asyncio
    async def test_refresh_bumps_epoch_and_keeps_page(self, view, api):
        api.route("GET", "/api/merged-data", _pages())
        await view.set_page(3)

        await view.refresh()

        assert view.request_epoch == 2
        assert view.params.page == 3
        assert api.requests[-1].url.params["page"] == "3"

    @pytest.mark.asyncio
    async def test_drain_waits_for_outstanding_fetches(self, view, api):
        api.route("GET", "/api/merged-data", _pages())

        view.set_filter("status", "CLOSED")
        view.set_filter("category", "Survey")
        await view.drain()

        assert view.status is QueryStatus.IDLE
        assert len(api.requests) == 2


class TestFilters:
    @pytest.mark.asyncio
    async def test_filter_change_resets_page(self, view, api):
        api.route("GET", "/api/merged-data", _pages())
        await view.set_page(5)
        assert view.params.page == 5

        task = view.set_filter("status", "CLOSED")

        assert view.params.page == 1
        await task
        params = api.requests[-1].url.params
        assert params["page"] == "1"
        assert params["status"] == "CLOSED"

    @pytest.mark.asyncio
    async def test_empty_filters_are_omitted(self, view, api):
        api.route("GET", "/api/merged-data", _pages())

        await view.set_filter("search", "")
        await view.set_filter("status", "CLOSED")
        await view.set_filter("status", "")

        for request in api.requests:
            assert "search" not in request.url.params
        assert "status" not in api.requests[-1].url.params
        assert set(api.requests[-1].url.params.keys()) == {"page", "per_page"}

    @pytest.mark.asyncio
    async def test_all_filters_are_sent(self, view, api):
        api.route("GET", "/api/merged-data", _pages())

        view.set_filter("status", "Pending ACPAC")
        view.set_filter("category", "Survey")
        view.set_filter("project_name", "North Grid")
        view.set_filter("search", "PO-88")
        await view.drain()

        assert dict(api.requests[-1].url.params) == {
            "page": "1",
            "per_page": "50",
            "status": "Pending ACPAC",
            "category": "Survey",
            "project_name": "North Grid",
            "search": "PO-88",
        }

    @pytest.mark.asyncio
    async def test_unknown_filter_is_rejected(self, view):
        with pytest.raises(ValueError):
            view.set_filter("po_id", "1")

    @pytest.mark.asyncio
    async def test_page_size_change_resets_page(self, view, api):
        api.route("GET", "/api/merged-data", _pages())
        await view.set_page(4)

        await view.set_page_size(100)

        assert view.params.page == 1
        assert api.requests[-1].url.params["per_page"] == "100"

    @pytest.mark.asyncio
    async def test_apply_replaces_all_params(self, view, api):
        api.route("GET", "/api/merged-data", _pages())

        await view.apply(QueryParameters(category="Service", page=2, page_size=10))

        assert dict(api.requests[-1].url.params) == {
            "page": "2",
            "per_page": "10",
            "category": "Service",
        }


class TestPagination:
    @pytest.mark.asyncio
    async def test_page_is_clamped_to_known_total(self, view, api):
        api.route("GET", "/api/merged-data", _pages(total_pages=3))
        await view.refresh()

        await view.set_page(10)
        assert view.params.page == 3

        await view.set_page(0)
        assert view.params.page == 1

    @pytest.mark.asyncio
    async def test_page_is_not_clamped_before_first_result(self, view, api):
        api.route("GET", "/api/merged-data", _pages(total_pages=20))

        await view.set_page(12)

        assert view.params.page == 12

    @pytest.mark.asyncio
    async def test_next_and_previous(self, view, api):
        api.route("GET", "/api/merged-data", _pages(total_pages=2))
        await view.refresh()

        assert view.previous_page() is None
        await view.next_page()
        assert view.params.page == 2
        assert view.next_page() is None
        await view.previous_page()
        assert view.params.page == 1

    @pytest.mark.asyncio
    async def test_result_metadata(self, view, api):
        api.route("GET", "/api/merged-data", _pages(total_pages=4))

        await view.set_page(2)

        assert view.last_result == PageResult(
            items=({"po_id": "PO-2", "status": "Pending AC80%"},),
            total_count=200,
            total_pages=4,
            has_next=True,
            has_prev=True,
        )
        assert view.summary() == "Showing 1 of 200 records"


class TestErrors:
    @pytest.mark.asyncio
    async def test_server_error_sets_error_status(self, view, api):
        api.route("GET", "/api/merged-data", lambda r: httpx.Response(500))

        await view.refresh()

        assert view.status is QueryStatus.ERROR
        assert view.error_message == "Failed to load data"

    @pytest.mark.asyncio
    async def test_error_keeps_previous_result(self, view, api):
        api.route("GET", "/api/merged-data", _pages())
        await view.refresh()
        previous = view.last_result

        def down(request):
            raise httpx.ConnectError("down", request=request)

        api.route("GET", "/api/merged-data", down)
        await view.set_page(2)

        assert view.status is QueryStatus.ERROR
        assert view.last_result is previous

    @pytest.mark.asyncio
    async def test_retry_after_error_recovers(self, view, api):
        api.route("GET", "/api/merged-data", lambda r: httpx.Response(502))
        await view.refresh()
        api.route("GET", "/api/merged-data", _pages())

        await view.refresh()

        assert view.status is QueryStatus.IDLE
        assert view.error_message is None

    @pytest.mark.asyncio
    async def test_malformed_page_is_an_error(self, view, api):
        api.route("GET", "/api/merged-data", lambda r: httpx.Response(200, json={"items": 3}))

        await view.refresh()

        assert view.status is QueryStatus.ERROR
        assert view.last_result is None

    @pytest.mark.asyncio
    async def test_undecodable_body_sets_error_status(self, view, api):
        api.route(
            "GET",
            "/api/merged-data",
            lambda r: httpx.Response(
                200, headers={"content-encoding": "gzip"}, content=b"not gzip"
            ),
        )

        await view.set_filter("status", "CLOSED")

        assert view.status is QueryStatus.ERROR
        assert view.error_message == "Failed to load data"
        assert not view.is_loading

    @pytest.mark.asyncio
    async def test_unauthorized_ends_session_and_sets_error(
        self, view, api, controller, store, signed_in
    ):
        controller.bootstrap()
        api.route("GET", "/api/merged-data", lambda r: httpx.Response(401))

        await view.refresh()

        assert view.status is QueryStatus.ERROR
        assert controller.identity is None
        assert store.restore() is None


class TestExport:
    @pytest.mark.asyncio
    async def test_export_uses_filters_without_pagination(self, view, api):
        api.route("GET", "/api/merged-data", _pages())
        api.route(
            "GET",
            "/api/merged-data/export",
            lambda r: httpx.Response(200, content=b"xlsx-bytes"),
        )
        view.set_filter("status", "CLOSED")
        view.set_page(3)
        await view.drain()
        before = view.last_result

        result = await view.export()

        assert result.content == b"xlsx-bytes"
        assert result.filename == "filtered_merged_po_data.xlsx"
        assert dict(api.requests_to("/api/merged-data/export")[0].url.params) == {
            "status": "CLOSED"
        }
        assert view.last_result is before
        assert view.status is QueryStatus.IDLE

    @pytest.mark.asyncio
    async def test_export_uses_server_filename(self, view, api):
        api.route(
            "GET",
            "/api/merged-data/export",
            lambda r: httpx.Response(
                200,
                content=b"x",
                headers={"content-disposition": "attachment; filename=merged_2024.xlsx"},
            ),
        )

        result = await view.export()

        assert result.filename == "merged_2024.xlsx"

    @pytest.mark.asyncio
    async def test_export_failure_is_captured(self, view, api):
        api.route("GET", "/api/merged-data/export", lambda r: httpx.Response(500))

        assert await view.export() is None
        assert view.export_error == "Failed to export data"
        assert view.status is QueryStatus.IDLE


class TestSnapshot:
    @pytest.mark.asyncio
    async def test_snapshot_shape(self, view, api):
        api.route("GET", "/api/merged-data", _pages(total_pages=2))

        await view.set_filter("category", "Survey")

        snapshot = view.snapshot()
        assert snapshot["params"]["category"] == "Survey"
        assert snapshot["params"]["page"] == 1
        assert snapshot["items"] == [{"po_id": "PO-1", "status": "Pending AC80%"}]
        assert snapshot["total_pages"] == 2
        assert snapshot["has_next"] is True
        assert snapshot["status"] == "idle"
        assert snapshot["summary"] == "Showing 1 of 100 records"

    @pytest.mark.asyncio
    async def test_snapshot_before_first_fetch(self, view):
        snapshot = view.snapshot()

        assert snapshot["items"] == []
        assert snapshot["status"] == "idle"
        assert snapshot["summary"] == "Showing 0 of 0 records"
