"""
Application wiring and the `po-dashboard` command line entry point.

create_app() builds one SessionStore, one ApiClient bound to it, and the
coordinators that share that client. main() drives them from the shell:

    po-dashboard login alice@example.com
    po-dashboard data --status CLOSED --page 2
    po-dashboard export -o report.xlsx
    po-dashboard upload --kind acceptance acceptances.xlsx
"""

import argparse
import asyncio
import getpass
import json
import sys
from dataclasses import dataclass
from pathlib import Path

import httpx

from po_dashboard import config
from po_dashboard.lib import logs
from po_dashboard.models.common import CATEGORY_OPTIONS, STATUS_OPTIONS, QueryParameters
from po_dashboard.models.upload import FileKind, UploadOutcome
from po_dashboard.services import (
    ApiClient,
    SessionController,
    SessionStore,
    UploadCoordinator,
)
from po_dashboard.state import DashboardState, DataViewState
from po_dashboard.utils import (
    format_currency,
    format_date,
    record_category,
    truncate,
    visible_page_window,
)

LOG = logs.logger(__file__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNAUTHENTICATED = 2


@dataclass
class DashboardApp:
    """Every component of one client session, sharing a single ApiClient."""

    store: SessionStore
    client: ApiClient
    session: SessionController
    data_view: DataViewState
    uploads: UploadCoordinator
    dashboard: DashboardState

    async def aclose(self) -> None:
        """Close network and disk resources."""
        await self.client.aclose()
        self.store.close()


def create_app(
    settings: config.Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> DashboardApp:
    """
    Wire the client components together and restore the saved session.

    Args:
        settings: Overrides for the environment configuration.
        transport: Optional httpx transport (used by tests).
    """
    settings = settings or config.Settings()
    store = SessionStore(settings.session_dir)
    client = ApiClient(
        store, settings.api_url, timeout=settings.timeout, transport=transport
    )
    session = SessionController(client, store)
    session.bootstrap()
    return DashboardApp(
        store=store,
        client=client,
        session=session,
        data_view=DataViewState(client, page_size=settings.page_size),
        uploads=UploadCoordinator(client, message_clear_delay=None),
        dashboard=DashboardState(client),
    )


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--status", choices=STATUS_OPTIONS)
    parser.add_argument("--category", choices=CATEGORY_OPTIONS)
    parser.add_argument("--project", dest="project_name")
    parser.add_argument("--search")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="po-dashboard",
        description="Purchase order dashboard client",
    )
    parser.add_argument("--api-url", default=config.API_URL, help="API base URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log requests")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in and remember the session")
    login.add_argument("username", help="Email or username")
    login.add_argument("--password", help="Password (prompted when omitted)")

    sub.add_parser("logout", help="Forget the saved session")
    sub.add_parser("whoami", help="Show the signed-in user")

    data = sub.add_parser("data", help="List merged PO/acceptance records")
    _add_filter_arguments(data)
    data.add_argument("--page", type=_positive_int, default=1)
    data.add_argument("--page-size", type=_positive_int, default=config.PAGE_SIZE)
    data.add_argument("--json", action="store_true", help="Print the raw snapshot")

    export = sub.add_parser("export", help="Download the filtered data as Excel")
    _add_filter_arguments(export)
    export.add_argument("-o", "--output", type=Path, help="Output file")

    upload = sub.add_parser("upload", help="Upload a PO or acceptance file")
    upload.add_argument(
        "--kind",
        choices=[kind.value for kind in FileKind],
        default=FileKind.PURCHASE_ORDER.value,
    )
    upload.add_argument("file", type=Path)

    sub.add_parser("dashboard", help="Show headline statistics")
    return parser


def _params(args: argparse.Namespace) -> QueryParameters:
    return QueryParameters(
        status=args.status or None,
        category=args.category or None,
        project_name=args.project_name or None,
        search=args.search or None,
        page=getattr(args, "page", 1),
        page_size=getattr(args, "page_size", config.PAGE_SIZE),
    )


async def _cmd_data(app: DashboardApp, args: argparse.Namespace) -> int:
    view = app.data_view
    await view.apply(_params(args))

    if view.error_message:
        print(view.error_message, file=sys.stderr)
        return EXIT_FAILED
    if args.json:
        print(json.dumps(view.snapshot(), indent=2, default=str))
        return EXIT_OK

    for record in view.items:
        print(
            f"{str(record.get('po_id') or '-'):<16} "
            f"{truncate(record.get('project_name'), 24):<28} "
            f"{str(record.get('category') or '-'):<16} "
            f"{record_category(record):<10} "
            f"{format_currency(record.get('line_amount')):>14} "
            f"{format_date(record.get('ac_date')):>11}"
        )
    result = view.last_result
    print(view.summary())
    if result and result.total_pages > 1:
        pages = " ".join(
            f"[{page}]" if page == view.params.page else str(page)
            for page in visible_page_window(view.params.page, result.total_pages)
        )
        print(f"Page {view.params.page} of {result.total_pages}: {pages}")
    return EXIT_OK


async def _cmd_export(app: DashboardApp, args: argparse.Namespace) -> int:
    await app.data_view.apply(_params(args))
    result = await app.data_view.export()
    if result is None:
        print(app.data_view.export_error, file=sys.stderr)
        return EXIT_FAILED
    output = args.output or Path(result.filename)
    output.write_bytes(result.content)
    print(f"Saved {len(result.content):,} bytes to {output}")
    return EXIT_OK


async def _cmd_upload(app: DashboardApp, args: argparse.Namespace) -> int:
    if not args.file.is_file():
        print(f"No such file: {args.file}", file=sys.stderr)
        return EXIT_FAILED
    attempt = await app.uploads.submit(args.file, FileKind(args.kind))
    stream = sys.stdout if attempt.outcome is UploadOutcome.ACCEPTED else sys.stderr
    print(attempt.message, file=stream)
    return EXIT_OK if attempt.outcome is UploadOutcome.ACCEPTED else EXIT_FAILED


async def _cmd_dashboard(app: DashboardApp, args: argparse.Namespace) -> int:
    snapshot = await app.dashboard.load()
    if snapshot is None:
        print(app.dashboard.error_message, file=sys.stderr)
        return EXIT_FAILED
    if snapshot.is_empty:
        print("No data yet. Upload your PO and Acceptance files to get started.")
        return EXIT_OK
    print(f"Total records:   {snapshot.total_records:,}")
    print(f"Total value:     {format_currency(snapshot.total_value)}")
    print(f"Purchase orders: {snapshot.total_pos:,}")
    return EXIT_OK


_PROTECTED_COMMANDS = {
    "data": _cmd_data,
    "export": _cmd_export,
    "upload": _cmd_upload,
    "dashboard": _cmd_dashboard,
}


async def run(args: argparse.Namespace, app: DashboardApp) -> int:
    """Execute one parsed command against an application instance."""
    if args.command == "login":
        password = args.password or getpass.getpass("Password: ")
        result = await app.session.login(args.username, password)
        if not result.success:
            print(result.error, file=sys.stderr)
            return EXIT_FAILED
        print(f"Signed in as {app.session.identity.display_name or args.username}")
        return EXIT_OK

    if args.command == "logout":
        app.session.logout()
        print("Signed out")
        return EXIT_OK

    if not app.session.is_authenticated:
        print("Not signed in. Run `po-dashboard login` first.", file=sys.stderr)
        return EXIT_UNAUTHENTICATED

    if args.command == "whoami":
        identity = app.session.identity
        print(f"{identity.display_name} <{identity.email}> (id {identity.id})")
        return EXIT_OK

    code = await _PROTECTED_COMMANDS[args.command](app, args)
    if not app.session.is_authenticated:
        print("Session expired. Please sign in again.", file=sys.stderr)
        return EXIT_UNAUTHENTICATED
    return code


async def _main(args: argparse.Namespace) -> int:
    app = create_app(config.Settings(api_url=args.api_url))
    LOG.debug("Running %s against %s", args.command, args.api_url)
    try:
        return await run(args, app)
    finally:
        await app.aclose()


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the `po-dashboard` console script."""
    args = _build_parser().parse_args(argv)
    if args.verbose:
        logs.set_level("DEBUG")
    return asyncio.run(_main(args))


if __name__ == "__main__":
    sys.exit(main())
