"""
Utility functions for merged record presentation and pagination.

Provides helpers for:
- Date parsing and formatting (multiple formats supported)
- Currency formatting
- Mapping a record status onto a display category
- Computing the window of page numbers shown by a pager
"""

from datetime import date, datetime

from po_dashboard.models.common import Record


def parse_date(date_str: str | None) -> datetime | None:
    """
    Parse a date string to a datetime object.

    Args:
        date_str: ISO date or datetime (e.g., "2024-12-25T00:00:00"),
            or m/d/y (e.g., "12/25/2024").

    Returns:
        datetime object if parsing succeeds, None otherwise
    """
    if date_str:
        date_str = date_str.strip()
    if not date_str:
        return None

    try:
        return datetime.fromisoformat(date_str)
    except ValueError:
        pass

    for fmt in ("%m/%d/%Y", "%m/%d/%y"):
        try:
            return datetime.strptime(date_str, fmt)
        except ValueError:
            pass

    return None


def format_date(value: str | date | None) -> str:
    """Format a record date as MM/DD/YYYY, or '-' when missing or unreadable."""
    parsed = value if isinstance(value, date) else parse_date(value)
    if not parsed:
        return "-"
    return parsed.strftime("%m/%d/%Y")


def format_currency(amount: float | int | str | None, symbol: str = "$") -> str:
    """
    Format an amount as whole currency units.

    Args:
        amount: Numeric amount. Missing or zero amounts render as '$0'.
        symbol: Currency symbol prefix.

    Returns:
        Formatted string like '$1,235'.
    """
    if not amount:
        return f"{symbol}0"
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return f"{symbol}0"
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.0f}"


def truncate(text: str | None, limit: int = 50) -> str:
    """Shorten text to limit characters with a trailing ellipsis, '-' when empty."""
    if not text:
        return "-"
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def status_category(status: str | None) -> str:
    """
    Select the display category for a record status.

    Returns:
        One of 'closed', 'pending' or 'cancelled'. Unknown statuses are
        treated as pending; a missing status as cancelled.
    """
    if not status:
        return "cancelled"
    normalized = status.lower()
    if "closed" in normalized:
        return "closed"
    if "pending" in normalized:
        return "pending"
    if "cancelled" in normalized:
        return "cancelled"
    return "pending"


def record_category(record: Record) -> str:
    """Display category for a merged record, read from its status field."""
    return status_category(record.get("status"))


def visible_page_window(current: int, total: int, window_size: int = 5) -> list[int]:
    """
    Return the page numbers a pager should show around the current page.

    The window is centred on current where possible and shifted to stay
    inside [1, total].

    Args:
        current: Current page (clamped into range).
        total: Total number of pages.
        window_size: Maximum number of page links.

    Returns:
        Ascending list of at most window_size page numbers; empty when
        there are no pages.
    """
    if total < 1 or window_size < 1:
        return []
    current = min(max(current, 1), total)
    start = max(current - window_size // 2, 1)
    end = min(start + window_size - 1, total)
    start = max(end - window_size + 1, 1)
    return list(range(start, end + 1))
