"""
Runtime configuration for the PO Dashboard client.

Values are read from the environment once at import time. Settings bundles
them so the application factory and tests can override individual values.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from po_dashboard.lib import paths

API_URL = os.getenv("PO_DASHBOARD_API_URL", "http://localhost:8000")
REQUEST_TIMEOUT = float(os.getenv("PO_DASHBOARD_TIMEOUT", "30"))
PAGE_SIZE = int(os.getenv("PO_DASHBOARD_PAGE_SIZE", "50"))
SESSION_DIR = Path(
    os.getenv(
        "PO_DASHBOARD_SESSION_DIR",
        str(paths.temp_dir() / "po_dashboard_session"),
    )
)

# Upload limits
ALLOWED_UPLOAD_EXTENSIONS = frozenset({".csv", ".xlsx", ".xls"})
MAX_UPLOAD_BYTES = 50 * 1024 * 1024
MESSAGE_CLEAR_DELAY = 5.0

EXPORT_FILENAME = "filtered_merged_po_data.xlsx"


@dataclass
class Settings:
    """
    Resolved client settings.

    Attributes:
        api_url: Base URL of the dashboard API.
        timeout: Per-request timeout in seconds.
        page_size: Default number of rows per page.
        session_dir: Directory holding the persisted credential.
    """

    api_url: str = API_URL
    timeout: float = REQUEST_TIMEOUT
    page_size: int = PAGE_SIZE
    session_dir: Path = field(default_factory=lambda: SESSION_DIR)
