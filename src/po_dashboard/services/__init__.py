"""
Service layer for the PO Dashboard client.

Available Services:
- SessionStore: persisted credential slot
- ApiClient: HTTP adapter attaching the credential and mapping errors
- SessionController: login, logout and start-up restore
- UploadCoordinator: validated PO/acceptance file uploads
"""

from po_dashboard.services.api_client import ApiClient, BinaryPayload, ResponseKind
from po_dashboard.services.session_controller import (
    AccessGate,
    LoginResult,
    SessionController,
)
from po_dashboard.services.session_store import SessionStore
from po_dashboard.services.upload_coordinator import UploadCoordinator, validate

__all__ = [
    "AccessGate",
    "ApiClient",
    "BinaryPayload",
    "LoginResult",
    "ResponseKind",
    "SessionController",
    "SessionStore",
    "UploadCoordinator",
    "validate",
]
