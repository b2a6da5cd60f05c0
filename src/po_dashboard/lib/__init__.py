"""
Local library modules shared across the dashboard client.

Modules:
    logs: Logging utilities
    objects: JSON serialization helpers
    paths: Path utilities
    caches: Disk-backed key/value storage
"""

from po_dashboard.lib import caches, logs, objects, paths

__all__ = ["caches", "logs", "objects", "paths"]
