"""
PO Dashboard client: session and data-query layer for the purchase-order
management dashboard.

This package authenticates a user against the dashboard API, persists the
session between runs, and drives the paginated, filterable merged-data view
and the PO/acceptance file uploads.

Subpackages:
- lib: Logging, disk cache and path utilities
- models: Session, query and upload data models
- services: HTTP adapter, credential store, session and upload coordinators

Main entry points:
- app.create_app(): Wire the store, client and coordinators together
- app.main(): The `po-dashboard` command line interface
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
