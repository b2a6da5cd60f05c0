"""
Path utilities for the PO Dashboard client.
"""

import tempfile
from pathlib import Path


def temp_dir() -> Path:
    """
    Return the system temporary directory as a Path.

    Returns:
        Path object pointing to the system temp directory.
    """
    return Path(tempfile.gettempdir())


def extension(file_name: str) -> str:
    """Return the lower-cased extension of a file name, including the dot."""
    return Path(file_name).suffix.lower()
