# =============================================================================
# Message Service Main Package - Dynamic Version Loading
# =============================================================================
"""
Message Service - Main Package

Version is loaded from installed package metadata via importlib.metadata,
falling back to pyproject.toml for source checkouts.
"""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


# =============================================================================
# VERSION LOADING
# =============================================================================
def _get_version() -> str:
    """
    Get package version from installed metadata.

    Falls back to reading pyproject.toml if the package is not installed.
    """
    try:
        return version("message-service")
    except PackageNotFoundError:
        pass

    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    if pyproject_path.exists():
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
            return data["project"]["version"]

    return "0.0.0-unknown"


__version__: str = _get_version()
__description__: str = "Multi-tenant message service with full-text search"
__author__: str = "Message Service Team"

# =============================================================================
# EXPORTS
# =============================================================================
__all__ = [
    "__version__",
    "__description__",
    "__author__",
]
