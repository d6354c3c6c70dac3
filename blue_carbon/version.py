"""
BlueCarbon Registry - Version Management
==========================================
Versioning semantico e build info (esposti da /health e `bluecarbon version`).
"""

import platform
from typing import NamedTuple


# ============================================================================
# VERSION INFO
# ============================================================================

class VersionInfo(NamedTuple):
    """Version information structure"""
    major: int
    minor: int
    patch: int
    prerelease: str = ""
    build: str = ""


# Current version (Semantic Versioning)
VERSION = VersionInfo(
    major=1,
    minor=0,
    patch=0,
    prerelease="",
    build=""
)

BUILD_DATE = "2026-10-18"
PYTHON_VERSION_MIN = "3.10"


def get_version_string() -> str:
    """
    Get version as string.

    Example:
        >>> get_version_string()
        '1.0.0'
    """
    version_str = f"{VERSION.major}.{VERSION.minor}.{VERSION.patch}"

    if VERSION.prerelease:
        version_str += f"-{VERSION.prerelease}"

    if VERSION.build:
        version_str += f"+{VERSION.build}"

    return version_str


def get_build_info() -> dict:
    """Build metadata"""
    return {
        "version": get_version_string(),
        "build_date": BUILD_DATE,
        "python": platform.python_version(),
        "python_min": PYTHON_VERSION_MIN,
    }


# ============================================================================
# EXPORT
# ============================================================================

__version__ = get_version_string()
__version_info__ = VERSION

__all__ = [
    "__version__",
    "__version_info__",
    "VERSION",
    "get_version_string",
    "get_build_info",
]
