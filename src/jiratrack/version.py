"""Version resolution for jiratrack."""

from __future__ import annotations

from functools import lru_cache
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as package_version


@lru_cache(maxsize=1)
def get_version() -> str:
    """Return the installed jiratrack version, or a placeholder for source runs."""
    try:
        return package_version("jiratrack")
    except PackageNotFoundError:
        return "0.0.0+unknown"
