"""
Version information for the Smart Account SDK.
"""
import importlib.metadata
import pathlib
from typing import Optional

import tomli

DISTRIBUTION_NAME = "smart-account-sdk"
FALLBACK_VERSION = "0.2.0"
PYPROJECT_PATH = pathlib.Path(__file__).resolve().parent.parent / "pyproject.toml"


def _version_from_pyproject(path: pathlib.Path) -> Optional[str]:
    """Read ``[project].version`` from a source checkout, or None when unavailable."""
    try:
        with path.open("rb") as f:
            project = tomli.load(f).get("project", {})
    except (OSError, tomli.TOMLDecodeError):
        return None
    if project.get("name") not in (None, DISTRIBUTION_NAME):
        return None
    return project.get("version")


def resolve_version(pyproject_path: pathlib.Path = PYPROJECT_PATH) -> str:
    """
    Installed distribution metadata wins; a source checkout falls back to its
    pyproject.toml, and anything else to FALLBACK_VERSION.
    """
    try:
        return importlib.metadata.version(DISTRIBUTION_NAME)
    except importlib.metadata.PackageNotFoundError:
        return _version_from_pyproject(pyproject_path) or FALLBACK_VERSION


__version__ = resolve_version()
