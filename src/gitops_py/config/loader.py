"""Configuration loading from pyproject.toml."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from gitops_py.config.models import GitOpsConfig
from gitops_py.exceptions import ConfigError, ConfigNotFoundError, ConfigValidationError

logger = logging.getLogger(__name__)

TOOL_SECTION = "gitops-py"


def find_pyproject_toml(start: Path | None = None) -> Path:
    """Find pyproject.toml in ``start`` or one of its parents.

    Raises:
        ConfigNotFoundError: If no pyproject.toml is found
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(f"No pyproject.toml found in {current} or its parents")


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    """Read and parse a pyproject.toml file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"File not found: {path}")
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e


def extract_gitops_config(pyproject: dict[str, Any]) -> dict[str, Any]:
    """Return the [tool.gitops-py] table, or an empty dict."""
    return pyproject.get("tool", {}).get(TOOL_SECTION, {})


def load_config(path: Path | None = None) -> GitOpsConfig:
    """Load and validate the configuration for the project at ``path``.

    Raises:
        ConfigNotFoundError: If no pyproject.toml is found
        ConfigValidationError: If the [tool.gitops-py] table is invalid
    """
    pyproject_path = find_pyproject_toml(path)
    data = extract_gitops_config(load_pyproject_toml(pyproject_path))
    if not data:
        logger.debug("No [tool.%s] section in %s, using defaults", TOOL_SECTION, pyproject_path)

    try:
        return GitOpsConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid [tool.{TOOL_SECTION}] configuration:\n{e}") from e


def get_project_version(path: Path | None = None) -> str:
    """Get the declared project version.

    Reads [project].version, falling back to [tool.poetry].version.

    Raises:
        ConfigValidationError: If no static version is declared
    """
    pyproject_path = find_pyproject_toml(path)
    data = load_pyproject_toml(pyproject_path)
    version = data.get("project", {}).get("version") or (
        data.get("tool", {}).get("poetry", {}).get("version")
    )
    if not version:
        raise ConfigValidationError(f"{pyproject_path} declares no [project].version")
    return str(version)
