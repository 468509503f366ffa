"""Project version replacement.

Updates the version in pyproject.toml and in any extra files the
project lists (typically a README with install instructions).

Formatting and comments are preserved by using targeted regex
replacement rather than full TOML parsing and rewriting.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from gitops_py.config.loader import find_pyproject_toml
from gitops_py.exceptions import ProjectError, VersionNotFoundError

if TYPE_CHECKING:
    from pathlib import Path

# [project] (PEP 621) first, then [tool.poetry]
_VERSION_SECTIONS = (r"\[project\]", r"\[tool\.poetry\]")

_VERSION_LINE = re.compile(r'^(version\s*=\s*)["\']([^"\']+)["\']', re.MULTILINE)


def _resolve(path: Path | None) -> Path:
    if path is None:
        return find_pyproject_toml()
    if path.is_dir():
        return find_pyproject_toml(path)
    return path


def _section(content: str, header: str) -> re.Match[str] | None:
    # The section body runs up to the next table header or EOF
    return re.search(rf"^{header}.*?(?=^\[|\Z)", content, re.MULTILINE | re.DOTALL)


def get_pyproject_version(path: Path | None = None) -> str:
    """Get the version from pyproject.toml.

    Args:
        path: Path to pyproject.toml or a directory to search from

    Raises:
        VersionNotFoundError: If no version is declared
    """
    pyproject_path = _resolve(path)
    content = pyproject_path.read_text()

    for header in _VERSION_SECTIONS:
        section = _section(content, header)
        if section:
            match = _VERSION_LINE.search(section.group(0))
            if match:
                return match.group(2)

    raise VersionNotFoundError(
        f"Could not find version in {pyproject_path}. "
        "Expected [project].version or [tool.poetry].version."
    )


def update_pyproject_version(path: Path | None, new_version: str) -> Path:
    """Set the version in pyproject.toml.

    Args:
        path: Path to pyproject.toml or a directory containing it
        new_version: Version string without tag prefix

    Returns:
        Path to the updated file

    Raises:
        VersionNotFoundError: If no version is declared
        ProjectError: If the file already holds ``new_version``
    """
    pyproject_path = _resolve(path)
    content = pyproject_path.read_text()

    for header in _VERSION_SECTIONS:
        section = _section(content, header)
        if not section or not _VERSION_LINE.search(section.group(0)):
            continue

        updated_section = _VERSION_LINE.sub(rf'\g<1>"{new_version}"', section.group(0), count=1)
        if updated_section == section.group(0):
            raise ProjectError(
                f"Version in {pyproject_path} was not updated. It may already be {new_version}."
            )
        start, end = section.span()
        pyproject_path.write_text(content[:start] + updated_section + content[end:])
        return pyproject_path

    raise VersionNotFoundError(
        f"Could not find version to update in {pyproject_path}. "
        "Expected [project].version or [tool.poetry].version."
    )


def replace_version_in_file(file_path: Path, current_version: str, new_version: str) -> int:
    """Replace every standalone mention of ``current_version`` in a file.

    ``1.2.3`` matches in ``pkg==1.2.3`` or ``v1.2.3`` but not inside
    ``11.2.3`` or ``1.2.30``.

    Returns:
        Number of replacements made

    Raises:
        ProjectError: If the file does not exist
        VersionNotFoundError: If the file does not mention the current version
    """
    if not file_path.is_file():
        raise ProjectError(f"Version file not found: {file_path}")

    content = file_path.read_text()
    pattern = rf"(?<![\d.]){re.escape(current_version)}(?![\d])"
    new_content, count = re.subn(pattern, new_version, content)

    if count == 0:
        raise VersionNotFoundError(f"Version {current_version} not found in {file_path}")

    file_path.write_text(new_content)
    return count
