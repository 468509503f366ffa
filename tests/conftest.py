"""Shared fixtures for gitops-py tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from gitops_py.config.models import CommitsConfig
from gitops_py.core.version import BumpType, Tag, Version

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def weights() -> dict[str, BumpType]:
    """Default commit type weights."""
    return CommitsConfig().weights


@pytest.fixture
def base_tags() -> list[Tag]:
    """History with a single stable release, v1.2.3."""
    return [
        Tag.from_name("v1.2.2", 10, "v"),
        Tag.from_name("v1.2.3", 20, "v"),
    ]


@pytest.fixture
def base_version() -> Version:
    return Version(1, 2, 3)


@pytest.fixture
def sample_messages() -> list[str]:
    """Commit messages covering the grammar's variations."""
    return [
        "feat(api): add user endpoint",
        "fix(core, db): handle null response",
        "docs: update readme",
        "chore: bump dependencies",
        "feat!: redesign config format",
        "Updated the readme file",
        "wip: half done",
    ]


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A project directory with pyproject.toml and a [tool.gitops-py] section."""
    (tmp_path / "pyproject.toml").write_text(
        """\
[project]
name = "test-project"
version = "1.2.3"

[tool.gitops-py]
allow_dirty = false

[tool.gitops-py.version]
tag_prefix = "v"
version_files = ["README.md"]
"""
    )
    (tmp_path / "README.md").write_text("pip install test-project==1.2.3\n")
    return tmp_path
