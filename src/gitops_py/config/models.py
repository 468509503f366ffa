"""Configuration models for gitops-py.

The models mirror the ``[tool.gitops-py]`` table of ``pyproject.toml``.
Every field has a default, so an empty table is a valid configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gitops_py.core.version import BumpType, Version
from gitops_py.exceptions import VersionParseError

Weight = Literal["major", "minor", "patch", "none"]


class TypeRule(BaseModel):
    """How one commit type affects the version and the changelog."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    weight: Weight = "none"
    header: str | None = None
    hidden: bool = False

    @property
    def bump(self) -> BumpType:
        return BumpType.from_weight(self.weight)


DEFAULT_TYPES: dict[str, dict[str, Any]] = {
    "feat": {"weight": "minor", "header": "Features"},
    "fix": {"weight": "patch", "header": "Bug Fixes"},
    "perf": {"weight": "patch", "header": "Performance Improvements"},
    "refactor": {"header": "Refactoring"},
    "docs": {"header": "Documentation"},
    "revert": {"header": "Reverts"},
    "build": {"header": "Build", "hidden": True},
    "chore": {"header": "Chores", "hidden": True},
    "ci": {"header": "CI", "hidden": True},
    "style": {"header": "Style", "hidden": True},
    "test": {"header": "Tests", "hidden": True},
}


def _default_rules() -> dict[str, TypeRule]:
    return {name: TypeRule(**rule) for name, rule in DEFAULT_TYPES.items()}


class CommitsConfig(BaseModel):
    """Commit type table.

    Configured types are merged over :data:`DEFAULT_TYPES`, so a project
    only lists the types it adds or changes.
    """

    model_config = ConfigDict(extra="forbid")

    types: dict[str, TypeRule] = Field(default_factory=_default_rules)

    @field_validator("types", mode="before")
    @classmethod
    def _merge_with_defaults(cls, value: Any) -> dict[str, Any]:
        if not isinstance(value, dict):
            raise ValueError("types must be a table of commit type settings")

        merged: dict[str, Any] = dict(DEFAULT_TYPES)
        for name, rule in value.items():
            key = str(name).strip().lower()
            if not key:
                raise ValueError("commit type names must not be empty")
            merged[key] = rule
        return merged

    @property
    def weights(self) -> dict[str, BumpType]:
        """Plain mapping from commit type to bump weight."""
        return {name: rule.bump for name, rule in self.types.items()}


class ChangelogConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: Path = Path("CHANGELOG.md")


class VersionConfig(BaseModel):
    """Version and tag settings.

    Attributes:
        tag_prefix: Prefix of release tags (e.g. "v" for "v1.2.3")
        initial_version: Version for an initial release; defaults to the project version
        manage_project_version: Update [project].version in pyproject.toml
        version_files: Extra files (e.g. README.md) where the old version is replaced
    """

    model_config = ConfigDict(extra="forbid")

    tag_prefix: str = "v"
    initial_version: str | None = None
    manage_project_version: bool = True
    version_files: list[Path] = Field(default_factory=list)

    @field_validator("initial_version")
    @classmethod
    def _check_initial_version(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            Version.parse(value)
        except VersionParseError as e:
            raise ValueError(str(e)) from e
        return value


class GitOpsConfig(BaseModel):
    """Root configuration."""

    model_config = ConfigDict(extra="forbid")

    allow_dirty: bool = False
    commits: CommitsConfig = Field(default_factory=CommitsConfig)
    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    version: VersionConfig = Field(default_factory=VersionConfig)

    @property
    def tag_prefix(self) -> str:
        return self.version.tag_prefix

    @property
    def changelog_path(self) -> Path:
        return self.changelog.path
