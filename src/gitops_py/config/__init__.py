"""Configuration management for gitops-py."""

from __future__ import annotations

from gitops_py.config.loader import load_config
from gitops_py.config.models import (
    DEFAULT_TYPES,
    ChangelogConfig,
    CommitsConfig,
    GitOpsConfig,
    TypeRule,
    VersionConfig,
)

__all__ = [
    "DEFAULT_TYPES",
    "ChangelogConfig",
    "CommitsConfig",
    "GitOpsConfig",
    "TypeRule",
    "VersionConfig",
    "load_config",
]
