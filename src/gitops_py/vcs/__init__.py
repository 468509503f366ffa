"""Version control integration."""

from __future__ import annotations

from gitops_py.vcs.git import GitRepository

__all__ = ["GitRepository"]
