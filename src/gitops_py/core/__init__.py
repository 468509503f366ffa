"""Core business logic for gitops-py.

This module contains the fundamental building blocks:
- Semantic version parsing and tag history queries
- Conventional commit parsing and classification
- Next-version determination
- Changelog aggregation and rendering
"""

from __future__ import annotations

from gitops_py.core.calculator import (
    DecisionOutcome,
    ReleaseOptions,
    VersionDecision,
    determine_new_version,
)
from gitops_py.core.changelog import (
    ChangelogEntry,
    ChangelogGroup,
    aggregate_commits,
    initialize_changelog,
    render_changelog_entry,
    write_changelog,
)
from gitops_py.core.commits import (
    ClassificationResult,
    ParsedCommit,
    calculate_bump,
    classify_commits,
    format_commit_for_changelog,
    get_breaking_changes,
    parse_commit,
)
from gitops_py.core.version import BumpType, Tag, TagHistory, Version, parse_version

__all__ = [
    # Version
    "BumpType",
    # Changelog
    "ChangelogEntry",
    "ChangelogGroup",
    # Commits
    "ClassificationResult",
    # Calculator
    "DecisionOutcome",
    "ParsedCommit",
    "ReleaseOptions",
    "Tag",
    "TagHistory",
    "Version",
    "VersionDecision",
    "aggregate_commits",
    "calculate_bump",
    "classify_commits",
    "determine_new_version",
    "format_commit_for_changelog",
    "get_breaking_changes",
    "initialize_changelog",
    "parse_commit",
    "parse_version",
    "render_changelog_entry",
    "write_changelog",
]
