"""Changelog aggregation and writing.

Commits are grouped by type, then by scope, and rendered as a Markdown
section. New sections are inserted below a marker comment so the file
can carry a hand-written header above the generated entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from gitops_py.core.commits import format_commit_for_changelog, get_breaking_changes
from gitops_py.exceptions import ChangelogError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from gitops_py.config.models import CommitsConfig
    from gitops_py.core.commits import ParsedCommit

CHANGELOG_MARKER = "<!-- changelog -->"

_CHANGELOG_HEADER = f"""# Change Log

All notable changes to this project will be documented in this file.
See [Conventional Commits](https://conventionalcommits.org) for commit guidelines.

{CHANGELOG_MARKER}
"""


@dataclass(frozen=True)
class ChangelogEntry:
    scopes: tuple[str, ...]
    description: str
    breaking: bool = False


@dataclass(frozen=True)
class ChangelogGroup:
    type: str
    entries: tuple[ChangelogEntry, ...]


def aggregate_commits(commits: Iterable[ParsedCommit]) -> list[ChangelogGroup]:
    """Group commits by type, then by scopes.

    Types keep the order in which they are first seen, and so do scope
    groups within a type.
    """
    by_type: dict[str, dict[tuple[str, ...], list[ChangelogEntry]]] = {}
    for commit in commits:
        by_scope = by_type.setdefault(commit.type, {})
        by_scope.setdefault(commit.scopes, []).append(
            ChangelogEntry(commit.scopes, commit.description, commit.breaking)
        )

    return [
        ChangelogGroup(
            type=commit_type,
            entries=tuple(entry for entries in by_scope.values() for entry in entries),
        )
        for commit_type, by_scope in by_type.items()
    ]


def render_changelog_entry(
    commits: Sequence[ParsedCommit],
    tag_name: str,
    config: CommitsConfig,
    *,
    release_date: date | None = None,
) -> str:
    """Render one release section.

    Breaking changes are listed first. Types marked ``hidden`` are left
    out of the per-type sections but still show up as breaking changes.

    Args:
        commits: Classified commits in the changelog range
        tag_name: Prefixed version being released
        config: Commit type configuration (headers, hidden types)
        release_date: Date shown in the heading, today (UTC) by default

    Returns:
        Markdown text for the section
    """
    release_date = release_date or datetime.now(UTC).date()
    lines = [f"## [{tag_name}] - {release_date.isoformat()}", ""]

    breaking = get_breaking_changes(commits)
    if breaking:
        lines.append("### Breaking Changes")
        lines.append("")
        lines.extend(format_commit_for_changelog(commit) for commit in breaking)
        lines.append("")

    for group in aggregate_commits(commits):
        rule = config.types.get(group.type)
        if rule is not None and rule.hidden:
            continue
        header = rule.header if rule is not None and rule.header else group.type.capitalize()

        lines.append(f"### {header}")
        lines.append("")
        for entry in group.entries:
            scope = f"**{','.join(entry.scopes)}:** " if entry.scopes else ""
            lines.append(f"- {scope}{entry.description}")
        lines.append("")

    return "\n".join(lines)


def initialize_changelog(path: Path) -> None:
    """Create a new changelog holding only the header and the marker.

    Raises:
        ChangelogError: If the file already exists
    """
    if path.exists():
        raise ChangelogError(f"Changelog already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_CHANGELOG_HEADER)


def write_changelog(path: Path, entry: str) -> None:
    """Insert a rendered entry directly below the changelog marker.

    Raises:
        ChangelogError: If the file or the marker is missing
    """
    if not path.is_file():
        raise ChangelogError(f"Changelog not found: {path}. Run with --initial to create it.")

    content = path.read_text()
    head, marker, tail = content.partition(CHANGELOG_MARKER)
    if not marker:
        raise ChangelogError(f"Changelog {path} has no {CHANGELOG_MARKER} marker")

    updated = f"{head}{marker}\n\n{entry.rstrip()}\n"
    previous = tail.lstrip("\n")
    if previous:
        updated += f"\n{previous}"
    path.write_text(updated)
