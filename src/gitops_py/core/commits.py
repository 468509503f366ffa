"""Conventional commit parsing and classification.

Commit grammar, with the type token matched case-insensitively::

    [!]type[(scope[,scope]*)][!]: description

    optional body
    BREAKING CHANGE: what broke

Both ``!`` positions mark a breaking change, as does a body line that
starts with ``BREAKING CHANGE:``. A scope group may hold several
comma-separated scopes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gitops_py.core.version import BumpType
from gitops_py.exceptions import CommitParseError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

_SUBJECT_PATTERN = re.compile(
    r"^(?P<leading_bang>!)?"
    r"(?P<type>[A-Za-z][\w-]*)"
    r"(?:\((?P<scopes>[^():]*)\))?"
    r"(?P<trailing_bang>!)?"
    r": (?P<description>.*)$"
)

_BREAKING_PATTERN = re.compile(r"^BREAKING[ -]CHANGE:", re.MULTILINE)


@dataclass(frozen=True)
class ParsedCommit:
    """A commit message that matched the conventional commit grammar."""

    type: str
    description: str
    scopes: tuple[str, ...] = ()
    breaking: bool = False
    body: str | None = None
    raw: str = ""

    @property
    def scope_label(self) -> str | None:
        """Scopes joined for display, or None when there are none."""
        return ",".join(self.scopes) if self.scopes else None


def parse_commit(text: str) -> ParsedCommit:
    """Parse one raw commit message.

    Args:
        text: Full commit message (subject line plus optional body)

    Returns:
        The parsed commit

    Raises:
        CommitParseError: If the subject line does not match the grammar
    """
    message = text.strip()
    if not message:
        raise CommitParseError("Empty commit message", text)

    subject, _, rest = message.partition("\n")
    match = _SUBJECT_PATTERN.match(subject.rstrip())
    if not match:
        raise CommitParseError(f"Not a conventional commit: {subject!r}", text)

    description = match.group("description").strip()
    if not description:
        raise CommitParseError(f"Missing description: {subject!r}", text)

    scopes: tuple[str, ...] = ()
    if match.group("scopes"):
        scopes = tuple(s.strip() for s in match.group("scopes").split(",") if s.strip())

    body = rest.strip("\n").strip() or None

    breaking = bool(match.group("leading_bang") or match.group("trailing_bang"))
    if body and _BREAKING_PATTERN.search(body):
        breaking = True

    return ParsedCommit(
        type=match.group("type").lower(),
        description=description,
        scopes=scopes,
        breaking=breaking,
        body=body,
        raw=text,
    )


@dataclass(frozen=True)
class ClassificationResult:
    """Commits that count toward the release, plus one warning per dropped message."""

    commits: tuple[ParsedCommit, ...] = ()
    warnings: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.commits)


def classify_commits(
    raw_messages: Iterable[str],
    types: Mapping[str, object],
    *,
    silent: bool = False,
) -> ClassificationResult:
    """Parse messages and keep those whose type is configured.

    Messages that fail to parse, or whose type is not a key of ``types``,
    are dropped. Each drop adds a warning unless ``silent`` is set, which
    is used for the changelog pass after the version pass has already
    reported the same commits.

    Args:
        raw_messages: Commit messages in history order
        types: Configured commit types, keyed by lowercase type
        silent: Suppress warnings

    Returns:
        Surviving commits in input order and the collected warnings
    """
    commits: list[ParsedCommit] = []
    warnings: list[str] = []

    for text in raw_messages:
        try:
            parsed = parse_commit(text)
        except CommitParseError:
            if not silent:
                warnings.append(f"Unparseable commit: {text.strip()}")
            continue

        if parsed.type not in types:
            if not silent:
                warnings.append(f"Commit with unknown type: {text.strip()}")
            continue

        commits.append(parsed)

    return ClassificationResult(commits=tuple(commits), warnings=tuple(warnings))


def calculate_bump(commits: Iterable[ParsedCommit], weights: Mapping[str, BumpType]) -> BumpType:
    """Return the strongest bump requested by any commit.

    A breaking commit always means MAJOR, whatever its type's weight.
    Bumps are never added together.
    """
    bump = BumpType.NONE
    for commit in commits:
        if commit.breaking:
            return BumpType.MAJOR
        bump = max(bump, weights.get(commit.type, BumpType.NONE))
    return bump


def get_breaking_changes(commits: Sequence[ParsedCommit]) -> list[ParsedCommit]:
    return [commit for commit in commits if commit.breaking]


def format_commit_for_changelog(commit: ParsedCommit, *, include_scope: bool = True) -> str:
    """Format a commit as a Markdown list item."""
    parts = ["-"]
    if include_scope and commit.scopes:
        parts.append(f"**{commit.scope_label}:**")
    parts.append(commit.description)
    return " ".join(parts)
