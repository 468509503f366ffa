"""Next-version determination.

Given the tag history, the classified commits since the last stable tag
and the release options, work out the version to release next.

Pre-release handling:

- A pre-release requested while another pre-release is already in
  flight keeps its numbers unless the new commits need a *higher* bump
  than the one that produced it. Only the identifier advances
  (``rc0`` -> ``rc1``).
- A stable release on top of an in-flight pre-release just drops the
  identifier (``1.3.0-rc1`` -> ``1.3.0``).

The bump that produced a pre-release is read from how its numbers differ
from the base tag. When that difference is not a single clean bump the
version is recomputed from the base.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from gitops_py.core.commits import calculate_bump
from gitops_py.core.version import BumpType, TagHistory, Version

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from gitops_py.core.commits import ParsedCommit
    from gitops_py.core.version import Tag

_RC_PATTERN = re.compile(r"^rc(\d+)$")


@dataclass(frozen=True)
class ReleaseOptions:
    """Flags for a single release run.

    Attributes:
        pre_release: Manual pre-release identifier (e.g. "beta")
        rc: Manage an incrementing ``rcN`` identifier; overrides pre_release
        build: Build metadata appended as ``+build``
        force_patch: Bump patch even when no commit asks for a bump
        no_major: Turn major bumps into minor bumps
        initial: First release; no base tag is needed
    """

    pre_release: str | None = None
    rc: bool = False
    build: str | None = None
    force_patch: bool = False
    no_major: bool = False
    initial: bool = False

    @property
    def requests_pre_release(self) -> bool:
        return self.rc or bool(self.pre_release)


class DecisionOutcome(Enum):
    NEW_VERSION = "new_version"
    NO_VERSION_CHANGE = "no_version_change"
    MISSING_BASE_TAG = "missing_base_tag"


@dataclass(frozen=True)
class VersionDecision:
    """Result of :func:`determine_new_version`.

    ``version`` is only set when ``outcome`` is ``NEW_VERSION``. The
    other outcomes carry a human readable ``reason``; the caller decides
    whether to abort or warn.
    """

    outcome: DecisionOutcome
    version: Version | None = None
    bump: BumpType = BumpType.NONE
    base: Version | None = None
    prefix: str = ""
    reason: str | None = None

    @property
    def is_release(self) -> bool:
        return self.outcome is DecisionOutcome.NEW_VERSION

    @property
    def tag_name(self) -> str | None:
        """The new version with the tag prefix, or None when there is nothing to release."""
        if self.version is None:
            return None
        return self.version.render(self.prefix)


def originating_bump(base: Version, pre_release: Version) -> BumpType | None:
    """Infer which bump turned ``base`` into ``pre_release``'s numbers.

    Returns None when the numbers are not exactly one bump apart.
    """
    if pre_release.numeric == (base.major + 1, 0, 0):
        return BumpType.MAJOR
    if pre_release.numeric == (base.major, base.minor + 1, 0):
        return BumpType.MINOR
    if pre_release.numeric == (base.major, base.minor, base.patch + 1):
        return BumpType.PATCH
    return None


def next_pre_release_identifier(current: str | None, options: ReleaseOptions) -> str | None:
    """Return the identifier for the next pre-release.

    With ``rc`` the counter in ``current`` is incremented, starting at
    ``rc0`` when there is none. Otherwise the manual identifier is used.
    """
    if options.rc:
        match = _RC_PATTERN.match(current or "")
        if match:
            return f"rc{int(match.group(1)) + 1}"
        return "rc0"
    return options.pre_release or None


def determine_new_version(
    tags: TagHistory | Iterable[Tag],
    prefix: str,
    commits: Sequence[ParsedCommit],
    weights: Mapping[str, BumpType],
    options: ReleaseOptions | None = None,
    *,
    initial_version: Version | str | None = None,
) -> VersionDecision:
    """Determine the next version.

    Args:
        tags: Tag history of the repository
        prefix: Configured tag prefix (e.g. "v")
        commits: Classified commits since the last non-prerelease tag
        weights: Bump weight for each configured commit type
        options: Release flags
        initial_version: Version to use for an initial release

    Returns:
        The decision, with the new version when there is one to release
    """
    options = options or ReleaseOptions()
    history = tags if isinstance(tags, TagHistory) else TagHistory(tags)

    bump = calculate_bump(commits, weights)
    if bump == BumpType.NONE and options.force_patch:
        bump = BumpType.PATCH
    if bump == BumpType.MAJOR and options.no_major:
        bump = BumpType.MINOR

    if options.initial:
        return _initial_decision(initial_version, prefix, bump, options)

    base_tag = history.last_valid_non_rc_version()
    if base_tag is None or base_tag.version is None:
        return VersionDecision(
            outcome=DecisionOutcome.MISSING_BASE_TAG,
            bump=bump,
            prefix=prefix,
            reason=(
                f"No release tag matching prefix {prefix!r} was found. "
                "Run an initial release first."
            ),
        )
    base = base_tag.version

    pre_tag = history.last_pre_release_version_after(base_tag)
    if pre_tag is not None and pre_tag.version is not None:
        existing = pre_tag.version
        origin = originating_bump(base, existing)
        if origin is not None and bump <= origin:
            if options.requests_pre_release:
                identifier = next_pre_release_identifier(existing.pre_release, options)
                version = existing.with_pre_release(identifier)
            else:
                version = existing.with_pre_release(None)
            return _new_version(version.with_build(options.build), bump, base, prefix)

    if bump == BumpType.NONE:
        if not options.requests_pre_release and options.build and options.build != base.build:
            # Same code, new build
            return _new_version(base.with_build(options.build), bump, base, prefix)
        return VersionDecision(
            outcome=DecisionOutcome.NO_VERSION_CHANGE,
            bump=bump,
            base=base,
            prefix=prefix,
            reason=f"No commits since {base_tag.name} require a new version.",
        )

    version = base.bump(bump)
    if options.requests_pre_release:
        version = version.with_pre_release(next_pre_release_identifier(None, options))
    return _new_version(version.with_build(options.build), bump, base, prefix)


def _new_version(version: Version, bump: BumpType, base: Version | None, prefix: str) -> VersionDecision:
    return VersionDecision(
        outcome=DecisionOutcome.NEW_VERSION,
        version=version,
        bump=bump,
        base=base,
        prefix=prefix,
    )


def _initial_decision(
    initial_version: Version | str | None,
    prefix: str,
    bump: BumpType,
    options: ReleaseOptions,
) -> VersionDecision:
    if initial_version is None:
        raise ValueError("initial_version is required for an initial release")

    version = initial_version
    if isinstance(version, str):
        version = Version.parse(version.removeprefix(prefix) if prefix else version)

    if options.requests_pre_release and not version.is_pre_release:
        version = version.with_pre_release(next_pre_release_identifier(None, options))
    if options.build:
        version = version.with_build(options.build)
    return _new_version(version, bump, None, prefix)
