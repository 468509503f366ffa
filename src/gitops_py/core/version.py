"""Semantic version values and tag history queries.

Versions follow https://semver.org: ``MAJOR.MINOR.PATCH[-PRE][+BUILD]``,
optionally preceded by a tag prefix such as ``v``. Components are plain
Python integers, so there is no upper bound on any of them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import IntEnum
from functools import total_ordering
from typing import TYPE_CHECKING

from gitops_py.exceptions import VersionParseError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

_VERSION_PATTERN = re.compile(
    r"^(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:-(?P<pre_release>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


class BumpType(IntEnum):
    """Version bump severity, ordered ``NONE < PATCH < MINOR < MAJOR``."""

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def from_weight(cls, weight: str) -> BumpType:
        """Convert a configured weight (``"major"``, ``"minor"``, ...) to a BumpType."""
        try:
            return cls[weight.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown bump weight: {weight!r}") from None


_RC_IDENTIFIER = re.compile(r"^rc(\d+)$")


def _pre_release_key(identifier: str) -> tuple[tuple[int, str, int], ...]:
    # Numeric identifiers sort before alphanumeric ones (semver 11.4).
    # rcN counters compare by number so rc10 follows rc9.
    parts: list[tuple[int, str, int]] = []
    for part in identifier.split("."):
        rc = _RC_IDENTIFIER.match(part)
        if part.isdigit():
            parts.append((0, "", int(part)))
        elif rc:
            parts.append((1, "rc", int(rc.group(1))))
        else:
            parts.append((1, part, -1))
    return tuple(parts)


@total_ordering
@dataclass(frozen=True)
class Version:
    """An immutable semantic version.

    Ordering follows semver precedence: numeric components are compared
    left to right, a pre-release sorts before the same version without
    one, and build metadata is ignored. Release candidate identifiers
    (``rc0``, ``rc1``, ...) compare by their counter.
    """

    major: int
    minor: int
    patch: int
    pre_release: str | None = None
    build: str | None = None

    def __post_init__(self) -> None:
        for name in ("major", "minor", "patch"):
            if getattr(self, name) < 0:
                raise VersionParseError(f"Version component {name} must not be negative")

    @classmethod
    def parse(cls, text: str, prefix: str = "") -> Version:
        """Parse a version string, stripping ``prefix`` first.

        Args:
            text: Version text such as ``"v1.2.3-rc0+build.5"``
            prefix: Tag prefix that must precede the version

        Returns:
            Parsed Version

        Raises:
            VersionParseError: If the text is not a valid version
        """
        value = text.strip()
        if prefix:
            if not value.startswith(prefix):
                raise VersionParseError(f"Version {text!r} does not start with prefix {prefix!r}")
            value = value[len(prefix) :]

        match = _VERSION_PATTERN.match(value)
        if not match:
            raise VersionParseError(f"Invalid semantic version: {text!r}")

        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            pre_release=match.group("pre_release"),
            build=match.group("build"),
        )

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre_release:
            text += f"-{self.pre_release}"
        if self.build:
            text += f"+{self.build}"
        return text

    def render(self, prefix: str = "") -> str:
        """Render the canonical form with the tag prefix attached."""
        return f"{prefix}{self}"

    @property
    def numeric(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @property
    def is_pre_release(self) -> bool:
        return bool(self.pre_release)

    def _precedence(self) -> tuple:
        if self.pre_release:
            return (self.numeric, 0, _pre_release_key(self.pre_release))
        return (self.numeric, 1, ())

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() < other._precedence()

    def bump(self, bump_type: BumpType) -> Version:
        """Apply a bump, dropping any pre-release and build metadata.

        ``BumpType.NONE`` returns the bare numeric version unchanged.
        """
        if bump_type == BumpType.MAJOR:
            return Version(self.major + 1, 0, 0)
        if bump_type == BumpType.MINOR:
            return Version(self.major, self.minor + 1, 0)
        if bump_type == BumpType.PATCH:
            return Version(self.major, self.minor, self.patch + 1)
        return Version(self.major, self.minor, self.patch)

    def with_pre_release(self, identifier: str | None) -> Version:
        return replace(self, pre_release=identifier or None)

    def with_build(self, build: str | None) -> Version:
        return replace(self, build=build or None)


def parse_version(text: str, prefix: str = "") -> Version:
    """Parse a version string. Shortcut for :meth:`Version.parse`."""
    return Version.parse(text, prefix)


@dataclass(frozen=True)
class Tag:
    """A version control tag.

    Attributes:
        name: Tag name as it appears in git (prefix included)
        version: Parsed version, or None if the name is not a version
        position: Ancestry depth of the tagged commit; larger is more recent
    """

    name: str
    version: Version | None
    position: int

    @classmethod
    def from_name(cls, name: str, position: int, prefix: str = "") -> Tag:
        """Build a Tag, leaving ``version`` empty when the name does not parse."""
        try:
            version: Version | None = Version.parse(name, prefix)
        except VersionParseError:
            version = None
        return cls(name=name, version=version, position=position)


class TagHistory:
    """Tags ordered by commit ancestry, with the queries the calculator needs.

    Tags whose names do not parse as versions are kept but ignored by the
    queries.
    """

    def __init__(self, tags: Iterable[Tag]) -> None:
        self._tags = sorted(tags, key=lambda tag: tag.position)

    def __iter__(self) -> Iterator[Tag]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    @staticmethod
    def _most_recent(candidates: list[Tag]) -> Tag | None:
        if not candidates:
            return None
        # Tags on the same commit fall back to version precedence
        return max(candidates, key=lambda tag: (tag.position, tag.version))

    def last_valid_non_rc_version(self) -> Tag | None:
        """Return the most recent tag holding a non-prerelease version."""
        return self._most_recent(
            [tag for tag in self._tags if tag.version is not None and not tag.version.is_pre_release]
        )

    def last_pre_release_version_after(self, base: Tag | None) -> Tag | None:
        """Return the most recent pre-release tag created after ``base``.

        Only pre-releases that take precedence over the base version are
        considered. With no base, any pre-release qualifies.
        """
        candidates = []
        for tag in self._tags:
            if tag.version is None or not tag.version.is_pre_release:
                continue
            if base is not None and base.version is not None:
                if tag.position <= base.position or tag.version <= base.version:
                    continue
            candidates.append(tag)
        return self._most_recent(candidates)
