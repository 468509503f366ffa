"""Tests for next-version determination."""

from __future__ import annotations

import pytest

from gitops_py.core.calculator import (
    DecisionOutcome,
    ReleaseOptions,
    determine_new_version,
    next_pre_release_identifier,
    originating_bump,
)
from gitops_py.core.commits import parse_commit
from gitops_py.core.version import BumpType, Tag, Version


def commits(*messages: str):
    return [parse_commit(m) for m in messages]


def with_tags(base_tags: list[Tag], *extra: tuple[str, int]) -> list[Tag]:
    return [*base_tags, *(Tag.from_name(name, pos, "v") for name, pos in extra)]


class TestFreshBump:
    """Bumps from the last stable tag without pre-releases in play."""

    def test_patch(self, base_tags, weights):
        decision = determine_new_version(base_tags, "v", commits("fix: a"), weights)

        assert decision.is_release
        assert decision.version == Version(1, 2, 4)
        assert decision.bump == BumpType.PATCH
        assert decision.base == Version(1, 2, 3)

    def test_minor(self, base_tags, weights):
        decision = determine_new_version(base_tags, "v", commits("fix: a", "feat: b"), weights)

        assert decision.tag_name == "v1.3.0"

    def test_feat_and_breaking_fix_is_major(self, base_tags, weights):
        """One feat plus one breaking fix gives 2.0.0."""
        decision = determine_new_version(
            base_tags, "v", commits("feat: a", "fix!: b"), weights
        )

        assert decision.tag_name == "v2.0.0"
        assert decision.bump == BumpType.MAJOR

    def test_no_major_demotes_to_minor(self, base_tags, weights):
        """With no_major the same commits give 1.3.0."""
        decision = determine_new_version(
            base_tags,
            "v",
            commits("feat: a", "fix!: b"),
            weights,
            ReleaseOptions(no_major=True),
        )

        assert decision.tag_name == "v1.3.0"
        assert decision.bump == BumpType.MINOR

    def test_multiple_breaking_is_single_major(self, base_tags, weights):
        decision = determine_new_version(
            base_tags, "v", commits("feat!: a", "fix!: b", "docs!: c"), weights
        )

        assert decision.version == Version(2, 0, 0)

    def test_prefix_applied_to_rendering_only(self, weights):
        tags = [Tag.from_name("release-0.4.1", 3, "release-")]
        decision = determine_new_version(tags, "release-", commits("fix: a"), weights)

        assert decision.version == Version(0, 4, 2)
        assert decision.tag_name == "release-0.4.2"


class TestNoVersionChange:
    """Runs that have nothing to release."""

    def test_empty_commits(self, base_tags, weights):
        """No commits and no force_patch reports NO_VERSION_CHANGE."""
        decision = determine_new_version(base_tags, "v", [], weights)

        assert decision.outcome is DecisionOutcome.NO_VERSION_CHANGE
        assert not decision.is_release
        assert decision.version is None
        assert decision.tag_name is None
        assert "v1.2.3" in decision.reason

    def test_only_none_weight_commits(self, base_tags, weights):
        decision = determine_new_version(base_tags, "v", commits("docs: a", "chore: b"), weights)

        assert decision.outcome is DecisionOutcome.NO_VERSION_CHANGE

    def test_force_patch(self, base_tags, weights):
        """force_patch turns an empty run into a patch release."""
        decision = determine_new_version(
            base_tags, "v", [], weights, ReleaseOptions(force_patch=True)
        )

        assert decision.tag_name == "v1.2.4"
        assert decision.bump == BumpType.PATCH

    def test_force_patch_does_not_lower_bump(self, base_tags, weights):
        decision = determine_new_version(
            base_tags, "v", commits("feat: a"), weights, ReleaseOptions(force_patch=True)
        )

        assert decision.tag_name == "v1.3.0"

    def test_rebuild_with_new_build_metadata(self, base_tags, weights):
        """A new build value on unchanged code re-releases the same numbers."""
        decision = determine_new_version(
            base_tags, "v", [], weights, ReleaseOptions(build="ci.7")
        )

        assert decision.is_release
        assert decision.tag_name == "v1.2.3+ci.7"
        assert decision.bump == BumpType.NONE

    def test_rebuild_with_same_build_is_no_change(self, weights):
        tags = [Tag.from_name("v1.2.3+ci.7", 20, "v")]
        decision = determine_new_version(tags, "v", [], weights, ReleaseOptions(build="ci.7"))

        assert decision.outcome is DecisionOutcome.NO_VERSION_CHANGE


class TestMissingBaseTag:
    """Runs without a previous stable tag."""

    def test_no_tags(self, weights):
        decision = determine_new_version([], "v", commits("feat: a"), weights)

        assert decision.outcome is DecisionOutcome.MISSING_BASE_TAG
        assert decision.version is None
        assert decision.reason

    def test_only_unparseable_tags(self, weights):
        tags = [Tag.from_name("nightly", 5, "v"), Tag.from_name("1.0.0", 6, "v")]
        decision = determine_new_version(tags, "v", commits("feat: a"), weights)

        assert decision.outcome is DecisionOutcome.MISSING_BASE_TAG

    def test_initial_release_uses_initial_version(self, weights):
        decision = determine_new_version(
            [],
            "v",
            commits("feat: a"),
            weights,
            ReleaseOptions(initial=True),
            initial_version="0.1.0",
        )

        assert decision.is_release
        assert decision.tag_name == "v0.1.0"
        assert decision.base is None

    def test_initial_release_as_rc_with_build(self, weights):
        decision = determine_new_version(
            [],
            "v",
            [],
            weights,
            ReleaseOptions(initial=True, rc=True, build="b1"),
            initial_version=Version(1, 0, 0),
        )

        assert decision.tag_name == "v1.0.0-rc0+b1"

    def test_initial_without_version_raises(self, weights):
        with pytest.raises(ValueError, match="initial_version"):
            determine_new_version([], "v", [], weights, ReleaseOptions(initial=True))


class TestPreRelease:
    """Pre-release creation and continuation."""

    def test_first_rc(self, base_tags, weights):
        decision = determine_new_version(
            base_tags, "v", commits("feat: a"), weights, ReleaseOptions(rc=True)
        )

        assert decision.tag_name == "v1.3.0-rc0"

    def test_manual_pre_release(self, base_tags, weights):
        decision = determine_new_version(
            base_tags, "v", commits("fix: a"), weights, ReleaseOptions(pre_release="beta")
        )

        assert decision.tag_name == "v1.2.4-beta"

    def test_rc_overrides_pre_release(self, base_tags, weights):
        decision = determine_new_version(
            base_tags,
            "v",
            commits("fix: a"),
            weights,
            ReleaseOptions(pre_release="beta", rc=True),
        )

        assert decision.tag_name == "v1.2.4-rc0"

    def test_pre_release_with_nothing_to_release(self, base_tags, weights):
        decision = determine_new_version(
            base_tags, "v", [], weights, ReleaseOptions(rc=True)
        )

        assert decision.outcome is DecisionOutcome.NO_VERSION_CHANGE

    def test_rc_advances_when_bump_not_higher(self, base_tags, weights):
        """1.3.0-rc0 from a minor bump plus another fix gives 1.3.0-rc1."""
        tags = with_tags(base_tags, ("v1.3.0-rc0", 25))
        decision = determine_new_version(
            tags, "v", commits("feat: a", "fix: b"), weights, ReleaseOptions(rc=True)
        )

        assert decision.version == Version(1, 3, 0, "rc1")

    def test_rc_advances_with_only_lower_commits(self, base_tags, weights):
        tags = with_tags(base_tags, ("v1.3.0-rc0", 25))
        decision = determine_new_version(
            tags, "v", commits("fix: b"), weights, ReleaseOptions(rc=True)
        )

        assert decision.tag_name == "v1.3.0-rc1"

    def test_rc_resets_on_higher_bump(self, base_tags, weights):
        """A breaking change on top of a minor rc gives 2.0.0-rc0."""
        tags = with_tags(base_tags, ("v1.3.0-rc0", 25), ("v1.3.0-rc1", 27))
        decision = determine_new_version(
            tags, "v", commits("feat: a", "feat!: b"), weights, ReleaseOptions(rc=True)
        )

        assert decision.tag_name == "v2.0.0-rc0"
        assert decision.bump == BumpType.MAJOR

    def test_manual_identifier_replaced(self, base_tags, weights):
        tags = with_tags(base_tags, ("v1.3.0-alpha", 25))
        decision = determine_new_version(
            tags, "v", commits("feat: a"), weights, ReleaseOptions(pre_release="beta")
        )

        assert decision.tag_name == "v1.3.0-beta"

    def test_rc_after_manual_identifier_starts_at_zero(self, base_tags, weights):
        tags = with_tags(base_tags, ("v1.3.0-beta", 25))
        decision = determine_new_version(
            tags, "v", commits("feat: a"), weights, ReleaseOptions(rc=True)
        )

        assert decision.tag_name == "v1.3.0-rc0"

    def test_ambiguous_origin_recomputes(self, base_tags, weights):
        """A pre-release more than one bump away is recomputed from the base."""
        tags = with_tags(base_tags, ("v1.5.0-rc3", 25))
        decision = determine_new_version(
            tags, "v", commits("feat: a"), weights, ReleaseOptions(rc=True)
        )

        assert decision.tag_name == "v1.3.0-rc0"

    def test_no_major_keeps_minor_rc(self, base_tags, weights):
        tags = with_tags(base_tags, ("v1.3.0-rc0", 25))
        decision = determine_new_version(
            tags,
            "v",
            commits("feat!: a"),
            weights,
            ReleaseOptions(rc=True, no_major=True),
        )

        assert decision.tag_name == "v1.3.0-rc1"


class TestStableFromPreRelease:
    """Finalising an in-flight pre-release."""

    def test_strips_identifier(self, base_tags, weights):
        """1.3.0-rc1 stabilises to exactly 1.3.0."""
        tags = with_tags(base_tags, ("v1.3.0-rc0", 25), ("v1.3.0-rc1", 27))
        decision = determine_new_version(tags, "v", commits("feat: a", "fix: b"), weights)

        assert decision.version == Version(1, 3, 0)
        assert decision.tag_name == "v1.3.0"

    def test_strips_identifier_without_new_commits(self, base_tags, weights):
        tags = with_tags(base_tags, ("v1.3.0-rc1", 27))
        decision = determine_new_version(tags, "v", [], weights)

        assert decision.tag_name == "v1.3.0"

    def test_higher_bump_skips_pre_release_numbers(self, base_tags, weights):
        tags = with_tags(base_tags, ("v1.2.4-rc0", 25))
        decision = determine_new_version(tags, "v", commits("feat: a"), weights)

        assert decision.tag_name == "v1.3.0"

    def test_build_metadata_attached(self, base_tags, weights):
        tags = with_tags(base_tags, ("v1.3.0-rc1", 27))
        decision = determine_new_version(
            tags, "v", commits("feat: a"), weights, ReleaseOptions(build="sha.abc")
        )

        assert decision.tag_name == "v1.3.0+sha.abc"


class TestBuildMetadata:
    """Build metadata never changes the numbers."""

    @pytest.mark.parametrize(
        ("options", "expected"),
        [
            (ReleaseOptions(), "v1.3.0"),
            (ReleaseOptions(build="b42"), "v1.3.0+b42"),
            (ReleaseOptions(rc=True), "v1.3.0-rc0"),
            (ReleaseOptions(rc=True, build="b42"), "v1.3.0-rc0+b42"),
        ],
    )
    def test_build_only_appends(self, base_tags, weights, options, expected):
        decision = determine_new_version(base_tags, "v", commits("feat: a"), weights, options)

        assert decision.tag_name == expected


class TestHelpers:
    """Tests for originating_bump() and next_pre_release_identifier()."""

    @pytest.mark.parametrize(
        ("pre_release", "expected"),
        [
            (Version(2, 0, 0, "rc0"), BumpType.MAJOR),
            (Version(1, 3, 0, "rc0"), BumpType.MINOR),
            (Version(1, 2, 4, "rc0"), BumpType.PATCH),
            (Version(1, 4, 0, "rc0"), None),
            (Version(1, 3, 1, "rc0"), None),
            (Version(3, 0, 0, "rc0"), None),
        ],
    )
    def test_originating_bump(self, base_version, pre_release, expected):
        assert originating_bump(base_version, pre_release) == expected

    def test_next_identifier_rc(self):
        options = ReleaseOptions(rc=True)

        assert next_pre_release_identifier(None, options) == "rc0"
        assert next_pre_release_identifier("rc9", options) == "rc10"
        assert next_pre_release_identifier("beta", options) == "rc0"

    def test_next_identifier_manual(self):
        options = ReleaseOptions(pre_release="beta")

        assert next_pre_release_identifier("alpha", options) == "beta"
