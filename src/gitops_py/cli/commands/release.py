"""Implementation of the 'release' command.

The release command reads the commit log since the last release, works
out the next version, writes the changelog and project version, and
then commits and tags after confirmation.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm

from gitops_py.config import load_config
from gitops_py.core.calculator import DecisionOutcome, ReleaseOptions, determine_new_version
from gitops_py.core.changelog import initialize_changelog, render_changelog_entry, write_changelog
from gitops_py.core.commits import classify_commits
from gitops_py.exceptions import GitOpsError, ProjectError, VersionNotFoundError
from gitops_py.vcs import GitRepository

if TYPE_CHECKING:
    from rich.console import Console

    from gitops_py.config.models import GitOpsConfig
    from gitops_py.core.version import TagHistory

logger = logging.getLogger(__name__)


def run_release(
    path: str | None,
    options: ReleaseOptions,
    yes: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Run the release command.

    Args:
        path: Optional path to project directory
        options: Release flags from the command line
        yes: Commit and tag without asking
        console: Console for standard output
        err_console: Console for error output
    """
    project_path = Path(path) if path else Path.cwd()

    # Load configuration
    try:
        config = load_config(project_path)
    except GitOpsError as e:
        err_console.print(f"[red]Error loading config:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    # Initialize git repository
    try:
        repo = GitRepository(project_path)
    except GitOpsError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    if not config.allow_dirty and repo.is_dirty():
        err_console.print(
            "[red]Error:[/] Repository has uncommitted changes.\n"
            "Commit or stash them, or use [cyan]allow_dirty = true[/] in config."
        )
        raise SystemExit(1)

    prefix = config.tag_prefix
    try:
        tags = repo.get_tags(prefix)
        version_messages, changelog_messages = _get_commit_messages(repo, tags, options)
    except GitOpsError as e:
        err_console.print(f"[red]Error reading history:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    types = config.commits.types
    for_version = classify_commits(version_messages, types)
    for_changelog = classify_commits(changelog_messages, types, silent=True)

    for warning in for_version.warnings:
        err_console.print(f"[yellow]{escape(warning)}[/]")

    try:
        decision = determine_new_version(
            tags,
            prefix,
            for_version.commits,
            config.commits.weights,
            options,
            initial_version=_initial_version(project_path, config) if options.initial else None,
        )
    except GitOpsError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    if decision.outcome is DecisionOutcome.MISSING_BASE_TAG:
        err_console.print(f"[red]Error:[/] {escape(decision.reason or '')}")
        err_console.print("[dim]Use [cyan]--initial[/] to create the first release.[/]")
        raise SystemExit(1)

    if decision.outcome is DecisionOutcome.NO_VERSION_CHANGE:
        console.print(
            f"[yellow]{escape(decision.reason or 'Nothing to release.')}[/]\n"
            "[dim]Use [cyan]--force-patch[/] to release a patch version anyway.[/]"
        )
        return

    tag_name = decision.tag_name
    if tag_name is None:
        err_console.print("[red]Error:[/] No version to release.")
        raise SystemExit(1)
    new_version = str(decision.version)

    if decision.base is not None:
        console.print(
            f"\nReleasing [green]{tag_name}[/] "
            f"([cyan]{decision.bump}[/] bump from [cyan]{decision.base.render(prefix)}[/])\n"
        )
    else:
        console.print(f"\nFirst release! Setting version to [green]{tag_name}[/]\n")

    try:
        _write_release_files(
            project_path,
            config,
            render_changelog_entry(for_changelog.commits, tag_name, config.commits),
            new_version,
            _previous_version(tags),
            initial=options.initial,
            console=console,
        )
    except GitOpsError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    _confirm_and_tag(repo, tag_name, project_path / config.changelog_path, yes, console, err_console)


def _initial_version(project_path: Path, config: GitOpsConfig) -> str:
    """The configured initial version, or else the version the project declares."""
    from gitops_py.config.loader import get_project_version

    return config.version.initial_version or get_project_version(project_path)


def _previous_version(tags: TagHistory) -> str | None:
    """The version of the latest release tag, pre-releases included."""
    base = tags.last_valid_non_rc_version()
    latest = tags.last_pre_release_version_after(base) or base
    if latest is None or latest.version is None:
        return None
    return str(latest.version)


def _get_commit_messages(
    repo: GitRepository,
    tags: TagHistory,
    options: ReleaseOptions,
) -> tuple[list[str], list[str]]:
    """Return (messages for the version, messages for the changelog).

    The version looks at everything since the last stable tag. The
    changelog only covers what came after the latest pre-release, since
    earlier commits are already in that pre-release's entry.
    """
    if options.initial:
        messages = repo.get_commit_messages_since(None)
        return messages, messages

    base = tags.last_valid_non_rc_version()
    for_version = repo.get_commit_messages_since(base.name if base else None)

    pre_release = tags.last_pre_release_version_after(base)
    if pre_release is not None:
        return for_version, repo.get_commit_messages_since(pre_release.name)
    return for_version, for_version


def _write_release_files(
    project_path: Path,
    config: GitOpsConfig,
    entry: str,
    new_version: str,
    previous_version: str | None,
    *,
    initial: bool,
    console: Console,
) -> None:
    """Write the changelog entry and the new version.

    The project version and version files are checked before the
    changelog is touched, so a project without a static version fails
    without leaving a half-written release behind.

    ``version_files`` hold the previous version: the pyproject version when
    gitops-py manages it, otherwise the version of the latest release tag.
    """
    from gitops_py.project.pyproject import (
        get_pyproject_version,
        replace_version_in_file,
        update_pyproject_version,
    )

    version_config = config.version
    changelog_path = project_path / config.changelog_path

    if version_config.manage_project_version:
        try:
            current_version: str | None = get_pyproject_version(project_path)
        except VersionNotFoundError as e:
            raise ProjectError(
                f"{e} Set manage_project_version = false for a dynamic version."
            ) from e
    else:
        current_version = previous_version

    for version_file in version_config.version_files:
        if not (project_path / version_file).is_file():
            raise ProjectError(f"Version file not found: {version_file}")

    if initial:
        initialize_changelog(changelog_path)
        console.print(f"  [green]✓[/] Created {config.changelog_path}")

    write_changelog(changelog_path, entry)
    console.print(f"  [green]✓[/] Updated {config.changelog_path}")

    if current_version is None or current_version == new_version:
        logger.debug("Project files already at %s", new_version)
        return

    if version_config.manage_project_version:
        update_pyproject_version(project_path, new_version)
        console.print("  [green]✓[/] Updated version in pyproject.toml")

    for version_file in version_config.version_files:
        replace_version_in_file(project_path / version_file, current_version, new_version)
        console.print(f"  [green]✓[/] Updated version in {version_file}")


def _confirm_and_tag(
    repo: GitRepository,
    tag_name: str,
    changelog_path: Path,
    yes: bool,
    console: Console,
    err_console: Console,
) -> None:
    commit_message = f"chore: release version {tag_name}"
    tag_message = f"release {tag_name}"

    if yes or Confirm.ask(
        f"\nYour new version is [green]{tag_name}[/]. Please review the changelog.\n"
        "Shall we commit and tag?",
        console=console,
    ):
        try:
            repo.commit_all(commit_message, [changelog_path])
            repo.create_tag(tag_name, tag_message)
        except GitOpsError as e:
            err_console.print(f"[red]Error:[/] {escape(str(e))}")
            raise SystemExit(1) from e

        console.print(
            Panel(
                f"[green]Released {tag_name}![/]\n\n"
                "Don't forget to push with tags:\n"
                "  [cyan]git push --follow-tags[/]",
                title="[green]Release Complete[/]",
                border_style="green",
            )
        )
        return

    console.print(
        Panel(
            "Commit and tag the release yourself with:\n\n"
            f'  [cyan]git commit -am "{commit_message}"[/]\n'
            f'  [cyan]git tag -a {tag_name} -m "{tag_message}"[/]',
            title="[yellow]Not Committed[/]",
            border_style="yellow",
        )
    )
