"""gitops-py command line entry point."""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from gitops_py import __version__
from gitops_py.core.calculator import ReleaseOptions

console = Console()
err_console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False, show_time=False)],
        force=True,
    )


@click.group()
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="gitops-py")
def cli(verbose: bool) -> None:
    """Semantic versioning and changelogs from conventional commits."""
    configure_logging(verbose)


@cli.command()
@click.option("--path", type=click.Path(exists=True, file_okay=False), help="Project directory.")
@click.option("-i", "--initial", is_flag=True, help="Create the changelog and release the configured initial version.")
@click.option("-p", "--pre-release", "pre_release", help="Release as a pre-release with this identifier.")
@click.option("--rc", is_flag=True, help="Release as an auto-incrementing release candidate (rc0, rc1, ...).")
@click.option("-b", "--build", help="Build metadata to attach to the version.")
@click.option("-f", "--force-patch", "force_patch", is_flag=True, help="Bump the patch version even with no releasable commits.")
@click.option("-n", "--no-major", "no_major", is_flag=True, help="Turn major bumps into minor bumps.")
@click.option("-y", "--yes", is_flag=True, help="Commit and tag without asking.")
def release(
    path: str | None,
    initial: bool,
    pre_release: str | None,
    rc: bool,
    build: str | None,
    force_patch: bool,
    no_major: bool,
    yes: bool,
) -> None:
    """Determine the next version, update the changelog, then commit and tag."""
    from gitops_py.cli.commands.release import run_release

    options = ReleaseOptions(
        pre_release=pre_release,
        rc=rc,
        build=build,
        force_patch=force_patch,
        no_major=no_major,
        initial=initial,
    )
    run_release(path, options, yes, console, err_console)


if __name__ == "__main__":
    cli()
