"""Exception hierarchy for gitops-py.

All errors raised by the library derive from :class:`GitOpsError` so the
command line layer can catch them in one place. Per-commit parse failures
(:class:`CommitParseError`) are recovered by the classifier and never
reach the CLI.
"""

from __future__ import annotations


class GitOpsError(Exception):
    """Base class for all gitops-py errors."""


# Configuration


class ConfigError(GitOpsError):
    """Configuration could not be loaded."""


class ConfigNotFoundError(ConfigError):
    """No pyproject.toml was found."""


class ConfigValidationError(ConfigError):
    """The [tool.gitops-py] section is invalid."""


# Commits and versions


class CommitParseError(GitOpsError):
    """A commit message does not follow the conventional commit grammar."""

    def __init__(self, message: str, text: str = "") -> None:
        super().__init__(message)
        self.text = text


class VersionParseError(GitOpsError):
    """A string is not a valid semantic version."""


# Version control


class GitError(GitOpsError):
    """A git command failed."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            return f"{base}\n{self.stderr.strip()}"
        return base


class NotAGitRepositoryError(GitError):
    """The given path is not inside a git work tree."""


# Changelog and project files


class ChangelogError(GitOpsError):
    """The changelog could not be initialised or written."""


class ProjectError(GitOpsError):
    """A project file could not be updated."""


class VersionNotFoundError(ProjectError):
    """The current version could not be located in a project file."""
