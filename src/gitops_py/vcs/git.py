"""Git operations via subprocess.

Only the handful of commands a release needs: listing tags in ancestry
order, reading commit messages since a tag, and committing/tagging the
release.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

from gitops_py.core.version import Tag, TagHistory
from gitops_py.exceptions import GitError, NotAGitRepositoryError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

# NUL never appears in commit messages
_MESSAGE_SEPARATOR = "\x00"


class GitRepository:
    """A git work tree.

    Args:
        path: Any directory inside the work tree

    Raises:
        NotAGitRepositoryError: If ``path`` is not inside a git work tree
    """

    def __init__(self, path: Path | str | None = None) -> None:
        start = Path(path) if path else Path.cwd()
        try:
            toplevel = self._git(start, "rev-parse", "--show-toplevel")
        except GitError as e:
            raise NotAGitRepositoryError(f"Not a git repository: {start}", stderr=e.stderr) from e
        self.path = Path(toplevel)

    @staticmethod
    def _git(cwd: Path, *args: str) -> str:
        logger.debug("git %s", " ".join(args))
        try:
            result = subprocess.run(
                ["git", *args],
                capture_output=True,
                text=True,
                check=True,
                cwd=cwd,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        except subprocess.CalledProcessError as e:
            raise GitError(
                f"git {args[0]} failed with exit code {e.returncode}",
                stderr=e.stderr,
            ) from e
        return result.stdout.strip()

    def run(self, *args: str) -> str:
        """Run a git command in the repository and return its stripped stdout."""
        return self._git(self.path, *args)

    def is_dirty(self) -> bool:
        """Check for uncommitted changes to tracked files."""
        return bool(self.run("status", "--porcelain", "--untracked-files=no"))

    def get_tags(self, prefix: str = "") -> TagHistory:
        """List tags reachable from HEAD, ordered by commit ancestry.

        A tag's position is the number of commits reachable from it, so a
        descendant always sorts after its ancestors. Names that do not
        parse as versions with ``prefix`` are kept with ``version=None``.
        """
        output = self.run(
            "for-each-ref",
            "--merged=HEAD",
            "--format=%(refname:short)",
            "refs/tags",
        )
        tags = []
        for name in output.splitlines():
            name = name.strip()
            if not name:
                continue
            position = int(self.run("rev-list", "--count", f"{name}^{{commit}}"))
            tag = Tag.from_name(name, position, prefix)
            if tag.version is None:
                logger.debug("Ignoring tag %s: not a version with prefix %r", name, prefix)
            tags.append(tag)
        return TagHistory(tags)

    def get_commit_messages_since(self, tag: str | None = None) -> list[str]:
        """Get full commit messages after ``tag`` up to HEAD, oldest first.

        With no tag, the whole history of HEAD is returned.
        """
        revision_range = f"{tag}..HEAD" if tag else "HEAD"
        output = self.run("log", "--reverse", "--format=%B%x00", revision_range)
        return [message.strip() for message in output.split(_MESSAGE_SEPARATOR) if message.strip()]

    def commit_all(self, message: str, paths: Sequence[Path] = ()) -> None:
        """Commit all changes to tracked files, adding ``paths`` first."""
        if paths:
            self.run("add", "--", *(str(p) for p in paths))
        self.run("commit", "-am", message)

    def create_tag(self, name: str, message: str) -> None:
        """Create an annotated tag on HEAD."""
        self.run("tag", "-a", name, "-m", message)
