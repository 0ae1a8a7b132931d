"""Reads commits from a local git working copy."""

import asyncio
import logging
import re
from pathlib import Path

from ...models.repository import Repository
from .interfaces import LocalCommit, LocalCommitReader

logger = logging.getLogger(__name__)

_SHA_PATTERN = re.compile(r"^[0-9a-fA-F]{4,64}$")


class GitLocalCommitReader(LocalCommitReader):
    """Looks commits up with ``git show`` in the repository's path."""

    def __init__(self, git_executable: str = "git"):
        """Initialize the reader.

        Args:
            git_executable: Name or path of the git binary
        """
        self.git_executable = git_executable

    async def get_local_commit(
        self, repository: Repository, sha: str
    ) -> LocalCommit | None:
        """Return the commit's summary line, or None if git does not know it."""
        if repository.path is None or not _SHA_PATTERN.match(sha):
            return None

        path = Path(repository.path)
        if not path.is_dir():
            logger.debug(f"Local path {path} of {repository.name} does not exist")
            return None

        try:
            process = await asyncio.create_subprocess_exec(
                self.git_executable,
                "-C",
                str(path),
                "show",
                "--no-patch",
                "--format=%H%x00%s",
                sha,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.warning(f"Could not run {self.git_executable}: {e}")
            return None

        stdout, stderr = await process.communicate()

        if process.returncode != 0:
            logger.debug(
                f"Commit {sha} not found locally in {path}: "
                f"{stderr.decode('utf-8', errors='replace').strip()}"
            )
            return None

        full_sha, _, summary = (
            stdout.decode("utf-8", errors="replace").rstrip("\n").partition("\x00")
        )
        return LocalCommit(sha=full_sha, summary=summary)
