"""
Git backend for vc_patch_helper.

Git diffs tracked modifications natively, and its working tree is always
authoritative, so no reconcile step is needed. Status paths are already
relative to the repository root. New files (staged or untracked) have no
base revision in ``HEAD`` and are synthesized from disk.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from vc_patch_helper.vcs.base import VCSBackend
from vc_patch_helper.vcs.models import ChangeRecord, PathMapping
from vc_patch_helper.vcs.status_parser import parse_git_status


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs will propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


class GitClient(VCSBackend):
    """Client for reading pending changes from a Git repository."""

    name = "git"

    def __init__(
        self,
        repo_root: Path,
        include_untracked: bool = True,
        executable: str = "git",
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(repo_root, timeout=timeout)
        self.include_untracked = include_untracked
        self.executable = executable

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        Walk upwards until a ``.git`` entry is found or the filesystem
        root is reached.
        """
        current = start.resolve()
        while True:
            if (current / ".git").exists():
                return current
            if current.parent == current:
                # reached filesystem root
                return None
            current = current.parent

    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        # Keep non-ASCII paths unquoted in diff and status output.
        return super()._run(["-c", "core.quotepath=off"] + args, check=check)

    # ------------------------------------------------------------------
    # Backend operations
    # ------------------------------------------------------------------
    def current_revision(self) -> Optional[str]:
        """Return the commit SHA of ``HEAD``, or None on an unborn branch."""
        result = self._run(["rev-parse", "--verify", "--quiet", "HEAD"], check=False)
        sha = result.stdout.strip()
        return sha if result.returncode == 0 and sha else None

    def native_diff(self) -> str:
        """Return the zero-context diff of modified tracked files against HEAD."""
        if self.current_revision() is None:
            logger.debug("No HEAD commit yet; every change is an addition")
            return ""
        result = self._run(
            [
                "diff",
                "HEAD",
                "--unified=0",
                "--no-prefix",
                "--no-color",
                "--no-ext-diff",
                "--no-renames",
                "--diff-filter=M",
            ],
            check=True,
        )
        return result.stdout

    def list_changes(self) -> List[ChangeRecord]:
        """Return modified, added and deleted files from ``git status``."""
        args = ["status", "--porcelain=v1", "-z", "--no-renames"]
        args.append("--untracked-files=all" if self.include_untracked else "--untracked-files=no")
        result = self._run(args, check=True)
        return parse_git_status(result.stdout, include_untracked=self.include_untracked)

    def resolve_path(self, depot_path: str) -> PathMapping:
        return PathMapping(depot_path=depot_path, local_path=str(self.repo_root / depot_path))

    def normalize(self, depot_path: str) -> str:
        # Git status paths are already relative to the repository root.
        return depot_path

    def path_replacements(self, changes: List[ChangeRecord]) -> Dict[str, str]:
        """Git diffs already carry relative paths; nothing to rewrite."""
        for change in changes:
            change.repo_relative_path = change.depot_path
        return {}
