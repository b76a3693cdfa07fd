"""
Backend interface and patch aggregation.

:class:`VCSBackend` declares the typed operations every backend provides
(reconcile, native diff, status listing, path resolution) and implements
:meth:`VCSBackend.patches` once on top of them. Backends only translate
their own tool's output; the ordering and failure rules of a patch set
live here.
"""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from vc_patch_helper.diff.synthesizer import deletion_marker, rewrite_paths, synthesize_added_file_diff
from vc_patch_helper.vcs.models import ChangeAction, ChangeRecord, PathMapping
from vc_patch_helper.vcs.process import run_command


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


class VCSBackend(ABC):
    """Common interface of the Git and Perforce clients.

    Calls on one working copy must not overlap; ``patches`` runs every
    command to completion before starting the next one.
    """

    #: Name used in configuration and on the command line.
    name = ""
    #: Binary invoked by :meth:`_run`.
    executable = ""

    def __init__(self, repo_root: Path, timeout: Optional[float] = None) -> None:
        self.repo_root = repo_root
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Process helper
    # ------------------------------------------------------------------
    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run the backend's binary in the repository root."""
        return run_command(self.executable, args, cwd=self.repo_root, timeout=self.timeout, check=check)

    # ------------------------------------------------------------------
    # Backend operations
    # ------------------------------------------------------------------
    def reconcile(self) -> None:
        """Refresh the backend's view of local edits. No-op by default."""

    @abstractmethod
    def native_diff(self) -> str:
        """Return a zero-context unified diff of tracked modifications."""

    @abstractmethod
    def list_changes(self) -> List[ChangeRecord]:
        """Return one record per pending change, paths not yet normalized."""

    @abstractmethod
    def resolve_path(self, depot_path: str) -> PathMapping:
        """Return where ``depot_path`` lives on disk."""

    @abstractmethod
    def normalize(self, depot_path: str) -> str:
        """Return ``depot_path`` relative to the top of the versioned tree."""

    @abstractmethod
    def current_revision(self) -> Optional[str]:
        """Return the revision the working copy is based on, if any."""

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------
    def _local_path(self, change: ChangeRecord) -> str:
        if change.local_path is None:
            change.local_path = self.resolve_path(change.depot_path).local_path
        return change.local_path

    def path_replacements(self, changes: List[ChangeRecord]) -> Dict[str, str]:
        """Map the internal paths of modified files to relative paths."""
        replacements: Dict[str, str] = {}
        for change in changes:
            mapping = self.resolve_path(change.depot_path)
            change.local_path = mapping.local_path
            relative = self.normalize(mapping.depot_path)
            change.repo_relative_path = relative
            replacements[mapping.depot_path] = relative
            replacements[mapping.local_path] = relative
        return replacements

    def patches(self) -> List[str]:
        """Return the pending changes as an ordered list of diff blocks.

        The native diff comes first, then one ``delete <path>`` line per
        deleted file, then one synthesized diff per added file. An empty
        list means there is nothing to review. Any failure propagates and
        no partial list is returned.

        Raises
        ------
        ExternalToolError
            If a VCS command fails.
        PathNormalizationError
            If a depot path does not fit the configured root.
        MissingFileError
            If an added file is missing on disk.
        """
        self.reconcile()
        diff = self.native_diff()
        changes = self.list_changes()

        deletions: List[str] = []
        for change in changes:
            if change.action is ChangeAction.DELETE:
                change.repo_relative_path = self.normalize(change.depot_path)
                deletions.append(deletion_marker(change.repo_relative_path))

        additions: List[str] = []
        for change in changes:
            if change.action is ChangeAction.ADD:
                local_path = self._local_path(change)
                change.repo_relative_path = self.normalize(change.depot_path)
                additions.append(synthesize_added_file_diff(local_path, change.repo_relative_path))

        blocks: List[str] = []
        if diff.strip():
            modified = [change for change in changes if change.action is ChangeAction.MODIFY]
            blocks.append(rewrite_paths(diff, self.path_replacements(modified)))
        blocks.extend(deletions)
        blocks.extend(additions)
        logger.debug(
            "Built %d patch block(s): %d deletion(s), %d addition(s)",
            len(blocks),
            len(deletions),
            len(additions),
        )
        return blocks
