"""
Perforce backend for vc_patch_helper.

Perforce only knows about edits that were opened on the server, so the
working copy has to be reconciled before its status can be trusted.
``p4 reconcile -e`` opens locally edited files for edit; it is the one
command in this package that changes server-side state. Status is read in
tagged mode and depot paths are translated to repository-relative paths
with a :class:`~vc_patch_helper.vcs.depot_path.PathNormalizer`.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from vc_patch_helper.errors import ExternalToolError
from vc_patch_helper.vcs.base import VCSBackend
from vc_patch_helper.vcs.depot_path import PathNormalizer
from vc_patch_helper.vcs.models import ChangeRecord, PathMapping
from vc_patch_helper.vcs.status_parser import parse_p4_status, parse_ztag_records


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


DEFAULT_P4CONFIG = ".p4config"

# Warnings p4 prints when there is simply nothing to do.
BENIGN_MESSAGES = (
    "file(s) not opened",
    "no file(s) to reconcile",
    "file(s) up-to-date",
)


def _is_benign(text: str) -> bool:
    lowered = text.lower()
    return any(message in lowered for message in BENIGN_MESSAGES)


def _command_name(args: List[str]) -> str:
    # Global options such as -ztag come before the command.
    return next((arg for arg in args if not arg.startswith("-")), "")


class PerforceClient(VCSBackend):
    """Client for reading pending changes from a Perforce workspace."""

    name = "p4"

    def __init__(
        self,
        repo_root: Path,
        normalizer: Optional[PathNormalizer] = None,
        executable: str = "p4",
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(repo_root, timeout=timeout)
        self.normalizer = normalizer or PathNormalizer()
        self.executable = executable

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def config_file_name() -> str:
        """Return the name of the per-workspace config file (``$P4CONFIG``)."""
        return os.environ.get("P4CONFIG") or DEFAULT_P4CONFIG

    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the workspace root by looking for the P4CONFIG file.

        Walk upwards from ``start`` until the file is found or the
        filesystem root is reached.
        """
        name = PerforceClient.config_file_name()
        current = start.resolve()
        while True:
            if (current / name).is_file():
                return current
            if current.parent == current:
                return None
            current = current.parent

    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        # p4 resolves relative paths against -d rather than the process cwd.
        return super()._run(["-d", str(self.repo_root)] + args, check=check)

    def _run_tolerant(self, args: List[str]) -> str:
        """Run a command for which "nothing to do" warnings are not errors."""
        try:
            result = self._run(args, check=True)
        except ExternalToolError as exc:
            if _is_benign(f"{exc}\n{exc.stdout}\n{exc.stderr}"):
                logger.debug("p4 %s: nothing to do", _command_name(args))
                return ""
            raise
        return result.stdout

    def _tagged(self, args: List[str]) -> List[Dict[str, str]]:
        result = self._run(["-ztag"] + args, check=True)
        return parse_ztag_records(result.stdout)

    # ------------------------------------------------------------------
    # Backend operations
    # ------------------------------------------------------------------
    def reconcile(self) -> None:
        """Open locally edited files for edit so that status and diff see them."""
        self._run_tolerant(["reconcile", "-e", "..."])

    def native_diff(self) -> str:
        """Return ``p4 diff`` output with zero lines of context."""
        diff = self._run_tolerant(["diff", "-du0", "..."])
        if _is_benign(diff) and not diff.lstrip().startswith(("---", "====")):
            return ""
        return diff

    def list_changes(self) -> List[ChangeRecord]:
        """Return opened and reconcilable changes from ``p4 status``."""
        output = self._run_tolerant(["-ztag", "status", "..."])
        return parse_p4_status(output)

    def resolve_path(self, depot_path: str) -> PathMapping:
        """Look up the local path of ``depot_path`` with ``p4 where``.

        Raises
        ------
        ExternalToolError
            If the workspace view does not map the file.
        """
        for record in self._tagged(["where", depot_path]):
            if "unmap" in record:
                continue
            if record.get("depotFile") and record.get("path"):
                return PathMapping(depot_path=record["depotFile"], local_path=record["path"])
        logger.error("p4 where returned no mapping for %s", depot_path)
        raise ExternalToolError(f"No workspace mapping for {depot_path}", command=["p4", "where", depot_path])

    def normalize(self, depot_path: str) -> str:
        return self.normalizer.normalize(depot_path)

    def current_revision(self) -> Optional[str]:
        """Return the newest changelist the workspace has synced, if any."""
        for record in self._tagged(["changes", "-m1", "...#have"]):
            if record.get("change"):
                return record["change"]
        return None
