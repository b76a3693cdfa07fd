"""
Parsers for VCS status listings.

The functions in this module are pure: they take the captured text of a
status command and return :class:`~vc_patch_helper.vcs.models.ChangeRecord`
objects. Keeping them free of subprocess calls lets the tests feed them
fixture output directly.

Perforce output is read in tagged mode (``p4 -ztag``), where every field
is printed on its own ``... <field> <value>`` line. Git output is read from
``git status --porcelain=v1 -z``.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from vc_patch_helper.vcs.models import ACTION_PRECEDENCE, ChangeAction, ChangeRecord


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


TAG_PREFIX = "... "

P4_ACTIONS = {
    "edit": ChangeAction.MODIFY,
    "integrate": ChangeAction.MODIFY,
    "add": ChangeAction.ADD,
    "branch": ChangeAction.ADD,
    "move/add": ChangeAction.ADD,
    "delete": ChangeAction.DELETE,
    "move/delete": ChangeAction.DELETE,
}


def parse_ztag_records(text: str) -> List[Dict[str, str]]:
    """Split Perforce tagged output into one dictionary per record.

    Records are separated by blank lines. A field that repeats inside the
    current record also starts a new one, since some commands do not print
    separators. Lines that are not tagged (informational messages such as
    ``No file(s) to reconcile.``) and nested ``... ...`` lines are ignored.
    """
    records: List[Dict[str, str]] = []
    current: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.rstrip("\r")
        if not line.strip():
            if current:
                records.append(current)
                current = {}
            continue
        if not line.startswith(TAG_PREFIX) or line.startswith(TAG_PREFIX + TAG_PREFIX):
            continue
        field, _, value = line[len(TAG_PREFIX):].partition(" ")
        if not field:
            continue
        if field in current:
            records.append(current)
            current = {}
        current[field] = value
    if current:
        records.append(current)
    return records


def parse_p4_status(text: str) -> List[ChangeRecord]:
    """Parse ``p4 -ztag status`` output into change records.

    Records without a ``depotFile`` or with an action this tool does not
    understand are skipped. Paths are returned raw; normalization is the
    backend's job.
    """
    changes: List[ChangeRecord] = []
    for record in parse_ztag_records(text):
        depot_file = record.get("depotFile")
        action = P4_ACTIONS.get(record.get("action", ""))
        if not depot_file or action is None:
            logger.debug("Skipping p4 status record: %s", record)
            continue
        local = record.get("localFile") or record.get("path") or None
        changes.append(ChangeRecord(action=action, depot_path=depot_file, local_path=local))
    logger.debug("Detected p4 changes: %s", changes)
    return merge_changes(changes)


def _git_action(status_code: str) -> ChangeAction:
    # A deletion in either column wins, then additions.
    if "D" in status_code:
        return ChangeAction.DELETE
    if "A" in status_code:
        return ChangeAction.ADD
    return ChangeAction.MODIFY


def parse_git_status(text: str, include_untracked: bool = True) -> List[ChangeRecord]:
    """Parse ``git status --porcelain=v1 -z`` output into change records.

    Parameters
    ----------
    text : str
        NUL separated status entries of the form ``XY path``.
    include_untracked : bool
        Whether untracked files (``??``) are reported as additions.
    """
    entries = text.split("\0")
    changes: List[ChangeRecord] = []
    index = 0
    while index < len(entries):
        entry = entries[index]
        index += 1
        # XY + space + path
        if len(entry) < 4:
            continue
        status_code = entry[:2]
        path = entry[3:]
        if status_code[0] in "RC":
            # Renames and copies carry the source path as a separate entry.
            index += 1
        if status_code == "!!":
            continue
        if status_code == "??":
            if include_untracked:
                changes.append(ChangeRecord(action=ChangeAction.ADD, depot_path=path))
            continue
        changes.append(ChangeRecord(action=_git_action(status_code), depot_path=path))
    logger.debug("Detected git changes: %s", changes)
    return merge_changes(changes)


def merge_changes(changes: Iterable[ChangeRecord]) -> List[ChangeRecord]:
    """Keep one record per depot path.

    When a path is reported more than once, the action with the highest
    precedence (delete, then add, then modify) is kept. The position of the
    first occurrence is preserved.
    """
    merged: Dict[str, ChangeRecord] = {}
    for change in changes:
        existing = merged.get(change.depot_path)
        if existing is None:
            merged[change.depot_path] = change
            continue
        logger.warning(
            "Path %s reported as both %s and %s",
            change.depot_path,
            existing.action.value,
            change.action.value,
        )
        if ACTION_PRECEDENCE[change.action] > ACTION_PRECEDENCE[existing.action]:
            merged[change.depot_path] = change
    return list(merged.values())
