"""
Data models shared by the VCS backends.

A :class:`ChangeRecord` describes one pending change reported by a status
listing. Records only live for the duration of a single ``patches()`` call.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ChangeAction(Enum):
    """Kind of pending change for a single file."""

    MODIFY = "modify"
    ADD = "add"
    DELETE = "delete"


# Higher wins when one path shows up under more than one action in a single
# status snapshot.
ACTION_PRECEDENCE = {
    ChangeAction.MODIFY: 0,
    ChangeAction.ADD: 1,
    ChangeAction.DELETE: 2,
}


@dataclass
class ChangeRecord:
    """Representation of a single pending change.

    Attributes
    ----------
    action : ChangeAction
        What happened to the file.
    depot_path : str
        VCS-internal identifier of the file. For Git this is already the
        repository-relative path.
    local_path : str, optional
        Location of the file on disk, when known.
    repo_relative_path : str, optional
        Path relative to the top of the versioned tree. Filled in by the
        backend once the depot path has been normalized.
    """

    action: ChangeAction
    depot_path: str
    local_path: Optional[str] = None
    repo_relative_path: Optional[str] = None


@dataclass(frozen=True)
class PathMapping:
    """Correspondence between a depot path and its location on disk."""

    depot_path: str
    local_path: str
