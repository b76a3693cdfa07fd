"""
Error taxonomy for vc_patch_helper.

Every failure while building a patch set aborts the whole call; there is
no partial result. The classes below let callers tell the failure domains
apart, and :func:`user_facing_message` turns the raw text of the most
common tool failures into a short hint for the terminal.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence


class PatchError(Exception):
    """Base class for all patch extraction failures."""

    pass


class ExternalToolError(PatchError):
    """Raised when a VCS command is missing, fails, times out or prints
    output that cannot be understood."""

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command: List[str] = list(command or [])
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class PathNormalizationError(PatchError):
    """Raised when a depot path does not fit the configured root convention."""

    pass


class MissingFileError(PatchError):
    """Raised when the VCS reports a file that is not present on disk."""

    pass


_CLIENT_UNKNOWN = re.compile(r"Client '.*' unknown")

# (predicate, message) pairs checked in order against the error text.
_HINTS = [
    (
        lambda text: "not a git repository" in text.lower(),
        "This command can only be run in a git repository.",
    ),
    (
        lambda text: "connect to server failed" in text.lower(),
        "Cannot reach the Perforce server. Check P4PORT and your network connection.",
    ),
    (
        lambda text: bool(_CLIENT_UNKNOWN.search(text)),
        "The Perforce workspace is unknown. Check P4CLIENT or your .p4config file.",
    ),
    (
        lambda text: "perforce password" in text.lower() or "session has expired" in text.lower(),
        "Your Perforce session is not valid. Run `p4 login` and try again.",
    ),
]


def user_facing_message(err: BaseException) -> str:
    """Return a short message suitable for printing to the user.

    Known failure texts are mapped to actionable hints; anything else is
    returned unchanged.
    """
    message = str(err)
    if isinstance(err, ExternalToolError):
        haystack = "\n".join(part for part in (message, err.stderr, err.stdout) if part)
    else:
        haystack = message
    if isinstance(err, ExternalToolError) and message.endswith("executable not found"):
        return f"{message}. Make sure it is installed and on your PATH."
    for matches, hint in _HINTS:
        if matches(haystack):
            return hint
    return message
