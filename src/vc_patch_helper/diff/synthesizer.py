"""
Diff synthesis for new files and path rewriting for native diffs.

A new file has no base revision, so its diff is built here: the whole
content is inserted against an empty "before" side (``/dev/null``) with
zero lines of context. Deleted files are not diffed at all; they are
represented by a ``delete <path>`` line that the review service handles
specially.
"""

from __future__ import annotations

import difflib
import io
import logging
import re
from pathlib import Path
from typing import List, Mapping, Optional, Union

from vc_patch_helper.errors import MissingFileError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


DEV_NULL = "/dev/null"
NO_NEWLINE_MARKER = "\\ No newline at end of file\n"

# Perforce appends revision specifiers such as #3 or #none to paths.
_REVISION_SUFFIX = r"(?:#(?:\d+|none|have|head))?"


def deletion_marker(path: str) -> str:
    """Return the sentinel block for a deleted file."""
    return f"delete {path}"


def synthesize_added_file_diff(local_path: Union[str, Path], display_path: Optional[str] = None) -> str:
    """Build a unified diff that adds ``local_path`` in full.

    Parameters
    ----------
    local_path : str or Path
        Location of the new file on disk.
    display_path : str, optional
        Path written to the ``+++`` header. Defaults to ``local_path``.

    Returns
    -------
    str
        Diff text with ``/dev/null`` as the before file and every line
        of the file as an insertion.

    Raises
    ------
    MissingFileError
        If the file does not exist, is not a regular file, or holds nothing
        but whitespace.
    """
    path = Path(local_path)
    target = display_path or str(local_path)
    if not path.is_file():
        logger.error("File %s reported as added but not found on disk", path)
        raise MissingFileError(f"{path} No such file, but the VCS reports it as added")
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.error("Failed to read added file %s: %s", path, exc)
        raise MissingFileError(f"Cannot read added file {path}: {exc}") from exc
    if not content.strip():
        logger.error("Added file %s is empty", path)
        raise MissingFileError(f"{path} is empty, but the VCS reports it as added")

    # Only \n ends a line; form feeds and U+2028 stay inside it.
    lines = io.StringIO(content, newline="\n").readlines()
    missing_newline = not lines[-1].endswith("\n")
    if missing_newline:
        lines[-1] += "\n"

    diff: List[str] = list(
        difflib.unified_diff([], lines, fromfile=DEV_NULL, tofile=target, n=0)
    )
    if missing_newline:
        diff.append(NO_NEWLINE_MARKER)
    return "".join(diff)


def rewrite_paths(diff_text: str, replacements: Mapping[str, str]) -> str:
    """Replace VCS-internal paths in ``diff_text`` with relative ones.

    Every occurrence of a key in ``replacements`` is substituted in a
    single pass. Longer keys are tried first so a path is never rewritten
    inside a longer one. A revision specifier directly after a path is
    dropped along with it.
    """
    keys = sorted((key for key in replacements if key), key=len, reverse=True)
    if not keys or not diff_text:
        return diff_text
    pattern = re.compile("(" + "|".join(re.escape(key) for key in keys) + ")" + _REVISION_SUFFIX)
    return pattern.sub(lambda match: replacements[match.group(1)], diff_text)
