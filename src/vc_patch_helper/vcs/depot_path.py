"""
Depot path handling.

Perforce identifies files with depot paths such as
``//depot/main/pkg/foo.go``. The leading segments name the depot and the
branch (or stream); the review service only understands the part below
that root, ``pkg/foo.go``. :class:`DepotPath` keeps a path as an ordered
tuple of segments so the root can be stripped and restored without any
string slicing, and :class:`PathNormalizer` applies the configured root
convention.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from vc_patch_helper.errors import PathNormalizationError


# Everything from the wildcard marker onwards is dropped.
ROOT_MARKER = "..."

# //depot/<branch>/
DEFAULT_ROOT_DEPTH = 2


@dataclass(frozen=True)
class DepotPath:
    """A slash separated path split into segments.

    Attributes
    ----------
    prefix : str
        ``"//"`` for depot syntax, ``"/"`` for absolute paths and ``""``
        for relative ones.
    segments : Tuple[str, ...]
        Non-empty path components.
    """

    prefix: str
    segments: Tuple[str, ...]

    @classmethod
    def parse(cls, path: str) -> "DepotPath":
        """Parse ``path``, cutting it at the root marker.

        Raises
        ------
        PathNormalizationError
            If nothing is left after the marker is removed or the path
            contains empty, ``.`` or ``..`` components.
        """
        text = path.strip().split(ROOT_MARKER, 1)[0]
        if text.startswith("//"):
            prefix = "//"
        elif text.startswith("/"):
            prefix = "/"
        else:
            prefix = ""
        body = text[len(prefix):].rstrip("/")
        if not body:
            raise PathNormalizationError(f"Empty depot path: {path!r}")
        segments = tuple(body.split("/"))
        if any(segment in ("", ".", "..") for segment in segments):
            raise PathNormalizationError(f"Malformed depot path: {path!r}")
        return cls(prefix=prefix, segments=segments)

    def __str__(self) -> str:
        return self.prefix + "/".join(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def join(self, relative: str) -> "DepotPath":
        """Append the segments of a relative path."""
        tail = DepotPath.parse(relative)
        if tail.prefix:
            raise PathNormalizationError(f"Cannot join absolute path {relative!r} to {self}")
        return DepotPath(prefix=self.prefix, segments=self.segments + tail.segments)

    def split(self, depth: int) -> Tuple["DepotPath", "DepotPath"]:
        """Split into the first ``depth`` segments and the remainder.

        At least one segment must remain below the root.
        """
        if depth < 0:
            raise PathNormalizationError(f"Root depth must not be negative, got {depth}")
        if depth >= len(self.segments):
            raise PathNormalizationError(
                f"Depot path {self} has {len(self.segments)} segment(s); "
                f"expected more than the root depth of {depth}"
            )
        root = DepotPath(prefix=self.prefix, segments=self.segments[:depth])
        rest = DepotPath(prefix="", segments=self.segments[depth:])
        return root, rest

    def relative_to(self, root: "DepotPath") -> "DepotPath":
        """Return the part of this path below ``root``."""
        depth = len(root.segments)
        if self.prefix != root.prefix or self.segments[:depth] != root.segments:
            raise PathNormalizationError(f"Depot path {self} is not under {root}")
        return self.split(depth)[1]


class PathNormalizer:
    """Convert depot paths into repository-relative paths.

    The root is either an explicit ``depot_root`` prefix, which is the
    preferred setting, or a number of leading segments (``root_depth``) to
    drop from every path.
    """

    def __init__(self, root_depth: int = DEFAULT_ROOT_DEPTH, depot_root: Optional[str] = None) -> None:
        if root_depth < 0:
            raise ValueError("root_depth must not be negative")
        self.root_depth = root_depth
        self.depot_root = DepotPath.parse(depot_root) if depot_root else None

    def split(self, depot_path: str) -> Tuple[DepotPath, str]:
        """Return the root of ``depot_path`` and the relative path below it.

        ``root.join(relative)`` reconstructs the parsed depot path.
        """
        path = DepotPath.parse(depot_path)
        if self.depot_root is not None:
            return self.depot_root, str(path.relative_to(self.depot_root))
        root, rest = path.split(self.root_depth)
        return root, str(rest)

    def normalize(self, depot_path: str) -> str:
        """Return ``depot_path`` relative to the top of the versioned tree."""
        return self.split(depot_path)[1]
