"""
Unified diff helpers.

:mod:`vc_patch_helper.diff.synthesizer` builds diffs for files that the
VCS cannot diff natively and rewrites VCS-internal paths in native diffs.
"""

from .synthesizer import deletion_marker, rewrite_paths, synthesize_added_file_diff  # noqa: F401
