"""
Top-level package for vc_patch_helper.

The package turns the uncommitted changes of a Git or Perforce working
copy into VCS-agnostic unified diff blocks. The command line entry point
lives in :mod:`vc_patch_helper.cli`.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
