"""
Version control system (VCS) backends.

This package contains the backend interface and concrete clients for
reading pending changes from Git and Perforce working copies. Each client
exposes ``patches()``, which returns the changes as an ordered list of
unified diff blocks.
"""

from .base import VCSBackend  # noqa: F401
from .git_client import GitClient  # noqa: F401
from .p4_client import PerforceClient  # noqa: F401
