"""
Backend selection.

Backends are chosen by name from configuration or the command line,
never by inspecting tool output.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Type

from vc_patch_helper.config.loader import ConfigError, PatchConfig
from vc_patch_helper.vcs.base import VCSBackend
from vc_patch_helper.vcs.depot_path import PathNormalizer
from vc_patch_helper.vcs.git_client import GitClient
from vc_patch_helper.vcs.p4_client import PerforceClient


BACKENDS: Dict[str, Type[VCSBackend]] = {
    GitClient.name: GitClient,
    PerforceClient.name: PerforceClient,
}


def create_backend(name: str, repo_root: Path, config: Optional[PatchConfig] = None) -> VCSBackend:
    """Instantiate the backend called ``name`` for ``repo_root``.

    Raises
    ------
    ConfigError
        If ``name`` is not a known backend.
    """
    config = config or PatchConfig()
    if name == GitClient.name:
        return GitClient(
            repo_root,
            include_untracked=config.include_untracked,
            executable=config.git_executable,
            timeout=config.timeout,
        )
    if name == PerforceClient.name:
        return PerforceClient(
            repo_root,
            normalizer=PathNormalizer(root_depth=config.root_depth, depot_root=config.depot_root),
            executable=config.p4_executable,
            timeout=config.timeout,
        )
    raise ConfigError(f"Unknown VCS backend '{name}'; expected one of {', '.join(BACKENDS)}")
