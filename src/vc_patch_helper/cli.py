"""
Command line interface for the vc_patch_helper tool.

This module defines the ``main`` function used as the entry point of the
``vcpatch`` command. It detects the working copy, loads configuration,
selects the backend and writes the patch set to standard output. Status
and errors go to standard error so that the output can be piped.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Tuple

import click

from vc_patch_helper import __version__
from vc_patch_helper.config.loader import ConfigError, PatchConfig, load_config
from vc_patch_helper.errors import (
    ExternalToolError,
    MissingFileError,
    PatchError,
    PathNormalizationError,
    user_facing_message,
)
from vc_patch_helper.vcs.git_client import GitClient
from vc_patch_helper.vcs.p4_client import PerforceClient
from vc_patch_helper.vcs.registry import create_backend

# Create a module-level logger. Attach a null handler and disable
# propagation to avoid logging errors when the root logger's stream is
# closed (such as during unit tests).
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_NO_REPO = 3
EXIT_NO_CHANGES = 4
EXIT_CONFIG_ERROR = 5
EXIT_VCS_FAILURE = 6
EXIT_PATH_ERROR = 7
EXIT_MISSING_FILE = 8

# Block separator for plain text output.
BLOCK_SEPARATOR = "\n"


def print_info(message: str) -> None:
    """Print an info message to stderr."""
    click.echo(f"ℹ {message}", err=True)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    click.echo(click.style(f"✗ {message}", fg="bright_red"), err=True)


def detect_vcs(start_dir: Path) -> Tuple[str, Path]:
    """Detect the VCS type and working copy root.

    Parameters
    ----------
    start_dir : Path
        The directory from which to start searching.

    Returns
    -------
    Tuple[str, Path]
        ``(vcs_type, repo_root)`` where vcs_type is ``'git'`` or ``'p4'``.

    Raises
    ------
    SystemExit
        With code EXIT_NO_REPO if no working copy is found or if both kinds
        of metadata are present.
    """
    git_root = GitClient.find_repo_root(start_dir)
    p4_root = PerforceClient.find_repo_root(start_dir)
    if git_root and p4_root:
        print_error("Both Git and Perforce metadata found; use --vcs to choose one.")
        raise SystemExit(EXIT_NO_REPO)
    if git_root:
        return GitClient.name, git_root
    if p4_root:
        return PerforceClient.name, p4_root
    print_error("No Git repository or Perforce workspace found in current directory or parent directories.")
    raise SystemExit(EXIT_NO_REPO)


def _find_root(vcs: str, start_dir: Path) -> Optional[Path]:
    if vcs == GitClient.name:
        return GitClient.find_repo_root(start_dir)
    return PerforceClient.find_repo_root(start_dir)


def _backend_from_config(start_dir: Path) -> Optional[str]:
    """Return the backend named in ``.vcpatch.json`` when both Git and
    Perforce metadata are present, otherwise None."""
    git_root = GitClient.find_repo_root(start_dir)
    p4_root = PerforceClient.find_repo_root(start_dir)
    if not (git_root and p4_root):
        return None
    for root in dict.fromkeys([git_root, p4_root]):
        backend = load_config(root).backend
        if backend:
            logger.debug("Backend %s chosen by %s", backend, root)
            return backend
    return None


@click.command()
@click.option("--vcs", type=click.Choice(["git", "p4"]), help="Force the VCS type (git or p4).")
@click.option("--root-depth", type=click.IntRange(min=0), help="Number of leading depot path segments to strip.")
@click.option("--depot-root", help="Depot path prefix to strip, e.g. //depot/main.")
@click.option("--no-untracked", is_flag=True, help="Ignore untracked files (Git only).")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), help="Seconds to wait for each VCS command.")
@click.option("--json", "as_json", is_flag=True, help="Print the patch set as a JSON array.")
@click.option("--revision", is_flag=True, help="Also print the current revision to stderr.")
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="vcpatch")
def main(
    vcs: Optional[str],
    root_depth: Optional[int],
    depot_root: Optional[str],
    no_untracked: bool,
    timeout: Optional[float],
    as_json: bool,
    revision: bool,
    verbose: bool,
) -> None:
    """Print the uncommitted changes of a Git or Perforce working copy as unified diffs."""
    # Use force=True to ensure handlers are reconfigured on subsequent
    # invocations (important for tests).
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        force=True,
    )
    if verbose:
        _propagate_package_logs()

    cwd = Path.cwd()
    if vcs is None:
        try:
            vcs = _backend_from_config(cwd)
        except ConfigError as exc:
            print_error(f"Configuration error: {exc}")
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)
    forced = vcs is not None
    if vcs is None:
        try:
            vcs, repo_root = detect_vcs(cwd)
        except SystemExit:
            raise click.exceptions.Exit(EXIT_NO_REPO)
    else:
        found = _find_root(vcs, cwd)
        if found is None:
            print_error(f"Current directory is not inside a {vcs} working copy.")
            raise click.exceptions.Exit(EXIT_NO_REPO)
        repo_root = found
    logger.debug("Detected VCS: %s, root: %s", vcs, repo_root)

    try:
        config = load_config(repo_root)
    except ConfigError as exc:
        print_error(f"Configuration error: {exc}")
        raise click.exceptions.Exit(EXIT_CONFIG_ERROR)
    _apply_overrides(config, root_depth, depot_root, no_untracked, timeout)

    if config.backend and config.backend != vcs and not forced:
        # The config file names the backend explicitly.
        found = _find_root(config.backend, cwd)
        if found is None:
            print_error(f"Configured backend '{config.backend}' has no working copy here.")
            raise click.exceptions.Exit(EXIT_NO_REPO)
        vcs, repo_root = config.backend, found

    try:
        backend = create_backend(vcs, repo_root, config)
        if revision:
            print_info(f"Revision: {backend.current_revision() or 'none'}")
        patches = backend.patches()
    except ConfigError as exc:
        print_error(f"Configuration error: {exc}")
        raise click.exceptions.Exit(EXIT_CONFIG_ERROR)
    except ExternalToolError as exc:
        print_error(user_facing_message(exc))
        raise click.exceptions.Exit(EXIT_VCS_FAILURE)
    except PathNormalizationError as exc:
        print_error(f"{exc}. Check 'depot_root' or 'root_depth' in your configuration.")
        raise click.exceptions.Exit(EXIT_PATH_ERROR)
    except MissingFileError as exc:
        print_error(str(exc))
        raise click.exceptions.Exit(EXIT_MISSING_FILE)
    except PatchError as exc:
        print_error(str(exc))
        raise click.exceptions.Exit(EXIT_GENERIC_ERROR)

    if as_json:
        click.echo(json.dumps(patches, indent=2))
    elif patches:
        click.echo(BLOCK_SEPARATOR.join(block.rstrip("\n") for block in patches))

    if not patches:
        print_info("No pending changes.")
        raise click.exceptions.Exit(EXIT_NO_CHANGES)
    raise click.exceptions.Exit(EXIT_SUCCESS)


def _propagate_package_logs() -> None:
    """Route the package's module loggers to the handlers configured above."""
    for name, candidate in list(logging.Logger.manager.loggerDict.items()):
        if name.startswith("vc_patch_helper") and isinstance(candidate, logging.Logger):
            candidate.propagate = True


def _apply_overrides(
    config: PatchConfig,
    root_depth: Optional[int],
    depot_root: Optional[str],
    no_untracked: bool,
    timeout: Optional[float],
) -> None:
    """Let command line options take precedence over the config file."""
    if root_depth is not None:
        config.root_depth = root_depth
    if depot_root:
        config.depot_root = depot_root
    if no_untracked:
        config.include_untracked = False
    if timeout is not None:
        config.timeout = timeout
