"""
Configuration loader for vc_patch_helper.

Settings are read from an optional JSON file named ``.vcpatch.json`` in
the repository root. Every key is optional; a missing file yields the
defaults. The most important setting for Perforce users is the depot root,
either as an explicit ``depot_root`` prefix or as a ``root_depth`` (the
number of leading depot path segments to strip).

If the file is malformed or a value has the wrong type, a
:class:`ConfigError` is raised.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from vc_patch_helper.vcs.depot_path import DEFAULT_ROOT_DEPTH


logger = logging.getLogger(__name__)
# Attach a null handler to avoid "No handler" warnings or logging errors in
# environments where the root logger may be closed.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


CONFIG_FILE_NAME = ".vcpatch.json"
SUPPORTED_BACKENDS = ("git", "p4")


class ConfigError(Exception):
    """Raised when the configuration file is invalid."""

    pass


@dataclass
class PatchConfig:
    """Validated settings for building a patch set."""

    backend: Optional[str] = None
    root_depth: int = DEFAULT_ROOT_DEPTH
    depot_root: Optional[str] = None
    include_untracked: bool = True
    timeout: Optional[float] = None
    git_executable: str = "git"
    p4_executable: str = "p4"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate(data: Dict[str, Any]) -> PatchConfig:
    known = set(PatchConfig.__dataclass_fields__)
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", unknown)

    backend = data.get("backend")
    if backend is not None and backend not in SUPPORTED_BACKENDS:
        raise ConfigError(f"'backend' must be one of {', '.join(SUPPORTED_BACKENDS)}")
    if "root_depth" in data and (not _is_int(data["root_depth"]) or data["root_depth"] < 0):
        raise ConfigError("'root_depth' must be a non-negative integer")
    if data.get("depot_root") is not None and not isinstance(data["depot_root"], str):
        raise ConfigError("'depot_root' must be a string")
    if "include_untracked" in data and not isinstance(data["include_untracked"], bool):
        raise ConfigError("'include_untracked' must be a boolean")
    timeout = data.get("timeout")
    if timeout is not None and (
        not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0
    ):
        raise ConfigError("'timeout' must be a positive number")
    for key in ("git_executable", "p4_executable"):
        if key in data and (not isinstance(data[key], str) or not data[key]):
            raise ConfigError(f"'{key}' must be a non-empty string")

    return PatchConfig(
        backend=backend,
        root_depth=data.get("root_depth", DEFAULT_ROOT_DEPTH),
        depot_root=data.get("depot_root") or None,
        include_untracked=data.get("include_untracked", True),
        timeout=float(timeout) if timeout is not None else None,
        git_executable=data.get("git_executable", "git"),
        p4_executable=data.get("p4_executable", "p4"),
    )


def load_config(repo_root: Path) -> PatchConfig:
    """Load ``.vcpatch.json`` from ``repo_root`` and return the settings.

    Args:
        repo_root: Root of the working copy.

    Returns:
        A :class:`PatchConfig`. Defaults are used for absent keys or when
        the file does not exist.

    Raises:
        ConfigError: If the file is unreadable, not a JSON object, or holds
            values of the wrong type.
    """
    config_path = Path(repo_root) / CONFIG_FILE_NAME
    if not config_path.exists():
        logger.debug("No configuration file at %s; using defaults", config_path)
        return PatchConfig()

    try:
        content = config_path.read_text(encoding="utf-8")
        data = json.loads(content)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {config_path.name}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path.name} must contain a JSON object")

    config = _validate(data)
    logger.debug("Loaded configuration from %s: %s", config_path, config)
    return config
