"""
Process invocation for VCS command line tools.

All external commands go through :func:`run_command`, which captures the
output streams separately and converts every kind of failure (missing
binary, non-zero exit, undecodable output, timeout) into an
:class:`~vc_patch_helper.errors.ExternalToolError`. Commands run one at a
time and block until completion.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Union

from vc_patch_helper.errors import ExternalToolError


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs will propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


def run_command(
    executable: str,
    args: Sequence[str],
    cwd: Optional[Union[str, Path]] = None,
    timeout: Optional[float] = None,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """Run ``executable`` with ``args`` and return the completed process.

    Parameters
    ----------
    executable : str
        Name or path of the VCS binary (``git``, ``p4``).
    args : Sequence[str]
        Arguments passed to the binary.
    cwd : str or Path, optional
        Working directory for the command.
    timeout : float, optional
        Seconds after which the command is killed. ``None`` waits forever.
    check : bool
        When True a non-zero exit status raises.

    Raises
    ------
    ExternalToolError
        If the binary cannot be started, times out, produces undecodable
        output or (with ``check``) exits with a non-zero status.
    """
    full_cmd: List[str] = [executable] + list(args)
    logger.debug("Executing command: %s", " ".join(full_cmd))
    try:
        result = subprocess.run(
            full_cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError as e:
        logger.error("Executable not found: %s", e)
        raise ExternalToolError(f"{executable} executable not found", command=full_cmd) from e
    except subprocess.TimeoutExpired as e:
        logger.error("Command timed out after %ss: %s", timeout, " ".join(full_cmd))
        raise ExternalToolError(
            f"{executable} did not finish within {timeout} seconds", command=full_cmd
        ) from e
    except UnicodeDecodeError as e:
        logger.error("Unicode decode error in %s output: %s", executable, e)
        raise ExternalToolError(f"Failed to decode {executable} output: {e}", command=full_cmd) from e

    if check and result.returncode != 0:
        logger.error(
            "Command failed: %s\nSTDOUT: %s\nSTDERR: %s",
            " ".join(full_cmd),
            result.stdout,
            result.stderr,
        )
        raise ExternalToolError(
            result.stderr.strip() or result.stdout.strip() or f"{executable} exited with status {result.returncode}",
            command=full_cmd,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
    return result


def run(
    executable: str,
    args: Sequence[str],
    cwd: Optional[Union[str, Path]] = None,
    timeout: Optional[float] = None,
) -> str:
    """Run a command that must succeed and return its standard output."""
    return run_command(executable, args, cwd=cwd, timeout=timeout, check=True).stdout
