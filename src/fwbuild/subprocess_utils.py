"""Subprocess helpers for invoking external build tools.

safe_run() wraps subprocess.run with platform-specific defaults:
- CREATE_NO_WINDOW on Windows (no console window flashing)
- stdin=DEVNULL (child tools never steal keystrokes from the terminal)

run_tool() is what the build graph uses: it captures output, optionally
redirects stdout to a file, and turns a non-zero exit status into a
ToolFailedError that names the tool, the file being produced and the exit
status.
"""

import logging
import subprocess
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from .build.errors import ToolFailedError

logger = logging.getLogger(__name__)

# Exit status reported when the tool executable cannot be found (as a shell would)
COMMAND_NOT_FOUND = 127


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def safe_run(cmd: Sequence[str], **kwargs: Any) -> subprocess.CompletedProcess:
    """Execute subprocess.run with platform-specific flags.

    Args:
        cmd: Command and arguments (same as subprocess.run)
        **kwargs: Additional arguments passed to subprocess.run; an explicit
            'creationflags' is OR'd with the platform default and an explicit
            'stdin' is used as-is

    Returns:
        CompletedProcess result from subprocess.run
    """
    default_flags = get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    if "stdin" not in kwargs:
        kwargs["stdin"] = subprocess.DEVNULL

    return subprocess.run(list(cmd), **kwargs)


def run_tool(
    cmd: Sequence[str],
    description: str,
    cwd: Optional[Path] = None,
    produces: Optional[str] = None,
    stdout_path: Optional[Path] = None,
) -> subprocess.CompletedProcess:
    """Run an external tool and fail loudly on a non-zero exit.

    Args:
        cmd: Command and arguments
        description: What the tool is doing (used in error messages)
        cwd: Working directory (the project root for build tools)
        produces: Project-relative file the tool produces, for error context
        stdout_path: If set, the tool's stdout is written to this file

    Returns:
        CompletedProcess with captured text output

    Raises:
        ToolFailedError: If the tool is missing or exits non-zero
    """
    logger.debug(f"{description}: {' '.join(cmd)}")
    try:
        result = safe_run(cmd, cwd=cwd, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise ToolFailedError(description, list(cmd), COMMAND_NOT_FOUND, f"command not found: {e.filename or cmd[0]}", produces) from e

    if result.returncode != 0:
        captured = result.stderr if result.stderr and result.stderr.strip() else (result.stdout or "")
        raise ToolFailedError(description, list(cmd), result.returncode, captured, produces)

    if stdout_path is not None:
        stdout_path.write_text(result.stdout or "", encoding="utf-8")
    elif result.stderr and result.stderr.strip():
        # Compiler warnings go to stderr on success
        logger.warning(f"{description}:\n{result.stderr.rstrip()}")

    return result
