"""Build state tracking for target switches.

The build directory holds objects for whichever target was built last, and
object names do not encode the target. Building another target on top would
silently link objects compiled with the previous target's flags, so the
directory records its owner in a small text file:

    build/.target  ->  "mbed"

Before anything is compiled for target T, BuildStateGuard reads that file; if
it names another target (or is missing) the whole build directory is cleaned.
T is then written back unconditionally.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from .. import output

logger = logging.getLogger(__name__)

STATE_FILE_NAME = ".target"


def read_build_state(build_path: Path) -> Optional[str]:
    """Return the target that owns the build directory, or None if unknown."""
    state_file = build_path / STATE_FILE_NAME
    try:
        content = state_file.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.warning(f"Could not read build state {state_file}: {e}")
        return None
    return content or None


def write_build_state(build_path: Path, target: str) -> None:
    build_path.mkdir(parents=True, exist_ok=True)
    (build_path / STATE_FILE_NAME).write_text(target, encoding="utf-8")


def clean_build_dir(build_path: Path) -> int:
    """Delete every artifact in the build directory, including the build state.

    The directory itself is kept.

    Returns:
        Number of entries removed
    """
    if not build_path.exists():
        return 0

    removed = 0
    for entry in build_path.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
        removed += 1
    logger.debug(f"Removed {removed} entries from {build_path}")
    return removed


class BuildStateGuard:
    """Invalidates the build directory when the requested target changes."""

    def __init__(self, build_path: Path):
        self.build_path = Path(build_path)

    def check(self, target: str) -> bool:
        """Clean the build directory if it belongs to another target, then claim it.

        Must complete before any dependency scan or compilation for the target.

        Args:
            target: Target about to be built

        Returns:
            True if the build directory was cleaned
        """
        built_for = read_build_state(self.build_path)
        cleaned = False

        if built_for != target:
            if built_for is not None:
                output.log_detail(f"Building {target}, but {self.build_path.name}/ is configured for {built_for}: will clean")
                logger.info(f"Target changed from {built_for} to {target}, cleaning {self.build_path}")
            else:
                logger.debug(f"No build state in {self.build_path}, cleaning")
            clean_build_dir(self.build_path)
            cleaned = True

        write_build_state(self.build_path, target)
        return cleaned
