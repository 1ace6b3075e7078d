"""
Timestamped user-facing output for fwbuild.

Every line is prefixed with the time elapsed since program launch in MM:SS.cc
format, which makes it easy to see where a build spends its time.

Example output:
    00:00.01 fwbuild v0.1.0
    00:00.02 [1/4] Checking build state for mbed...
    00:00.35 [3/4] Building mbed...
    00:00.36       Compiling app/main.c
    00:01.12       Linking build/mbed.elf

Usage:
    from fwbuild.output import log, log_phase, log_detail

    log_phase(1, 4, "Checking build state...")
    log_detail("Build directory: build")

Diagnostic messages belong in the logging module; this module is only for
progress lines a user reads while the build runs.
"""

import sys
import time
from types import TracebackType
from typing import Optional, TextIO

_start_time: Optional[float] = None
_output_stream: Optional[TextIO] = None
_verbose: bool = False


def init_timer(output_stream: Optional[TextIO] = None) -> None:
    """
    Initialize the program timer.

    Args:
        output_stream: Optional output stream (defaults to the current sys.stdout)
    """
    global _start_time, _output_stream
    _start_time = time.time()
    _output_stream = output_stream


def set_verbose(verbose: bool) -> None:
    """Enable or disable verbose-only lines."""
    global _verbose
    _verbose = verbose


def get_elapsed() -> float:
    """Seconds since init_timer() (initializes the timer on first use)."""
    if _start_time is None:
        init_timer(_output_stream)
    return time.time() - _start_time  # type: ignore


def format_timestamp() -> str:
    """Format the current elapsed time as MM:SS.cc."""
    elapsed = get_elapsed()
    minutes = int(elapsed // 60)
    seconds = elapsed % 60
    return f"{minutes:02d}:{seconds:05.2f}"


def _print(message: str) -> None:
    stream = _output_stream if _output_stream is not None else sys.stdout
    stream.write(f"{format_timestamp()} {message}\n")
    stream.flush()


def log(message: str, verbose_only: bool = False) -> None:
    """
    Log a message with timestamp.

    Args:
        message: Message to log
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(message)


def log_phase(phase: int, total: int, message: str, verbose_only: bool = False) -> None:
    """
    Log a build phase message.

    Format: [N/M] message
    """
    if verbose_only and not _verbose:
        return
    _print(f"[{phase}/{total}] {message}")


def log_detail(message: str, indent: int = 6, verbose_only: bool = False) -> None:
    """Log an indented detail line."""
    if verbose_only and not _verbose:
        return
    _print(f"{' ' * indent}{message}")


def log_node(description: str, up_to_date: bool = False) -> None:
    """
    Log a graph node as it is executed or skipped.

    Executed nodes are always shown; up-to-date nodes only in verbose mode.

    Args:
        description: Node label (e.g. "Compiling app/main.c")
        up_to_date: If True, the node was skipped and "(up to date)" is appended
    """
    if up_to_date:
        log_detail(f"{description} (up to date)", verbose_only=True)
    else:
        log_detail(description)


def log_header(title: str, version: str) -> None:
    """Log the program banner."""
    _print(f"{title} v{version}")


def log_build_complete(build_time: float) -> None:
    _print(f"Build time: {build_time:.2f}s")


class TimedLogger:
    """
    Context manager that logs an operation and its duration.

    Usage:
        with TimedLogger("Scanning header dependencies", phase=(2, 4)) as timed:
            timed.detail("12 objects scanned")
    """

    def __init__(self, operation: str, phase: Optional[tuple[int, int]] = None, verbose_only: bool = False):
        self.operation = operation
        self.phase = phase
        self.verbose_only = verbose_only
        self.start_time = 0.0

    def __enter__(self) -> "TimedLogger":
        self.start_time = time.time()
        if self.phase:
            log_phase(self.phase[0], self.phase[1], f"{self.operation}...", self.verbose_only)
        else:
            log(f"{self.operation}...", self.verbose_only)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        del exc_val, exc_tb  # Unused
        elapsed = time.time() - self.start_time
        if exc_type is None:
            log_detail(f"Done ({elapsed:.2f}s)", verbose_only=True)
        return None

    def detail(self, message: str) -> None:
        """Log a detail message within this operation."""
        log_detail(message, verbose_only=self.verbose_only)
