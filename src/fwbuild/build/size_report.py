"""Firmware size reporting.

Runs the toolchain's size tool on the linked image and parses its Berkeley
format output, whose last line looks like:

       text    data     bss     dec     hex filename
       1864      16     512    2392     958 build/mbed.elf

The report is presentation only; nothing in the build graph depends on it.
"""

from dataclasses import dataclass
from typing import Optional

from rich.console import Console
from rich.table import Table

from .errors import SizeReportError
from .toolchain import Toolchain


@dataclass(frozen=True)
class SizeInfo:
    """Section sizes of a linked image, in bytes.

    Attributes:
        text: Code and read-only data (.text)
        data: Initialized data (.data)
        bss: Zero-initialized data (.bss)
        total: Sum of the three
    """

    text: int
    data: int
    bss: int
    total: int

    @property
    def flash(self) -> int:
        """Bytes stored in flash (code plus the initializers of .data)."""
        return self.text + self.data

    @property
    def ram(self) -> int:
        """Bytes of RAM occupied by static data."""
        return self.data + self.bss


def parse_size_output(text: str) -> SizeInfo:
    """Parse the output of `size` for a single file.

    Raises:
        SizeReportError: If the output doesn't contain a numeric size line
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise SizeReportError("Size tool produced no output")

    fields = lines[-1].split()
    try:
        text_size, data_size, bss_size, total = (int(value) for value in fields[:4])
    except ValueError:
        raise SizeReportError(f"Unexpected size tool output: {lines[-1].strip()}") from None
    return SizeInfo(text=text_size, data=data_size, bss=bss_size, total=total)


class SizeReporter:
    """Measures linked images with the toolchain's size tool."""

    def __init__(self, toolchain: Toolchain):
        self.toolchain = toolchain

    def measure(self, elf: str) -> SizeInfo:
        """Run the size tool on an image.

        Raises:
            ToolFailedError: If the size tool fails
            SizeReportError: If its output can't be parsed
        """
        return parse_size_output(self.toolchain.size(elf))


def render_size_report(elf: str, info: SizeInfo, console: Optional[Console] = None) -> None:
    """Print a section size table for an image."""
    table = Table(title=f"Statistics for {elf}", title_justify="left", show_header=False, box=None, padding=(0, 2))
    table.add_column("section")
    table.add_column("bytes", justify="right")
    table.add_column("unit")
    table.add_row(".text", str(info.text), "bytes")
    table.add_row(".data", str(info.data), "bytes")
    table.add_row(".bss", str(info.bss), "bytes")
    table.add_row("[bold]TOTAL[/bold]", f"[bold]{info.total}[/bold]", f"bytes (0x{info.total:x})")
    table.add_row("flash", str(info.flash), "bytes (.text + .data)")
    table.add_row("ram", str(info.ram), "bytes (.data + .bss)")
    (console if console is not None else Console()).print(table)
