"""Cross toolchain invocations.

Wraps the GNU cross tools (gcc, objdump, objcopy, size) behind one class so the
build graph only deals with paths and flag lists. All commands run with the
project root as working directory and all paths are project-relative.

The actual flag sets for a CPU come from the platform configuration; this
module only knows how each tool is invoked.
"""

import os
from pathlib import Path
from typing import List, Optional, Sequence

from ..subprocess_utils import run_tool

DEFAULT_PREFIX = "arm-none-eabi-"
PREFIX_ENV_VAR = "FWBUILD_TOOLCHAIN_PREFIX"


class Toolchain:
    """GNU cross toolchain identified by its command prefix."""

    def __init__(self, project_dir: Path, prefix: Optional[str] = None):
        """
        Args:
            project_dir: Working directory for every tool invocation
            prefix: Tool prefix (e.g. "arm-none-eabi-"); the
                FWBUILD_TOOLCHAIN_PREFIX environment variable takes precedence
        """
        self.project_dir = Path(project_dir)
        self.prefix = os.environ.get(PREFIX_ENV_VAR) or (prefix if prefix is not None else DEFAULT_PREFIX)

    def tool(self, name: str) -> str:
        return f"{self.prefix}{name}"

    def compile(self, source: str, output: str, flags: Sequence[str]) -> None:
        """Compile one source into an object file."""
        cmd = [self.tool("gcc"), *flags, "-c", source, "-o", output]
        run_tool(cmd, f"Compile {source}", cwd=self.project_dir, produces=output)

    def scan_dependencies(self, source: str, output: str, depfile: str, flags: Sequence[str]) -> None:
        """Write a make-style rule "<output>: <source> <headers...>" to depfile."""
        cmd = [self.tool("gcc"), "-MM", "-MQ", output, "-MF", depfile, *flags, source]
        run_tool(cmd, f"Scan dependencies of {source}", cwd=self.project_dir, produces=depfile)

    def link(
        self,
        objects: Sequence[str],
        output: str,
        linker_script: str,
        map_file: str,
        flags: Sequence[str],
    ) -> None:
        """Link objects into an ELF image with a linker script and map file."""
        cmd: List[str] = [
            self.tool("gcc"),
            *flags,
            "-o",
            output,
            "-Wl,--gc-sections",
            "-Wl,-T",
            f"-Wl,{linker_script}",
            "-Wl,-Map",
            f"-Wl,{map_file}",
            *objects,
        ]
        run_tool(cmd, f"Link {output}", cwd=self.project_dir, produces=output)

    def disassemble(self, elf: str, listing: str) -> None:
        """Write a full disassembly listing of the image."""
        cmd = [self.tool("objdump"), "-D", elf]
        run_tool(cmd, f"Disassemble {elf}", cwd=self.project_dir, produces=listing, stdout_path=self.project_dir / listing)

    def to_binary(self, elf: str, binary: str) -> None:
        """Convert the image to a raw binary."""
        cmd = [self.tool("objcopy"), elf, binary, "-O", "binary"]
        run_tool(cmd, f"Convert {elf} to binary", cwd=self.project_dir, produces=binary)

    def size(self, elf: str) -> str:
        """Run the size tool and return its raw output."""
        result = run_tool([self.tool("size"), elf], f"Size report for {elf}", cwd=self.project_dir)
        return result.stdout
