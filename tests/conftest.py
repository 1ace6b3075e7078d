"""Pytest configuration and shared fixtures for fwbuild tests.

FakeToolchain stands in for the cross tools: every "tool" writes a small text
file describing what it was given (sources, flags, objects), so tests can
inspect exactly which inputs ended up in each artifact without a real
arm-none-eabi toolchain installed.
"""

import json
import os
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

import pytest

from fwbuild.build.errors import ToolFailedError
from fwbuild.platform_configs import ProjectConfigModel

SIZE_OUTPUT = "   text\t   data\t    bss\t    dec\t    hex\tfilename\n   1864\t     16\t    512\t   2392\t    958\t{elf}\n"


class FakeToolchain:
    """Records tool invocations and writes descriptive fake artifacts.

    Attributes:
        calls: (tool, output) tuples in invocation order
        headers: source -> headers reported by the dependency scan
        fail_sources: sources whose compilation fails
        fail_scan: sources whose dependency scan fails
    """

    def __init__(self, project_dir: Path):
        self.project_dir = Path(project_dir)
        self.calls: List[Tuple[str, str]] = []
        self.headers: Dict[str, List[str]] = {}
        self.fail_sources: Set[str] = set()
        self.fail_scan: Set[str] = set()

    def _write(self, relative: str, content: str) -> None:
        path = self.project_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)

    def calls_of(self, tool: str) -> List[str]:
        return [output for name, output in self.calls if name == tool]

    def compile(self, source: str, output: str, flags: Sequence[str]) -> None:
        self.calls.append(("compile", output))
        if source in self.fail_sources:
            self._write(output, "partial")
            raise ToolFailedError(f"Compile {source}", ["gcc", "-c", source], 1, f"{source}:1: error: boom", output)
        self._write(output, f"obj {source} flags={' '.join(flags)}\n")

    def scan_dependencies(self, source: str, output: str, depfile: str, flags: Sequence[str]) -> None:
        self.calls.append(("scan", output))
        if source in self.fail_scan:
            raise ToolFailedError(f"Scan dependencies of {source}", ["gcc", "-MM", source], 1, f"{source}:2: fatal error: missing.h: No such file or directory", depfile)
        prerequisites = " ".join([source, *self.headers.get(source, [])])
        self._write(depfile, f"{output}: {prerequisites}\n")

    def link(self, objects: Sequence[str], output: str, linker_script: str, map_file: str, flags: Sequence[str]) -> None:
        self.calls.append(("link", output))
        contents = "".join((self.project_dir / obj).read_text() for obj in objects)
        self._write(output, f"elf script={linker_script}\n{contents}")
        self._write(map_file, "map\n")

    def disassemble(self, elf: str, listing: str) -> None:
        self.calls.append(("disassemble", listing))
        self._write(listing, f"listing of {elf}\n")

    def to_binary(self, elf: str, binary: str) -> None:
        self.calls.append(("objcopy", binary))
        self._write(binary, f"binary of {elf}\n")

    def size(self, elf: str) -> str:
        self.calls.append(("size", elf))
        return SIZE_OUTPUT.format(elf=elf)


def age(path: Path, seconds: float = 100.0) -> None:
    """Move a file's modification time into the past."""
    past = time.time() - seconds
    os.utime(path, (past, past))


def write_source(root: Path, relative: str, content: str = "", seconds_old: Optional[float] = 100.0) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content or f"/* {relative} */\n")
    if seconds_old is not None:
        age(path, seconds_old)
    return path


TWO_TARGET_CONFIG = {
    "toolchain_prefix": "fake-",
    "build_dir": "build",
    "common": {"sources": ["common/*.c"], "cflags": ["-Os", "-Icommon"], "ldflags": ["-nostartfiles"]},
    "cpus": {
        "cpu_a": {"sources": ["cpu/cpu_a/*.c"]},
        "cpu_b": {"sources": ["cpu/cpu_b/*.c"]},
    },
    "platforms": {
        "A": {"cpu": "cpu_a", "sources": ["target_A/*.c"], "cflags": ["-DTARGET_A"], "linker_script": "target_A/layout.ld"},
        "B": {"cpu": "cpu_b", "sources": ["target_B/*.c"], "cflags": ["-DTARGET_B"], "linker_script": "target_B/layout.ld"},
    },
}


@pytest.fixture
def two_target_project(tmp_path: Path) -> Path:
    """Project with targets A and B that both contain an x.c."""
    for relative in (
        "common/a.c",
        "common/config.h",
        "target_A/x.c",
        "target_B/x.c",
        "cpu/cpu_a/uart.c",
        "cpu/cpu_b/uart.c",
        "target_A/layout.ld",
        "target_B/layout.ld",
    ):
        write_source(tmp_path, relative)
    return tmp_path


@pytest.fixture
def two_target_config() -> ProjectConfigModel:
    return ProjectConfigModel.from_dict(TWO_TARGET_CONFIG)


@pytest.fixture
def fake_toolchain(two_target_project: Path) -> FakeToolchain:
    return FakeToolchain(two_target_project)


@pytest.fixture
def age_file():
    """The age() helper, for tests that need to backdate files."""
    return age


@pytest.fixture
def source_writer():
    """The write_source() helper: write_source(root, relative, content="", seconds_old=100.0)."""
    return write_source


@pytest.fixture
def configured_project(two_target_project: Path) -> Path:
    """two_target_project with TWO_TARGET_CONFIG written as its fwbuild.json."""
    (two_target_project / "fwbuild.json").write_text(json.dumps(TWO_TARGET_CONFIG))
    return two_target_project


@pytest.fixture
def two_target_config_data() -> Dict:
    """A private copy of TWO_TARGET_CONFIG for tests that tweak single fields."""
    return json.loads(json.dumps(TWO_TARGET_CONFIG))
