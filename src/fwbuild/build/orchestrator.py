"""
Build orchestration for one target.

Runs the phases of a build invocation in their required order:

    1. VariantBuilder      static graph for every platform, flags bound for the target
    2. BuildStateGuard     clean the build directory if it belongs to another target
    3. DependencyIngester  header edges from the compiler's dependency scan
    4. Scheduler           run stale nodes for the target's binary and listing

then measures the linked image. Fatal errors are turned into a failed
BuildResult carrying a message that names the file, tool and exit status.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .. import output
from ..platform_configs import ProjectConfigModel, load_project_config
from .build_session import BuildSession
from .build_state import BuildStateGuard, clean_build_dir
from .dependency_ingester import DependencyIngester
from .errors import FwbuildError
from .scheduler import ScheduleReport, Scheduler
from .size_report import SizeInfo, SizeReporter
from .toolchain import Toolchain
from .variant_builder import VariantBuilder

logger = logging.getLogger(__name__)

TOTAL_PHASES = 4


@dataclass
class BuildResult:
    """Result of a build operation.

    Attributes:
        success: True if every required node is up to date
        target: Target that was built
        elf_path: Linked image (absolute), if the build succeeded
        bin_path: Raw binary image (absolute), if the build succeeded
        lst_path: Disassembly listing (absolute), if the build succeeded
        size_info: Section sizes of the linked image
        build_time: Wall-clock seconds spent
        message: Human-readable outcome or error description
        report: Nodes executed and skipped, if scheduling started
        cleaned: True if the build directory was cleaned for a target switch
    """

    success: bool
    target: str
    elf_path: Optional[Path] = None
    bin_path: Optional[Path] = None
    lst_path: Optional[Path] = None
    size_info: Optional[SizeInfo] = None
    build_time: float = 0.0
    message: str = ""
    report: Optional[ScheduleReport] = None
    cleaned: bool = False


class BuildOrchestrator:
    """Builds targets of one firmware project."""

    def __init__(
        self,
        project_dir: Path,
        config: Optional[ProjectConfigModel] = None,
        toolchain: Optional[Toolchain] = None,
    ):
        """
        Args:
            project_dir: Project root
            config: Project configuration (default: loaded from project_dir)
            toolchain: Toolchain to invoke (default: from the configuration's prefix)
        """
        self.project_dir = Path(project_dir).resolve()
        self._config = config
        self._toolchain = toolchain

    @property
    def config(self) -> ProjectConfigModel:
        if self._config is None:
            self._config = load_project_config(self.project_dir)
        return self._config

    @property
    def toolchain(self) -> Toolchain:
        if self._toolchain is None:
            self._toolchain = Toolchain(self.project_dir, self.config.toolchain_prefix)
        return self._toolchain

    @property
    def build_path(self) -> Path:
        return self.project_dir / self.config.build_dir

    def build(self, target: str) -> BuildResult:
        """Build the binary image and listing of a target.

        Args:
            target: Configured platform name

        Returns:
            BuildResult; success is False on any fatal error
        """
        start_time = time.time()
        result = BuildResult(success=False, target=target)

        try:
            self.config.platform(target)
            session = BuildSession(self.project_dir, self.config.build_dir)

            output.log_phase(1, TOTAL_PHASES, "Composing build graph...")
            builder = VariantBuilder(session, self.config, self.toolchain)
            builder.define_all()
            artifacts = builder.bind(target)
            output.log_detail(f"{len(artifacts.objects)} objects for {target}, {len(session.graph)} nodes total", verbose_only=True)

            output.log_phase(2, TOTAL_PHASES, f"Checking build state for {target}...")
            result.cleaned = BuildStateGuard(session.build_path).check(target)

            with output.TimedLogger("Scanning header dependencies", phase=(3, TOTAL_PHASES)) as timed:
                added = DependencyIngester(session, self.toolchain).refine(list(artifacts.objects))
                timed.detail(f"{added} header dependencies")
            session.finalize(artifacts.objects)

            output.log_phase(4, TOTAL_PHASES, f"Building {target}...")
            scheduler = Scheduler(session)
            result.report = scheduler.report
            scheduler.build([artifacts.build_task])
            if result.report.nothing_to_do:
                output.log_detail("All artifacts up to date")

            result.size_info = SizeReporter(self.toolchain).measure(artifacts.elf)
            result.elf_path = session.resolve(artifacts.elf)
            result.bin_path = session.resolve(artifacts.binary)
            result.lst_path = session.resolve(artifacts.listing)
            result.success = True
            result.message = f"Built {target}"
        except FwbuildError as e:
            logger.debug(f"Build of {target} failed", exc_info=True)
            result.message = str(e)
        except OSError as e:
            # Build directory housekeeping (clean, state file, stale depfiles)
            logger.debug(f"Build of {target} failed", exc_info=True)
            result.message = f"File system error while building {target}: {e}"

        result.build_time = time.time() - start_time
        return result

    def clean(self) -> int:
        """Delete all artifacts and the build state.

        Returns:
            Number of entries removed
        """
        removed = clean_build_dir(self.build_path)
        logger.info(f"Cleaned {self.build_path} ({removed} entries)")
        return removed
