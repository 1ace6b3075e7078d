"""Exception hierarchy for fwbuild.

Every fatal condition raised by the build engine derives from FwbuildError so
the orchestrator and CLI can report it uniformly. Conditions that are not
errors (missing dependency-rule files, a target switch) never raise.
"""

from typing import List, Optional


class FwbuildError(Exception):
    """Base class for all fwbuild errors."""

    pass


class ConfigError(FwbuildError):
    """Raised when the project configuration is missing or invalid."""

    pass


class UnknownTargetError(ConfigError):
    """Raised when a requested target is not a configured platform."""

    def __init__(self, target: str, available: List[str]):
        self.target = target
        self.available = available
        super().__init__(f"Unknown target '{target}' (available: {', '.join(available) or 'none'})")


class ToolFailedError(FwbuildError):
    """Raised when an external tool exits with a non-zero status.

    Attributes:
        description: What the tool was doing (e.g. "Compile app/main.c")
        cmd: Full command line that was executed
        returncode: Exit status of the tool
        output: Captured stderr (or stdout when stderr is empty)
        produces: File the tool was producing, if any
    """

    def __init__(
        self,
        description: str,
        cmd: List[str],
        returncode: int,
        output: str = "",
        produces: Optional[str] = None,
    ):
        self.description = description
        self.cmd = cmd
        self.returncode = returncode
        self.output = output
        self.produces = produces

        message = f"{description} failed with exit status {returncode}"
        if produces:
            message += f" while producing {produces}"
        message += f"\n  command: {' '.join(cmd)}"
        if output.strip():
            message += f"\n{output.rstrip()}"
        super().__init__(message)


class GraphError(FwbuildError):
    """Base class for task graph errors."""

    pass


class CyclicDependencyError(GraphError):
    """Raised when the task graph contains a cycle."""

    pass


class GraphFrozenError(GraphError):
    """Raised when a finalized graph is modified."""

    pass


class MissingPrerequisiteError(GraphError):
    """Raised when a leaf prerequisite file does not exist and nothing builds it."""

    def __init__(self, prerequisite: str, needed_by: str):
        self.prerequisite = prerequisite
        self.needed_by = needed_by
        super().__init__(f"Don't know how to build '{prerequisite}' (needed by '{needed_by}')")


class UnboundFlagsError(GraphError):
    """Raised when a compile node is scheduled without a bound flag set."""

    pass


class ArtifactCollisionError(FwbuildError):
    """Raised when two distinct sources would map to the same artifact path."""

    pass


class SizeReportError(FwbuildError):
    """Raised when the size tool output cannot be parsed."""

    pass
