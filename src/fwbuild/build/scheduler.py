"""Depth-first scheduler for the task graph.

Resolves requested nodes by resolving every prerequisite first, then decides
whether the node itself must run:

- TASK nodes run once per invocation; later demands come from the memo
- FILE nodes run when the output is missing, when any prerequisite is newer,
  or when any prerequisite ran during this invocation

Execution is synchronous and fail-fast: the first action that raises aborts
the whole resolution, and the partially written output of the failing node is
removed so a later build never mistakes it for a valid artifact.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from .. import output
from .build_session import BuildSession, normalize_path
from .errors import CyclicDependencyError, GraphError, MissingPrerequisiteError
from .task_graph import Node

logger = logging.getLogger(__name__)


@dataclass
class _Outcome:
    """Memoized resolution result for one node or leaf file."""

    ran: bool
    timestamp: Optional[int]


@dataclass
class ScheduleReport:
    """Nodes executed and skipped during one invocation.

    Attributes:
        executed: Node identities whose action ran, in execution order
        up_to_date: Node identities that were resolved without running
    """

    executed: List[str] = field(default_factory=list)
    up_to_date: List[str] = field(default_factory=list)

    @property
    def nothing_to_do(self) -> bool:
        return not self.executed


class Scheduler:
    """Runs stale nodes of a finalized graph, each at most once per invocation.

    One Scheduler instance corresponds to one build invocation: repeated
    build() calls share the memo, so a node reached from several requested
    targets still runs only once.
    """

    def __init__(self, session: BuildSession):
        self.session = session
        self.graph = session.graph
        self.report = ScheduleReport()
        self._memo: Dict[str, _Outcome] = {}
        self._in_progress: Set[str] = set()

    def build(self, targets: Iterable[str]) -> ScheduleReport:
        """Bring the requested nodes up to date.

        Args:
            targets: Node identities to resolve, in order

        Returns:
            The report accumulated so far in this invocation

        Raises:
            GraphError: If the graph was not finalized, has a cycle, or
                references a missing leaf file
            FwbuildError: If any action fails
        """
        if not self.graph.frozen:
            raise GraphError("Task graph must be finalized before scheduling")
        for target in targets:
            self._resolve(target if target in self.graph else normalize_path(target), needed_by="<command line>")
        return self.report

    def _resolve(self, name: str, needed_by: str) -> _Outcome:
        memo = self._memo.get(name)
        if memo is not None:
            return memo

        if name not in self.graph:
            outcome = _Outcome(ran=False, timestamp=self._leaf_timestamp(name, needed_by))
            self._memo[name] = outcome
            return outcome

        if name in self._in_progress:
            raise CyclicDependencyError(f"Cyclic dependency detected at '{name}'")
        self._in_progress.add(name)
        try:
            node = self.graph.get(name)
            prerequisite_outcomes = [self._resolve(prerequisite, needed_by=name) for prerequisite in node.prerequisites]
            outcome = self._run_if_needed(node, prerequisite_outcomes)
        finally:
            self._in_progress.discard(name)

        self._memo[name] = outcome
        return outcome

    def _run_if_needed(self, node: Node, prerequisites: List[_Outcome]) -> _Outcome:
        if not node.is_file:
            self._execute(node)
            return _Outcome(ran=True, timestamp=None)

        current = self._file_timestamp(node.name)
        if not self._is_stale(node, current, prerequisites):
            logger.debug(f"Up to date: {node.name}")
            output.log_node(node.description or node.name, up_to_date=True)
            self.report.up_to_date.append(node.name)
            return _Outcome(ran=False, timestamp=current)

        try:
            self._execute(node)
        except BaseException:
            self._discard_partial_output(node)
            raise
        return _Outcome(ran=True, timestamp=self._file_timestamp(node.name))

    @staticmethod
    def _is_stale(node: Node, current: Optional[int], prerequisites: List[_Outcome]) -> bool:
        if current is None:
            logger.debug(f"{node.name}: output missing")
            return True
        for prerequisite, outcome in zip(node.prerequisites, prerequisites):
            if outcome.ran:
                logger.debug(f"{node.name}: prerequisite {prerequisite} was rebuilt")
                return True
            if outcome.timestamp is not None and outcome.timestamp > current:
                logger.debug(f"{node.name}: prerequisite {prerequisite} is newer")
                return True
        return False

    def _execute(self, node: Node) -> None:
        if node.action is None:
            return
        output.log_node(node.description or node.name)
        node.action(node, self.session)
        self.report.executed.append(node.name)

    def _discard_partial_output(self, node: Node) -> None:
        path = self.session.resolve(node.name)
        if path.exists():
            logger.warning(f"Removing partial output of failed node: {node.name}")
            path.unlink()

    def _file_timestamp(self, name: str) -> Optional[int]:
        try:
            return os.stat(self.session.resolve(name)).st_mtime_ns
        except FileNotFoundError:
            return None

    def _leaf_timestamp(self, name: str, needed_by: str) -> int:
        timestamp = self._file_timestamp(name)
        if timestamp is None:
            raise MissingPrerequisiteError(name, needed_by)
        return timestamp
