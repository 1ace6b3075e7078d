"""Task graph for the incremental build.

Nodes come in two kinds:
- FILE: produces a file whose identity is its project-relative path; it is
  up to date when it exists and is at least as new as all prerequisites
- TASK: a named action that always needs to run, at most once per invocation

Prerequisite lists are ordered (the order is used to build command lines) and
duplicate-free. They only ever grow: the static graph is created first, then
header dependencies are appended by the DependencyIngester, then the graph is
finalized and becomes read-only for the Scheduler.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional

from .errors import CyclicDependencyError, GraphFrozenError

if TYPE_CHECKING:
    from .build_session import BuildSession

Action = Callable[["Node", "BuildSession"], None]


class NodeKind(Enum):
    """Kind of graph node."""

    FILE = "file"
    TASK = "task"


@dataclass
class Node:
    """A single node in the task graph.

    Attributes:
        name: Output path for FILE nodes, unique task name for TASK nodes
        kind: FILE or TASK
        prerequisites: Ordered, duplicate-free prerequisite identities
        action: Callable producing the node, or None for pure aggregates
        description: Human-readable label used in progress output
    """

    name: str
    kind: NodeKind
    prerequisites: List[str] = field(default_factory=list)
    action: Optional[Action] = None
    description: str = ""

    @property
    def is_file(self) -> bool:
        return self.kind == NodeKind.FILE

    @property
    def source(self) -> str:
        """First prerequisite (the source file of a compile node)."""
        if not self.prerequisites:
            raise ValueError(f"Node '{self.name}' has no prerequisites")
        return self.prerequisites[0]

    def _append(self, prerequisites: Iterable[str]) -> int:
        added = 0
        for prerequisite in prerequisites:
            if prerequisite not in self.prerequisites:
                self.prerequisites.append(prerequisite)
                added += 1
        return added


class TaskGraph:
    """Directed graph of build nodes keyed by identity."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self._nodes: Dict[str, Node] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def add_file(
        self,
        name: str,
        prerequisites: Iterable[str],
        action: Action,
        description: str = "",
    ) -> Node:
        """Define a file-producing node.

        Raises:
            ValueError: If a node with the same identity already exists
            GraphFrozenError: If the graph was finalized
        """
        return self._add(Node(name=name, kind=NodeKind.FILE, action=action, description=description), prerequisites)

    def add_task(
        self,
        name: str,
        prerequisites: Iterable[str] = (),
        action: Optional[Action] = None,
        description: str = "",
    ) -> Node:
        """Define a named task node."""
        return self._add(Node(name=name, kind=NodeKind.TASK, action=action, description=description), prerequisites)

    def _add(self, node: Node, prerequisites: Iterable[str]) -> Node:
        self._check_mutable()
        if node.name in self._nodes:
            raise ValueError(f"Duplicate node: {node.name}")
        node._append(prerequisites)
        self._nodes[node.name] = node
        return node

    def add_prerequisites(self, name: str, prerequisites: Iterable[str]) -> int:
        """Append prerequisites to an existing node, skipping duplicates.

        Returns:
            Number of prerequisites actually added

        Raises:
            KeyError: If the node doesn't exist
            GraphFrozenError: If the graph was finalized
        """
        self._check_mutable()
        return self.get(name)._append(prerequisites)

    def get(self, name: str) -> Node:
        """Get a node by identity.

        Raises:
            KeyError: If the node doesn't exist
        """
        if name not in self._nodes:
            raise KeyError(f"Unknown node: {name}")
        return self._nodes[name]

    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    def finalize(self) -> None:
        """Validate the graph and make it read-only.

        Raises:
            CyclicDependencyError: If the graph contains a cycle
        """
        self._detect_cycles()
        self._frozen = True

    def _check_mutable(self) -> None:
        if self._frozen:
            raise GraphFrozenError("Task graph is finalized and can no longer be modified")

    def _detect_cycles(self) -> None:
        """Detect cycles using DFS with coloring (white/gray/black)."""
        WHITE, GRAY, BLACK = 0, 1, 2
        color: Dict[str, int] = {name: WHITE for name in self._nodes}

        def dfs(name: str, path: List[str]) -> None:
            color[name] = GRAY
            path.append(name)
            for dep_name in self._nodes[name].prerequisites:
                if dep_name not in self._nodes:
                    continue
                if color[dep_name] == GRAY:
                    cycle = path[path.index(dep_name):] + [dep_name]
                    raise CyclicDependencyError(f"Cyclic dependency detected: {' -> '.join(cycle)}")
                if color[dep_name] == WHITE:
                    dfs(dep_name, path)
            path.pop()
            color[name] = BLACK

        for name in self._nodes:
            if color[name] == WHITE:
                dfs(name, [])
