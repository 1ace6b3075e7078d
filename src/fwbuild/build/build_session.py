"""Build Session - per-invocation build context.

A BuildSession is created at the start of every build invocation and threaded
through artifact naming, variant composition and graph construction. It owns
all state that must not leak between invocations:

- the source -> artifact registry filled by ArtifactNamer
- the TaskGraph
- the variant attribute map (node identity -> bound compile flags)

Nothing in here is persisted; the only durable state is the build state file
managed by BuildStateGuard.
"""

import posixpath
from pathlib import Path
from typing import Dict, Iterable, Tuple, Union

from .errors import ArtifactCollisionError, GraphFrozenError, UnboundFlagsError
from .task_graph import TaskGraph


def normalize_path(path: Union[str, Path]) -> str:
    """Normalize a project-relative path to its canonical POSIX form.

    Node identities, registry keys and dependency-rule entries all go through
    this so that "./app/main.c" and "app/main.c" name the same node.
    """
    return posixpath.normpath(str(path).replace("\\", "/"))


class BuildSession:
    """Context object for a single build invocation.

    Attributes:
        project_dir: Project root; all node identities are relative to it
        build_dir: Project-relative output directory (e.g. "build")
        graph: Task graph for this invocation
        artifacts: Registry mapping normalized source paths to artifact paths
    """

    def __init__(self, project_dir: Path, build_dir: str = "build"):
        self.project_dir = Path(project_dir)
        self.build_dir = normalize_path(build_dir)
        self.graph = TaskGraph(self.project_dir)
        self.artifacts: Dict[str, str] = {}
        self._owners: Dict[str, str] = {}
        self._flags: Dict[str, Tuple[str, ...]] = {}

    @property
    def build_path(self) -> Path:
        """Absolute path of the build directory."""
        return self.project_dir / self.build_dir

    def resolve(self, identity: str) -> Path:
        """Absolute filesystem path for a project-relative node identity."""
        return self.project_dir / identity

    def register_artifact(self, source: str, artifact: str) -> None:
        """Record a source -> artifact mapping.

        Raises:
            ArtifactCollisionError: If the artifact already belongs to another source
        """
        owner = self._owners.setdefault(artifact, source)
        if owner != source:
            raise ArtifactCollisionError(f"'{source}' and '{owner}' both map to artifact '{artifact}'")
        self.artifacts[source] = artifact

    def is_object(self, identity: str) -> bool:
        """True if the identity is an artifact registered by the ArtifactNamer."""
        return identity in self._owners

    def bind_flags(self, identities: Iterable[str], flags: Iterable[str]) -> None:
        """Bind a compile flag set to object nodes for this invocation.

        Raises:
            GraphFrozenError: If the graph was already finalized
        """
        if self.graph.frozen:
            raise GraphFrozenError("Cannot bind flags after the graph is finalized")
        bound = tuple(flags)
        for identity in identities:
            self._flags[normalize_path(identity)] = bound

    def flags_for(self, identity: str) -> Tuple[str, ...]:
        """Flags bound to an object node.

        Raises:
            UnboundFlagsError: If no flags were bound to the node
        """
        try:
            return self._flags[identity]
        except KeyError:
            raise UnboundFlagsError(f"No compile flags bound to '{identity}'") from None

    def has_flags(self, identity: str) -> bool:
        return identity in self._flags

    def finalize(self, objects: Iterable[str]) -> None:
        """Check that every object about to be scheduled is fully specified, then freeze the graph.

        Raises:
            UnboundFlagsError: If an object has no bound flag set
            CyclicDependencyError: If the graph contains a cycle
        """
        unbound = [identity for identity in objects if identity not in self._flags]
        if unbound:
            raise UnboundFlagsError(f"No compile flags bound to: {', '.join(unbound)}")
        self.graph.finalize()
