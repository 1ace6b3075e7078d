"""Variant composition: one hardware target's sources, flags and artifacts.

Every configured platform gets its nodes in the graph, so artifact names are
unique across the union of all source sets:

    <src>               -> build/<digest>_<stem>.o   (compile, flags bound per invocation)
    objects + script    -> build/<p>.elf             (link, also writes build/<p>.map)
    build/<p>.elf       -> build/<p>.lst             (disassembly listing)
    build/<p>.elf       -> build/<p>.bin             (raw binary)
    build:<p>           -> bin + lst                 (aggregate task)

Flags are not a property of the compile nodes. They are bound in the session's
attribute map for the requested target only, because the same source's object
node may be rebuilt for another target in a later invocation.
"""

import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from ..platform_configs import ProjectConfigModel
from .artifact_namer import ArtifactNamer, to_objects
from .build_session import BuildSession, normalize_path
from .task_graph import Node
from .toolchain import Toolchain

logger = logging.getLogger(__name__)


def _unique(items: Iterable[str]) -> Tuple[str, ...]:
    """Order-preserving de-duplication (the union of flag or source lists)."""
    seen: Dict[str, None] = {}
    for item in items:
        seen.setdefault(item, None)
    return tuple(seen)


def expand_sources(project_dir: Path, patterns: Iterable[str]) -> Tuple[str, ...]:
    """Expand glob patterns into sorted project-relative source paths."""
    sources: List[str] = []
    for pattern in patterns:
        matches = sorted(normalize_path(path.relative_to(project_dir).as_posix()) for path in project_dir.glob(pattern) if path.is_file())
        if not matches:
            logger.debug(f"Pattern matched no sources: {pattern}")
        sources.extend(matches)
    return _unique(sources)


@dataclass(frozen=True)
class VariantSpec:
    """Sources and flags of one hardware target, built fresh each invocation.

    Attributes:
        name: Target name
        cpu: CPU the target is built around
        common_sources: Sources shared by every target
        platform_sources: Target-specific sources
        cpu_sources: Sources of the target's CPU
        linker_script: Project-relative linker script
        common_cflags: Compile flags shared by every target
        platform_cflags: Target-specific compile flags
        ldflags: Link-only flags
    """

    name: str
    cpu: str
    common_sources: Tuple[str, ...]
    platform_sources: Tuple[str, ...]
    cpu_sources: Tuple[str, ...]
    linker_script: str
    common_cflags: Tuple[str, ...] = ()
    platform_cflags: Tuple[str, ...] = ()
    ldflags: Tuple[str, ...] = ()

    @property
    def sources(self) -> Tuple[str, ...]:
        return _unique(self.common_sources + self.platform_sources + self.cpu_sources)

    @property
    def cflags(self) -> Tuple[str, ...]:
        """Union of common and platform compile flags."""
        return _unique(self.common_cflags + self.platform_cflags)

    @property
    def link_flags(self) -> Tuple[str, ...]:
        return self.common_cflags + self.ldflags + self.platform_cflags

    @classmethod
    def from_config(cls, config: ProjectConfigModel, target: str, project_dir: Path) -> "VariantSpec":
        """Resolve a target's configuration against the files on disk.

        Raises:
            UnknownTargetError: If the target isn't configured
        """
        platform = config.platform(target)
        return cls(
            name=target,
            cpu=platform.cpu,
            common_sources=expand_sources(project_dir, config.common_sources),
            platform_sources=expand_sources(project_dir, platform.sources),
            cpu_sources=expand_sources(project_dir, config.cpu_sources[platform.cpu]),
            linker_script=normalize_path(platform.linker_script),
            common_cflags=tuple(config.common_cflags),
            platform_cflags=tuple(platform.cflags),
            ldflags=tuple(config.common_ldflags),
        )


@dataclass(frozen=True)
class VariantArtifacts:
    """Node identities defined for one target."""

    name: str
    objects: Tuple[str, ...]
    elf: str
    map_file: str
    listing: str
    binary: str
    build_task: str


class VariantBuilder:
    """Builds the static graph for every platform and binds flags for one."""

    def __init__(self, session: BuildSession, config: ProjectConfigModel, toolchain: Toolchain):
        self.session = session
        self.config = config
        self.toolchain = toolchain
        self.namer = ArtifactNamer(session)
        self.specs: Dict[str, VariantSpec] = {}
        self.artifacts: Dict[str, VariantArtifacts] = {}

    def define_all(self) -> Dict[str, VariantArtifacts]:
        """Define compile, link, listing and binary nodes for every platform."""
        for target in self.config.targets:
            self.define(VariantSpec.from_config(self.config, target, self.session.project_dir))
        return self.artifacts

    def define(self, spec: VariantSpec) -> VariantArtifacts:
        """Define the nodes of one variant."""
        graph = self.session.graph
        for source in spec.sources:
            obj = self.namer.name(source)
            if obj not in graph:
                graph.add_file(obj, [source], self._compile, description=f"Compiling {source}")

        objects = tuple(to_objects(spec.sources, self.session.artifacts))
        build_dir = self.session.build_dir
        artifacts = VariantArtifacts(
            name=spec.name,
            objects=objects,
            elf=normalize_path(posixpath.join(build_dir, f"{spec.name}.elf")),
            map_file=normalize_path(posixpath.join(build_dir, f"{spec.name}.map")),
            listing=normalize_path(posixpath.join(build_dir, f"{spec.name}.lst")),
            binary=normalize_path(posixpath.join(build_dir, f"{spec.name}.bin")),
            build_task=f"build:{spec.name}",
        )

        def link(node: Node, session: BuildSession) -> None:
            objs = [prerequisite for prerequisite in node.prerequisites if session.is_object(prerequisite)]
            self.toolchain.link(objs, node.name, spec.linker_script, artifacts.map_file, spec.link_flags)

        graph.add_file(artifacts.elf, [*objects, spec.linker_script], link, description=f"Linking {artifacts.elf}")
        graph.add_file(
            artifacts.listing,
            [artifacts.elf],
            lambda node, session: self.toolchain.disassemble(node.source, node.name),
            description=f"Disassembling {artifacts.elf}",
        )
        graph.add_file(
            artifacts.binary,
            [artifacts.elf],
            lambda node, session: self.toolchain.to_binary(node.source, node.name),
            description=f"Converting {artifacts.elf} to binary",
        )
        graph.add_task(artifacts.build_task, [artifacts.binary, artifacts.listing], description=f"Build {spec.name}")

        self.specs[spec.name] = spec
        self.artifacts[spec.name] = artifacts
        logger.debug(f"Defined variant {spec.name}: {len(objects)} objects")
        return artifacts

    def bind(self, target: str) -> VariantArtifacts:
        """Bind the target's compile flags to each of its object nodes.

        Raises:
            KeyError: If the target was never defined
        """
        if target not in self.artifacts:
            raise KeyError(f"Variant not defined: {target}")
        artifacts = self.artifacts[target]
        self.session.bind_flags(artifacts.objects, self.specs[target].cflags)
        return artifacts

    def _compile(self, node: Node, session: BuildSession) -> None:
        self.toolchain.compile(node.source, node.name, session.flags_for(node.name))
