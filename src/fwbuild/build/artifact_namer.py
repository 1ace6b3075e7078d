"""Artifact naming for compiled sources.

Object files from every source tree land in one flat build directory, and
several trees may hold files with the same basename (a platform driver and a
cpu driver both called uart.c). Each object is therefore prefixed with a short
digest of the full source path:

    app/main.c              -> build/3f2a9c0e1b7d4a55_main.o
    platform/mbed/uart.c    -> build/9b01d6e4c2aa7f13_uart.o
    cpu/lpc1768/src/uart.c  -> build/c47e0b25d9f8e6a1_uart.o

The name depends only on the path string, never on file contents or on the
target being built.
"""

import hashlib
import posixpath
from pathlib import Path
from typing import Dict, Iterable, List, Union

from .build_session import BuildSession, normalize_path

DIGEST_LENGTH = 16
OBJECT_SUFFIX = ".o"
DEPFILE_SUFFIX = ".d"


def source_digest(source: str) -> str:
    """Fixed-length hex digest of a normalized source path."""
    return hashlib.sha1(source.encode("utf-8")).hexdigest()[:DIGEST_LENGTH]


def depfile_for(artifact: str) -> str:
    """Dependency-rule file that sits beside an object artifact."""
    stem, _ = posixpath.splitext(artifact)
    return stem + DEPFILE_SUFFIX


class ArtifactNamer:
    """Maps source paths to object artifact paths inside the session's build dir.

    Every call registers the mapping in the session registry so later phases
    can turn source sets into object sets with to_objects().
    """

    def __init__(self, session: BuildSession):
        self.session = session

    def name(self, source: Union[str, Path]) -> str:
        """Return the object artifact path for a source path.

        Args:
            source: Project-relative source path

        Returns:
            Project-relative artifact path (e.g. "build/3f2a9c0e1b7d4a55_main.o")

        Raises:
            ArtifactCollisionError: If the digest collides with another source
        """
        normalized = normalize_path(source)
        stem, _ = posixpath.splitext(posixpath.basename(normalized))
        artifact = normalize_path(posixpath.join(self.session.build_dir, f"{source_digest(normalized)}_{stem}{OBJECT_SUFFIX}"))
        self.session.register_artifact(normalized, artifact)
        return artifact


def to_objects(sources: Iterable[Union[str, Path]], registry: Dict[str, str]) -> List[str]:
    """Map a source set to its object set using an explicit registry.

    Args:
        sources: Source paths, in order
        registry: Source -> artifact mapping (BuildSession.artifacts)

    Returns:
        Object artifact paths in the same order as the sources

    Raises:
        KeyError: If a source was never named
    """
    objects = []
    for source in sources:
        normalized = normalize_path(source)
        if normalized not in registry:
            raise KeyError(f"Source has no registered artifact: {normalized}")
        objects.append(registry[normalized])
    return objects
