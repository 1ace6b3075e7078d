"""Header dependency ingestion.

Which headers an object depends on is only known once the compiler has parsed
the source, so the static graph (source -> object) is refined on every build
by running the compiler in dependency-scan mode (gcc -MM) and merging the
resulting make-style rules into the object nodes:

    build/3f2a9c0e1b7d4a55_main.o: app/main.c platform/common/board.h \
      cpu/lpc1768/include/LPC17xx.h

Parsing tolerates line continuations, escaped spaces and the empty phony rules
emitted by -MP. A missing rule file means "no extra prerequisites known yet";
a malformed line is skipped with a warning.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .artifact_namer import depfile_for
from .build_session import BuildSession, normalize_path
from .toolchain import Toolchain

logger = logging.getLogger(__name__)

# Rule separator: a colon followed by whitespace or end of line (so "C:\x.h" is not split)
_SEPARATOR = re.compile(r":(?=\s|$)")


@dataclass
class DependencyRule:
    """A parsed "target: prerequisites..." rule."""

    target: str
    prerequisites: List[str] = field(default_factory=list)


def _logical_lines(text: str) -> List[str]:
    joined = re.sub(r"\\\r?\n", " ", text)
    return joined.splitlines()


def _split_words(text: str) -> List[str]:
    """Split on unescaped whitespace, unescaping "\\ ", "\\#" and "$$"."""
    words: List[str] = []
    current: List[str] = []
    i = 0
    while i < len(text):
        char = text[i]
        nxt = text[i + 1] if i + 1 < len(text) else ""
        if char == "\\" and nxt in (" ", "#"):
            current.append(nxt)
            i += 2
            continue
        if char == "$" and nxt == "$":
            current.append("$")
            i += 2
            continue
        if char.isspace():
            if current:
                words.append("".join(current))
                current = []
        else:
            current.append(char)
        i += 1
    if current:
        words.append("".join(current))
    return words


def parse_dependency_rules(text: str, origin: str = "<string>") -> List[DependencyRule]:
    """Parse make-style dependency rules.

    Args:
        text: Rule file contents
        origin: Name used in warnings about malformed lines

    Returns:
        One rule per target, in file order
    """
    rules: List[DependencyRule] = []
    for line_number, line in enumerate(_logical_lines(text), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        match = _SEPARATOR.search(line)
        targets = _split_words(line[: match.start()]) if match else []
        if not targets:
            logger.warning(f"{origin}:{line_number}: skipping malformed dependency line: {stripped}")
            continue

        prerequisites = [normalize_path(word) for word in _split_words(line[match.end():])]
        for target in targets:
            rules.append(DependencyRule(target=normalize_path(target), prerequisites=list(prerequisites)))
    return rules


def load_dependency_rules(path: Path) -> List[DependencyRule]:
    """Parse a rule file, or return no rules if it doesn't exist."""
    if not path.exists():
        logger.debug(f"No dependency rules at {path}")
        return []
    return parse_dependency_rules(path.read_text(encoding="utf-8", errors="replace"), origin=str(path))


class DependencyIngester:
    """Refines object nodes with the headers reported by the compiler."""

    def __init__(self, session: BuildSession, toolchain: Toolchain):
        self.session = session
        self.toolchain = toolchain

    def refine(self, objects: List[str]) -> int:
        """Scan every object's source and merge its rule into the graph.

        Must run after flags are bound and before the graph is finalized.

        Args:
            objects: Object node identities of the target being built

        Returns:
            Number of prerequisite edges added

        Raises:
            ToolFailedError: If a dependency scan fails
        """
        graph = self.session.graph
        added = 0
        for obj in objects:
            node = graph.get(obj)
            depfile = depfile_for(obj)
            depfile_path = self.session.resolve(depfile)
            if depfile_path.exists():
                depfile_path.unlink()

            self.toolchain.scan_dependencies(node.source, obj, depfile, self.session.flags_for(obj))

            for rule in load_dependency_rules(depfile_path):
                if rule.target not in graph:
                    logger.debug(f"{depfile}: ignoring rule for unknown target {rule.target}")
                    continue
                added += graph.add_prerequisites(rule.target, rule.prerequisites)

        logger.debug(f"Added {added} header dependencies across {len(objects)} objects")
        return added
