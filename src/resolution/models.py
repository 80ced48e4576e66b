"""Data models for resolved artifacts."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Tuple

from lockfile.models import CoordinateKey


@dataclass(frozen=True, order=True)
class ArtifactId:
    """Unique key of one resolved artifact."""
    group: str
    artifact: str
    version: str

    @property
    def key(self) -> CoordinateKey:
        return (self.group, self.artifact)

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}:{self.version}"


@dataclass(frozen=True)
class Artifact:
    """A resolved artifact with downloaded content and its direct edges."""
    id: ArtifactId
    path: Path
    depends: FrozenSet[ArtifactId] = frozenset()

    def __str__(self) -> str:
        deps = ", ".join(sorted(str(d) for d in self.depends))
        return f"{self.id} [{self.path}] -> {{{deps}}}"


@dataclass(frozen=True)
class ResolvedNode:
    """One node of a resolver report.

    path is None for nodes that produced no content, such as BOMs and
    parent POMs. managed holds the node's dependency-management versions.
    """
    id: ArtifactId
    path: Optional[Path] = None
    depends: Tuple[ArtifactId, ...] = ()
    managed: Dict[CoordinateKey, str] = field(default_factory=dict, compare=False, hash=False)
