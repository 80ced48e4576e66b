"""Data models for the dependency manifest and its lock snapshot."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

# Logical identity of a dependency across versions.
CoordinateKey = Tuple[str, str]


@dataclass(frozen=True)
class DependencyCoordinate:
    """A declared dependency: group, artifact and optional version."""
    group: str
    artifact: str
    version: Optional[str] = None

    @property
    def key(self) -> CoordinateKey:
        return (self.group, self.artifact)

    @property
    def pinned(self) -> bool:
        return bool(self.version)

    def with_version(self, version: Optional[str]) -> "DependencyCoordinate":
        return replace(self, version=version)

    def __str__(self) -> str:
        if self.version:
            return f"{self.group}:{self.artifact}:{self.version}"
        return f"{self.group}:{self.artifact}"


@dataclass(frozen=True)
class Manifest:
    """Repositories, managed-version imports and dependencies of one project.

    Repository order is resolution precedence.
    """
    repositories: Tuple[str, ...] = ()
    imports: Tuple[DependencyCoordinate, ...] = ()
    dependencies: Tuple[DependencyCoordinate, ...] = ()

    @property
    def is_pinned(self) -> bool:
        """True when this manifest qualifies as a lock snapshot."""
        return not self.imports and all(d.pinned for d in self.dependencies)

    def same_content(self, other: "Manifest") -> bool:
        """Compare by value, ignoring imports."""
        return (
            self.repositories == other.repositories
            and self.dependencies == other.dependencies
        )
