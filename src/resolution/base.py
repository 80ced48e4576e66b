"""Resolver capability consumed by the artifact resolver adapter."""

from __future__ import annotations

from typing import List, Protocol, Sequence

from lockfile.models import DependencyCoordinate
from .models import ResolvedNode


class Resolver(Protocol):
    """Resolves coordinates into a transitive graph of nodes."""

    def resolve(self, coordinates: Sequence[DependencyCoordinate]) -> List[ResolvedNode]:
        """Resolve and download the transitive closure of coordinates.

        Nodes are listed in a stable order; every version must be concrete
        or a version range.

        Raises:
            ResolutionError: if any coordinate cannot be resolved.
        """
        raise NotImplementedError

    def resolve_descriptors(self, coordinates: Sequence[DependencyCoordinate]) -> List[ResolvedNode]:
        """Resolve metadata only; nodes carry managed versions, no content."""
        raise NotImplementedError
