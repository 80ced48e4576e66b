"""Artifact resolver adapter.

Turns declared dependencies plus managed-version imports into the full
transitive artifact set, using any Resolver implementation.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Sequence

from errors import ResolutionError
from lockfile.models import CoordinateKey, DependencyCoordinate, Manifest
from .base import Resolver
from .models import Artifact, ArtifactId, ResolvedNode

logger = logging.getLogger(__name__)


class ArtifactResolverAdapter:
    """Resolves a manifest into artifacts through a Resolver."""

    def __init__(self, resolver: Resolver):
        self.resolver = resolver

    def resolve_imports(self, imports: Sequence[DependencyCoordinate]) -> Dict[CoordinateKey, str]:
        """Map (group, artifact) to the versions managed by imports.

        Earlier imports take precedence over later ones.
        """
        managed: Dict[CoordinateKey, str] = {}
        if not imports:
            return managed
        for node in self.resolver.resolve_descriptors(list(imports)):
            for key, version in node.managed.items():
                managed.setdefault(key, version)
        logger.debug("imports manage %d coordinates", len(managed))
        return managed

    @staticmethod
    def complete(
        dependencies: Sequence[DependencyCoordinate],
        managed: Mapping[CoordinateKey, str],
    ) -> List[DependencyCoordinate]:
        """Fill unversioned dependencies from managed versions."""
        completed = []
        for dep in dependencies:
            if not dep.pinned:
                version = managed.get(dep.key)
                if version is None:
                    raise ResolutionError(f"No version specified or managed for {dep}")
                dep = dep.with_version(version)
            completed.append(dep)
        return completed

    def resolve_nodes(
        self,
        dependencies: Sequence[DependencyCoordinate],
        managed: Mapping[CoordinateKey, str],
    ) -> List[ResolvedNode]:
        """Resolve the transitive closure of dependencies, content or not."""
        return self.resolver.resolve(self.complete(dependencies, managed))

    def resolve(
        self,
        dependencies: Sequence[DependencyCoordinate],
        managed: Mapping[CoordinateKey, str],
    ) -> List[Artifact]:
        """Resolve the transitive closure of dependencies into artifacts."""
        return self.artifacts(self.resolve_nodes(dependencies, managed))

    @staticmethod
    def artifacts(nodes: Sequence[ResolvedNode]) -> List[Artifact]:
        """Keep the nodes that produced content.

        Edges to nodes without content are dropped. Order follows the
        resolver.
        """
        with_content: Dict[ArtifactId, ResolvedNode] = {}
        for node in nodes:
            if node.path is not None:
                with_content.setdefault(node.id, node)

        return [
            Artifact(
                id=node.id,
                path=node.path,
                depends=frozenset(d for d in node.depends if d in with_content),
            )
            for node in with_content.values()
        ]

    def resolve_manifest(self, manifest: Manifest) -> List[Artifact]:
        managed = self.resolve_imports(manifest.imports)
        return self.resolve(manifest.dependencies, managed)
