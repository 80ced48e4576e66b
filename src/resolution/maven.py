"""Maven-2 layout repository resolver.

Walks POM metadata breadth-first from a synthetic root, mediating versions
nearest-first, and downloads jars into the local content cache:

    {cache}/{group}/{artifact}/poms/{artifact}-{version}.pom
    {cache}/{group}/{artifact}/jars/{artifact}-{version}.jar
"""
from __future__ import annotations

import logging
import os
import tempfile
import xml.etree.ElementTree as ET
from collections import deque
from dataclasses import replace
from pathlib import Path
from typing import Deque, Dict, List, Optional, Sequence, Tuple

from constants import Constants
from common.http_client import download_to_path, get_text
from common.logging_utils import extra_context, is_debug_enabled
from errors import ResolutionError
from lockfile.models import CoordinateKey, DependencyCoordinate
from .models import ArtifactId, ResolvedNode
from .pom import Pom, PomDependency, interpolate_dependency, parse_pom, project_properties
from .versions import is_range, pick_range

logger = logging.getLogger(__name__)

_FOLLOWED_SCOPES = ("compile", "runtime")
_CONTENT_TYPES = ("jar", "bundle")

Gav = Tuple[str, str, str]


def _merge_by_key(inherited: List[PomDependency], own: List[PomDependency]) -> List[PomDependency]:
    merged: Dict[CoordinateKey, PomDependency] = {d.key: d for d in inherited}
    for dep in own:
        merged[dep.key] = dep
    return list(merged.values())


def _excluded(key: CoordinateKey, exclusions: Tuple[CoordinateKey, ...]) -> bool:
    group, artifact = key
    for ex_group, ex_artifact in exclusions:
        if ex_group in ("*", group) and ex_artifact in ("*", artifact):
            return True
    return False


class MavenRepositoryResolver:
    """Resolver over an ordered list of Maven-2 layout repositories."""

    def __init__(self, repositories: Sequence[str], cache_dir: Path):
        self.repositories = [r.rstrip("/") for r in repositories] or [
            Constants.DEFAULT_REPOSITORY.rstrip("/")
        ]
        self.cache_dir = cache_dir
        self._inherited: Dict[Gav, Pom] = {}
        self._effective: Dict[Gav, Tuple[Pom, Dict[CoordinateKey, PomDependency]]] = {}
        self._metadata: Dict[CoordinateKey, List[str]] = {}

    # ---------- repository layout ----------

    @staticmethod
    def _remote_path(group: str, artifact: str, version: str, ext: str) -> str:
        return f"{group.replace('.', '/')}/{artifact}/{version}/{artifact}-{version}.{ext}"

    def _cache_path(self, group: str, artifact: str, version: str, ext: str) -> Path:
        kind = "poms" if ext == "pom" else "jars"
        return self.cache_dir / group / artifact / kind / f"{artifact}-{version}.{ext}"

    def _fetch_pom_text(self, group: str, artifact: str, version: str) -> str:
        cached = self._cache_path(group, artifact, version, "pom")
        if cached.is_file():
            return cached.read_text(encoding="utf-8")

        remote = self._remote_path(group, artifact, version, "pom")
        for repo in self.repositories:
            text = get_text(f"{repo}/{remote}", context="maven")
            if text is not None:
                self._store_text(cached, text)
                return text
        raise ResolutionError(f"Unable to resolve {group}:{artifact}:{version}: POM not found")

    @staticmethod
    def _store_text(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.replace(tmp_name, path)

    def _fetch_jar(self, group: str, artifact: str, version: str) -> Path:
        cached = self._cache_path(group, artifact, version, "jar")
        if cached.is_file():
            return cached

        remote = self._remote_path(group, artifact, version, "jar")
        for repo in self.repositories:
            if download_to_path(f"{repo}/{remote}", cached, context="maven"):
                logger.info("downloaded %s:%s:%s", group, artifact, version)
                return cached
        raise ResolutionError(f"Unable to resolve {group}:{artifact}:{version}: jar not found")

    def _metadata_versions(self, group: str, artifact: str) -> List[str]:
        """Return versions listed in maven-metadata.xml across repositories."""
        key = (group, artifact)
        if key in self._metadata:
            return self._metadata[key]

        versions: List[str] = []
        for repo in self.repositories:
            text = get_text(
                f"{repo}/{group.replace('.', '/')}/{artifact}/maven-metadata.xml", context="maven"
            )
            if not text:
                continue
            try:
                root = ET.fromstring(text)
            except ET.ParseError:
                logger.warning("Ignoring malformed maven-metadata.xml for %s:%s", group, artifact)
                continue
            for item in root.findall("versioning/versions/version"):
                if item.text and item.text.strip() not in versions:
                    versions.append(item.text.strip())
        self._metadata[key] = versions
        return versions

    # ---------- POM model ----------

    def _inherited_pom(self, group: str, artifact: str, version: str, chain: Tuple[Gav, ...] = ()) -> Pom:
        gav = (group, artifact, version)
        if gav in self._inherited:
            return self._inherited[gav]
        if gav in chain:
            raise ResolutionError(f"Cyclic parent POM chain at {group}:{artifact}:{version}")

        raw = parse_pom(self._fetch_pom_text(group, artifact, version), f"{group}:{artifact}:{version}")
        if raw.parent is not None:
            parent = self._inherited_pom(*raw.parent, chain=chain + (gav,))
            raw = Pom(
                group=raw.group or raw.parent[0],
                artifact=raw.artifact,
                version=raw.version or raw.parent[2],
                packaging=raw.packaging,
                parent=raw.parent,
                properties={**parent.properties, **raw.properties},
                dependencies=_merge_by_key(parent.dependencies, raw.dependencies),
                management=_merge_by_key(parent.management, raw.management),
            )
        self._inherited[gav] = raw
        return raw

    def effective_pom(self, group: str, artifact: str, version: str) -> Tuple[Pom, Dict[CoordinateKey, PomDependency]]:
        """Return the interpolated POM and its managed dependencies.

        Imported BOMs are expanded into the managed table, and direct
        dependency versions and scopes are completed from it.
        """
        gav = (group, artifact, version)
        if gav in self._effective:
            return self._effective[gav]

        pom = self._inherited_pom(group, artifact, version)
        props = project_properties(pom)

        managed: Dict[CoordinateKey, PomDependency] = {}
        imports: List[PomDependency] = []
        for dep in (interpolate_dependency(d, props) for d in pom.management):
            if dep.scope == "import" and dep.type == "pom":
                imports.append(dep)
            else:
                managed.setdefault(dep.key, dep)
        for bom in imports:
            if not bom.version:
                raise ResolutionError(f"{group}:{artifact}:{version} imports {bom.group}:{bom.artifact} without a version")
            _, bom_managed = self.effective_pom(bom.group, bom.artifact, bom.version)
            for key, dep in bom_managed.items():
                managed.setdefault(key, dep)

        dependencies = []
        for dep in (interpolate_dependency(d, props) for d in pom.dependencies):
            rule = managed.get(dep.key)
            if rule is not None:
                dep = replace(
                    dep,
                    version=dep.version or rule.version,
                    scope=dep.scope or rule.scope,
                    exclusions=dep.exclusions + rule.exclusions,
                )
            dependencies.append(replace(dep, scope=dep.scope or "compile"))

        effective = replace(pom, dependencies=dependencies, management=list(managed.values()))
        self._effective[gav] = (effective, managed)
        return effective, managed

    # ---------- graph walk ----------

    def _select_version(self, group: str, artifact: str, spec: Optional[str], requester: str) -> str:
        if not spec:
            raise ResolutionError(f"{requester} requires {group}:{artifact} without a version")
        if not is_range(spec):
            return spec
        selected = pick_range(spec, self._metadata_versions(group, artifact))
        if selected is None:
            raise ResolutionError(f"No version of {group}:{artifact} matches {spec}")
        return selected

    def _walk(
        self, coordinates: Sequence[DependencyCoordinate], download: bool, transitive: bool = True
    ) -> List[ResolvedNode]:
        selected: Dict[CoordinateKey, str] = {}
        queue: Deque[Tuple[CoordinateKey, str, Tuple[CoordinateKey, ...]]] = deque()

        for coordinate in coordinates:
            if coordinate.key in selected:
                logger.debug("duplicate root dependency %s ignored", coordinate)
                continue
            version = self._select_version(coordinate.group, coordinate.artifact, coordinate.version, "root")
            selected[coordinate.key] = version
            queue.append((coordinate.key, version, ()))

        nodes: List[ResolvedNode] = []
        while queue:
            (group, artifact), version, exclusions = queue.popleft()
            node_id = ArtifactId(group, artifact, version)
            pom, managed = self.effective_pom(group, artifact, version)

            depends: List[ArtifactId] = []
            for dep in pom.dependencies:
                if dep.scope not in _FOLLOWED_SCOPES or dep.optional:
                    continue
                if dep.type not in _CONTENT_TYPES or dep.classifier:
                    continue
                if dep.key == node_id.key or _excluded(dep.key, exclusions):
                    continue
                if dep.key not in selected:
                    if not transitive:
                        continue
                    selected[dep.key] = self._select_version(dep.group, dep.artifact, dep.version, str(node_id))
                    queue.append((dep.key, selected[dep.key], exclusions + dep.exclusions))
                child = ArtifactId(dep.group, dep.artifact, selected[dep.key])
                if child not in depends:
                    depends.append(child)

            path = None
            if download and pom.packaging != "pom":
                path = self._fetch_jar(group, artifact, version)

            if is_debug_enabled(logger):
                logger.debug(
                    "Resolved node",
                    extra=extra_context(
                        event="resolve",
                        component="maven",
                        action="walk",
                        target=str(node_id),
                        outcome="content" if path else "metadata_only",
                        count=len(depends),
                    ),
                )

            nodes.append(
                ResolvedNode(
                    id=node_id,
                    path=path,
                    depends=tuple(depends),
                    managed={k: d.version for k, d in managed.items() if d.version},
                )
            )
        return nodes

    def resolve(self, coordinates: Sequence[DependencyCoordinate]) -> List[ResolvedNode]:
        return self._walk(coordinates, download=True)

    def resolve_descriptors(self, coordinates: Sequence[DependencyCoordinate]) -> List[ResolvedNode]:
        return self._walk(coordinates, download=False, transitive=False)
