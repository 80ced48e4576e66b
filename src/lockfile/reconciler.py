"""Choose between ry.deps and ry.deps.lock, and keep the lock current."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, Union

from errors import ManifestError
from lockfile.models import CoordinateKey, Manifest
from lockfile.parser import read_manifest, split_versions, write_manifest
from resolution.models import Artifact, ResolvedNode

logger = logging.getLogger(__name__)


class LockReconciler:
    """Decides which manifest is authoritative for one install."""

    def __init__(self, manifest_path: Path, lock_path: Path):
        self.manifest_path = manifest_path
        self.lock_path = lock_path

    def _lock_is_current(self) -> bool:
        if not self.lock_path.is_file():
            return False
        try:
            return self.lock_path.stat().st_mtime >= self.manifest_path.stat().st_mtime
        except OSError:
            return False

    def read(self) -> Manifest:
        """Return the lock snapshot when it is newer than the manifest.

        The manifest must exist either way; a stale or malformed lock falls
        back to the manifest.
        """
        if not self.manifest_path.is_file():
            raise ManifestError(f"Manifest not found: {self.manifest_path}")

        if self._lock_is_current():
            try:
                locked = read_manifest(self.lock_path)
            except ManifestError as e:
                logger.warning("Ignoring unreadable lock file %s: %s", self.lock_path, e)
            else:
                if locked.is_pinned:
                    logger.info("reading %s", self.lock_path)
                    return locked
                logger.warning("Ignoring lock file %s: not fully pinned", self.lock_path)

        logger.info("reading %s", self.manifest_path)
        manifest = read_manifest(self.manifest_path)
        pinned, unpinned = split_versions(manifest)
        logger.debug("manifest has %d pinned and %d unpinned dependencies", pinned, unpinned)
        return manifest

    def write(self, source: Manifest, resolved: Manifest) -> bool:
        """Persist resolved unless it matches source by value.

        Returns True when the lock file was (re)written.
        """
        if self.lock_path.is_file() and source.same_content(resolved):
            try:
                current = read_manifest(self.lock_path)
            except ManifestError:
                current = None
            if current is not None and current.same_content(resolved):
                logger.debug("lock file %s unchanged", self.lock_path)
                return False

        logger.info("updating %s", self.lock_path)
        write_manifest(self.lock_path, resolved)
        return True


def pin_manifest(manifest: Manifest, resolved: Iterable[Union[Artifact, ResolvedNode]]) -> Manifest:
    """Build the lock snapshot: declared dependencies at resolved versions.

    Nodes without content, such as pom-packaged aggregators, pin too.
    """
    versions: Dict[CoordinateKey, str] = {}
    for item in resolved:
        versions.setdefault(item.id.key, item.id.version)

    dependencies = tuple(
        dep.with_version(versions.get(dep.key, dep.version)) for dep in manifest.dependencies
    )
    return Manifest(repositories=manifest.repositories, imports=(), dependencies=dependencies)
