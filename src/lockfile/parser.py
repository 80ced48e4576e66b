"""Reading and writing ry.deps / ry.deps.lock files.

Both files share one JSON shape:

    {
      "repositories": ["https://repo1.maven.org/maven2/"],
      "imports": ["org.example:bom:1.0"],
      "dependencies": ["org.example:foo:1.0", "nukleus"]
    }
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

from constants import Constants
from errors import ManifestError
from .models import DependencyCoordinate, Manifest

logger = logging.getLogger(__name__)


def parse_coordinate(token: str) -> DependencyCoordinate:
    """Parse a "group:artifact[:version]" or bare "artifact" token.

    A bare artifact takes Constants.DEFAULT_GROUP_ID as its group.
    """
    if not isinstance(token, str):
        raise ManifestError(f"Dependency must be a string: {token!r}")
    parts = [p.strip() for p in token.strip().split(":")]
    if len(parts) > 3 or any(not p for p in parts):
        raise ManifestError(f"Invalid dependency coordinate: {token!r}")
    if len(parts) == 1:
        return DependencyCoordinate(Constants.DEFAULT_GROUP_ID, parts[0])
    if len(parts) == 2:
        return DependencyCoordinate(parts[0], parts[1])
    return DependencyCoordinate(parts[0], parts[1], parts[2])


def _string_list(data: Dict[str, Any], key: str, path: Path) -> List[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ManifestError(f"'{key}' must be an array of strings: {path}")
    return value


def manifest_from_dict(data: Any, path: Path) -> Manifest:
    if not isinstance(data, dict):
        raise ManifestError(f"{path.name} is not a JSON object: {path}")

    repositories = tuple(_string_list(data, Constants.PROPERTY_REPOSITORIES, path))
    imports = tuple(parse_coordinate(t) for t in _string_list(data, Constants.PROPERTY_IMPORTS, path))
    dependencies = tuple(
        parse_coordinate(t) for t in _string_list(data, Constants.PROPERTY_DEPENDENCIES, path)
    )
    return Manifest(repositories=repositories, imports=imports, dependencies=dependencies)


def manifest_to_dict(manifest: Manifest) -> Dict[str, Any]:
    data: Dict[str, Any] = {Constants.PROPERTY_REPOSITORIES: list(manifest.repositories)}
    if manifest.imports:
        data[Constants.PROPERTY_IMPORTS] = [str(d) for d in manifest.imports]
    data[Constants.PROPERTY_DEPENDENCIES] = [str(d) for d in manifest.dependencies]
    return data


def read_manifest(path: Path) -> Manifest:
    """Read a manifest or lock file.

    Raises:
        ManifestError: if the file is missing, unreadable or malformed.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ManifestError(f"Manifest not found: {path}") from e
    except OSError as e:
        raise ManifestError(f"Manifest unreadable: {path}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ManifestError(f"{path.name} is not in JSON format: {e}") from e

    return manifest_from_dict(data, path)


def write_manifest(path: Path, manifest: Manifest) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        path.write_text(json.dumps(manifest_to_dict(manifest), indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Failed to write {path}") from e


def split_versions(manifest: Manifest) -> Tuple[int, int]:
    """Return (pinned, unpinned) dependency counts for logging."""
    pinned = sum(1 for d in manifest.dependencies if d.pinned)
    return pinned, len(manifest.dependencies) - pinned
