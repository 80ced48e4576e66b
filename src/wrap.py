"""The wrap command: write the rymw bootstrap script.

rymw runs a pinned rym archive, copying it from the local repository or
downloading it on first use.
"""

from __future__ import annotations

import logging
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from constants import Constants

logger = logging.getLogger(__name__)

RYM_GROUP_PATH = "org/reaktivity/rym"


@dataclass(frozen=True)
class WrapperLocations:
    local_path: str
    wrapped_path: str
    wrapped_url: str


def wrapper_locations(
    output_dir: Path,
    version: Optional[str] = None,
    repository: Optional[str] = None,
    local_repository: Optional[str] = None,
) -> WrapperLocations:
    version = version or Constants.WRAPPER_VERSION
    repository = (repository or Constants.DEFAULT_REPOSITORY).rstrip("/")
    local_repository = (local_repository or Constants.WRAPPER_LOCAL_REPOSITORY).rstrip("/")
    archive = f"rym-{version}.jar"
    return WrapperLocations(
        local_path=f"{local_repository}/{RYM_GROUP_PATH}/{version}/{archive}",
        wrapped_path=str(output_dir / Constants.WRAPPER_DIRNAME / archive),
        wrapped_url=f"{repository}/{RYM_GROUP_PATH}/{version}/{archive}",
    )


def wrapper_script(locations: WrapperLocations) -> str:
    lines = [
        "#!/bin/sh",
        f'localPath="{locations.local_path}"',
        f'wrappedPath="{locations.wrapped_path}"',
        f'wrappedURL="{locations.wrapped_url}"',
        'if [ ! -r "$wrappedPath" ]; then',
        '  mkdir -p "$(dirname "$wrappedPath")"',
        '  if [ -r "$localPath" ]; then',
        '    echo "$wrappedPath not found, copying from $localPath"',
        '    cp "$localPath" "$wrappedPath"',
        "  else",
        '    echo "$wrappedPath not found, downloading from $wrappedURL"',
        "    if command -v curl > /dev/null; then",
        '      curl -f -o "$wrappedPath" "$wrappedURL"',
        "    else",
        "      echo curl missing, download failed",
        "      exit 1",
        "    fi",
        "  fi",
        "fi",
        'exec java $JAVA_OPTIONS -jar "$wrappedPath" "$@"',
    ]
    return "\n".join(lines) + "\n"


def wrap(
    launcher_dir: Path,
    output_dir: Path,
    version: Optional[str] = None,
    repository: Optional[str] = None,
    local_repository: Optional[str] = None,
) -> Path:
    """Write an executable rymw into launcher_dir and return its path."""
    locations = wrapper_locations(output_dir, version, repository, local_repository)
    launcher_dir.mkdir(parents=True, exist_ok=True)
    path = launcher_dir / Constants.WRAPPER_FILENAME
    path.write_text(wrapper_script(locations), encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    logger.info("generated %s for rym %s", path, version or Constants.WRAPPER_VERSION)
    return path
