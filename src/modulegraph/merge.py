"""Jar merging for the delegate archive, and descriptor splicing.

Merge policy, applied to contributors in order:
  - manifests and module descriptors of contributors are dropped;
  - META-INF/services/<service> registrations are concatenated per service;
  - any other entry is kept from the first contributor that has it.
Entries synthesized here carry a pinned timestamp so rebuilt archives are
byte-for-byte reproducible.
"""
from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from constants import Constants
from common.reporter import Reporter
from errors import MergeConflict

logger = logging.getLogger(__name__)


@dataclass
class MergeReport:
    entries: int = 0
    services: Dict[str, List[str]] = field(default_factory=dict)
    conflicts: List[MergeConflict] = field(default_factory=list)


def is_descriptor_entry(name: str) -> bool:
    if name == Constants.MODULE_INFO_CLASS:
        return True
    return name.startswith(Constants.VERSIONS_PREFIX) and name.endswith("/" + Constants.MODULE_INFO_CLASS)


def service_name(name: str) -> Optional[str]:
    """Return the service name for a direct META-INF/services/ entry."""
    if not name.startswith(Constants.SERVICES_PREFIX):
        return None
    rest = name[len(Constants.SERVICES_PREFIX):]
    if not rest or "/" in rest:
        return None
    return rest


def _pinned_info(name: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(name, date_time=Constants.PINNED_ENTRY_TIME)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    return info


def _copied_info(source: zipfile.ZipInfo) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(source.filename, date_time=source.date_time)
    info.compress_type = zipfile.ZIP_STORED if source.is_dir() else zipfile.ZIP_DEFLATED
    info.external_attr = source.external_attr
    return info


def _join_registrations(parts: List[bytes]) -> bytes:
    joined = b""
    for part in parts:
        if joined and not joined.endswith(b"\n"):
            joined += b"\n"
        joined += part
    return joined


def merge_archives(
    contributors: Sequence[Path],
    target: Path,
    reporter: Optional[Reporter] = None,
) -> MergeReport:
    """Write target as the merge of contributors, in the given order."""
    report = MergeReport()
    owners: Dict[str, Path] = {}
    registrations: Dict[str, List[bytes]] = {}
    providers: Dict[str, List[str]] = {}

    target.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED) as out:
        for path in contributors:
            with zipfile.ZipFile(path) as jar:
                for info in jar.infolist():
                    name = info.filename
                    if name == Constants.MANIFEST_ENTRY or is_descriptor_entry(name):
                        continue

                    service = service_name(name)
                    if service is not None and not info.is_dir():
                        registrations.setdefault(service, []).append(jar.read(info))
                        providers.setdefault(service, []).append(path.name)
                        continue

                    if name in owners:
                        if not info.is_dir():
                            conflict = MergeConflict(name, owners[name].name, path.name)
                            report.conflicts.append(conflict)
                            logger.warning("%s", conflict)
                        continue

                    owners[name] = path
                    out.writestr(_copied_info(info), b"" if info.is_dir() else jar.read(info))
                    report.entries += 1

        for service, parts in registrations.items():
            out.writestr(_pinned_info(Constants.SERVICES_PREFIX + service), _join_registrations(parts))
            report.entries += 1

    report.services = providers
    if report.conflicts and reporter is not None:
        reporter.warning(
            "%d duplicate entries skipped while merging %s", len(report.conflicts), target.name
        )
    return report


def splice_descriptor(archive: Path, target: Path, descriptor: bytes) -> Path:
    """Copy archive to target with descriptor as its module-info.class."""
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_name(f"{target.name}.tmp")
    with zipfile.ZipFile(archive) as src, zipfile.ZipFile(tmp, "w", zipfile.ZIP_DEFLATED) as out:
        for info in src.infolist():
            if info.filename == Constants.MODULE_INFO_CLASS:
                continue
            out.writestr(_copied_info(info), b"" if info.is_dir() else src.read(info))
        out.writestr(_pinned_info(Constants.MODULE_INFO_CLASS), descriptor)
    tmp.replace(target)
    return target


def write_descriptor_archive(target: Path, descriptor: bytes) -> Path:
    """Write an archive holding nothing but module-info.class."""
    target.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED) as out:
        out.writestr(_pinned_info(Constants.MODULE_INFO_CLASS), descriptor)
    return target
