"""Module descriptor discovery for jar archives.

Reads a compiled module-info.class when the archive declares one, and
otherwise derives an automatic module name the way the platform module
finder does: the Automatic-Module-Name manifest attribute first, then the
archive file name.
"""
from __future__ import annotations

import logging
import re
import struct
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from constants import Constants
from errors import ResolutionError

logger = logging.getLogger(__name__)

ACC_OPEN = 0x0020

_VERSION_SUFFIX = re.compile(r"-(\d+(\.|$))")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")
_REPEATED_DOTS = re.compile(r"\.{2,}")
_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

_RESERVED = frozenset("""
    abstract assert boolean break byte case catch char class const continue
    default do double else enum extends final finally float for goto if
    implements import instanceof int interface long native new package private
    protected public return short static strictfp super switch synchronized
    this throw throws transient try void volatile while true false null _
""".split())


@dataclass(frozen=True)
class ModuleDescriptor:
    """Name and requirements of a module; automatic ones declare none."""
    name: str
    automatic: bool = False
    requires: Tuple[str, ...] = ()
    open: bool = False


class DescriptorFormatError(ValueError):
    """module-info.class bytes could not be decoded."""


class _Reader:
    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def take(self, fmt: str):
        size = struct.calcsize(fmt)
        if self.pos + size > len(self.data):
            raise DescriptorFormatError("truncated class file")
        values = struct.unpack_from(fmt, self.data, self.pos)
        self.pos += size
        return values if len(values) > 1 else values[0]

    def skip(self, count: int) -> None:
        if self.pos + count > len(self.data):
            raise DescriptorFormatError("truncated class file")
        self.pos += count


# constant pool tag -> fixed payload size (Utf8 is variable)
_CP_SIZES = {3: 4, 4: 4, 5: 8, 6: 8, 7: 2, 8: 2, 9: 4, 10: 4, 11: 4,
             12: 4, 15: 3, 16: 2, 17: 4, 18: 4, 19: 2, 20: 2}


def parse_module_info(data: bytes) -> ModuleDescriptor:
    """Decode the Module attribute of a module-info.class.

    Raises:
        DescriptorFormatError: if data is not a module descriptor.
    """
    r = _Reader(data)
    if r.take(">I") != 0xCAFEBABE:
        raise DescriptorFormatError("bad magic")
    r.skip(4)

    count = r.take(">H")
    pool: Dict[int, Tuple[int, object]] = {}
    index = 1
    while index < count:
        tag = r.take(">B")
        if tag == 1:
            length = r.take(">H")
            start = r.pos
            r.skip(length)
            pool[index] = (1, data[start:start + length].decode("utf-8", errors="replace"))
        elif tag in _CP_SIZES:
            start = r.pos
            r.skip(_CP_SIZES[tag])
            pool[index] = (tag, data[start:start + _CP_SIZES[tag]])
        else:
            raise DescriptorFormatError(f"unknown constant pool tag {tag}")
        index += 2 if tag in (5, 6) else 1

    def utf8(i: int) -> str:
        entry = pool.get(i)
        if entry is None or entry[0] != 1:
            raise DescriptorFormatError(f"constant {i} is not Utf8")
        return entry[1]  # type: ignore[return-value]

    def module_name(i: int) -> str:
        entry = pool.get(i)
        if entry is None or entry[0] != 19:
            raise DescriptorFormatError(f"constant {i} is not a Module")
        return utf8(struct.unpack(">H", entry[1])[0])  # type: ignore[arg-type]

    r.skip(6)  # access_flags, this_class, super_class
    r.skip(2 * r.take(">H"))
    for _ in range(2):  # fields, methods
        for _ in range(r.take(">H")):
            r.skip(6)
            for _ in range(r.take(">H")):
                r.skip(2)
                r.skip(r.take(">I"))

    for _ in range(r.take(">H")):
        name = utf8(r.take(">H"))
        length = r.take(">I")
        if name != "Module":
            r.skip(length)
            continue
        name_index, flags, _version = r.take(">HHH")
        requires: List[str] = []
        for _ in range(r.take(">H")):
            req_index, _req_flags, _req_version = r.take(">HHH")
            requires.append(module_name(req_index))
        return ModuleDescriptor(
            name=module_name(name_index),
            automatic=False,
            requires=tuple(requires),
            open=bool(flags & ACC_OPEN),
        )

    raise DescriptorFormatError("no Module attribute")


def manifest_attributes(text: str) -> Dict[str, str]:
    """Parse the main section of a jar manifest, joining continuation lines."""
    attrs: Dict[str, str] = {}
    last: Optional[str] = None
    for line in text.splitlines():
        if not line.strip():
            break
        if line.startswith(" ") and last is not None:
            attrs[last] += line[1:]
            continue
        if ":" in line:
            key, value = line.split(":", 1)
            last = key.strip()
            attrs[last] = value.strip()
    return attrs


def is_module_name(name: str) -> bool:
    parts = name.split(".")
    return all(_IDENTIFIER.match(p) and p not in _RESERVED for p in parts)


def derive_automatic_name(filename: str) -> Optional[str]:
    """Derive a module name from a jar file name, or None if none is legal."""
    name = filename[:-4] if filename.endswith(".jar") else filename
    match = _VERSION_SUFFIX.search(name)
    if match:
        name = name[: match.start()]
    name = _NON_ALNUM.sub(".", name)
    name = _REPEATED_DOTS.sub(".", name).strip(".")
    if not name or not is_module_name(name):
        return None
    return name


def _versioned_descriptor(names: List[str]) -> Optional[str]:
    best: Optional[Tuple[int, str]] = None
    for entry in names:
        if not entry.startswith(Constants.VERSIONS_PREFIX) or not entry.endswith("/" + Constants.MODULE_INFO_CLASS):
            continue
        release = entry[len(Constants.VERSIONS_PREFIX):].split("/", 1)[0]
        if release.isdigit() and (best is None or int(release) > best[0]):
            best = (int(release), entry)
    return best[1] if best else None


def _declared_descriptor(archive: Path) -> Optional[ModuleDescriptor]:
    with zipfile.ZipFile(archive) as jar:
        names = jar.namelist()
        entry = Constants.MODULE_INFO_CLASS if Constants.MODULE_INFO_CLASS in names else None
        if entry is None:
            entry = _versioned_descriptor(names)
        if entry is not None:
            try:
                return parse_module_info(jar.read(entry))
            except DescriptorFormatError as e:
                logger.warning("Ignoring unreadable %s in %s: %s", entry, archive.name, e)

        if Constants.MANIFEST_ENTRY in names:
            attrs = manifest_attributes(jar.read(Constants.MANIFEST_ENTRY).decode("utf-8", errors="replace"))
            declared = attrs.get("Automatic-Module-Name")
            if declared and is_module_name(declared):
                return ModuleDescriptor(name=declared, automatic=True)
            if declared:
                logger.warning("Ignoring illegal Automatic-Module-Name %r in %s", declared, archive.name)
    return None


def read_descriptor(archive: Path) -> Optional[ModuleDescriptor]:
    """Return the archive's declared or automatic descriptor.

    None means the archive has no derivable module name.

    Raises:
        ResolutionError: if archive is not a readable jar.
    """
    try:
        declared = _declared_descriptor(archive)
    except zipfile.BadZipFile as e:
        raise ResolutionError(f"Corrupt archive {archive}: {e}") from e
    if declared is not None:
        return declared

    derived = derive_automatic_name(archive.name)
    if derived is None:
        return None
    return ModuleDescriptor(name=derived, automatic=True)
