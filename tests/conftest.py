"""Shared fixtures: jar archives and compiled module descriptors built in memory."""

import struct
import zipfile
from pathlib import Path

import pytest

ACC_OPEN = 0x0020


def module_info_bytes(name, requires=(), open_module=False):
    """Assemble a minimal module-info.class declaring name and requires."""
    pool = []

    def utf8(text):
        raw = text.encode("utf-8")
        pool.append(struct.pack(">BH", 1, len(raw)) + raw)
        return len(pool)

    def module(text):
        index = utf8(text)
        pool.append(struct.pack(">BH", 19, index))
        return len(pool)

    class_name = utf8("module-info")
    pool.append(struct.pack(">BH", 7, class_name))
    this_class = len(pool)
    attribute_name = utf8("Module")
    module_index = module(name)
    require_indexes = [module(r) for r in requires]

    body = struct.pack(">HHH", module_index, ACC_OPEN if open_module else 0, 0)
    body += struct.pack(">H", len(require_indexes))
    for index in require_indexes:
        body += struct.pack(">HHH", index, 0, 0)
    body += struct.pack(">HHHH", 0, 0, 0, 0)

    data = struct.pack(">IHH", 0xCAFEBABE, 0, 53)
    data += struct.pack(">H", len(pool) + 1) + b"".join(pool)
    data += struct.pack(">HHH", 0x8000, this_class, 0)
    data += struct.pack(">HHH", 0, 0, 0)
    data += struct.pack(">H", 1)
    data += struct.pack(">HI", attribute_name, len(body)) + body
    return data


def write_jar(path, entries=None, automatic_name=None, module=None, requires=()):
    """Write a jar at path holding entries, an optional manifest and descriptor."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as jar:
        if automatic_name is not None:
            jar.writestr(
                "META-INF/MANIFEST.MF",
                f"Manifest-Version: 1.0\nAutomatic-Module-Name: {automatic_name}\n\n",
            )
        if module is not None:
            jar.writestr("module-info.class", module_info_bytes(module, requires))
        for name, content in (entries or {}).items():
            jar.writestr(name, content)
    return path


@pytest.fixture
def jar_factory(tmp_path):
    """Return a callable writing jars below tmp_path/jars."""

    def factory(filename, entries=None, **kwargs):
        return write_jar(tmp_path / "jars" / filename, entries, **kwargs)

    return factory


class FakeAnalyzer:
    """Infers a fixed descriptor unless the archive is listed as failing."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    def infer_descriptor(self, archive, module_path):
        self.calls.append((Path(archive).name, list(module_path)))
        if Path(archive).name in self.failing:
            return None
        return "module generated.name {\n    requires java.base;\n}\n"


class FakeCompiler:
    """Writes a real module-info.class for the declared module name."""

    def __init__(self):
        self.sources = []

    def compile(self, source, module_path, output_dir):
        self.sources.append(source)
        header = source.split("{", 1)[0].split()
        name = header[-1]
        requires = [
            line.strip().rstrip(";").split()[-1]
            for line in source.splitlines()
            if line.strip().startswith("requires")
        ]
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        target = output_dir / "module-info.class"
        target.write_bytes(module_info_bytes(name, requires, open_module=header[0] == "open"))
        return target


class FakeLinker:
    """Records the link request and creates the image directory."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def link(self, module_dir, root_modules, output):
        self.calls.append((Path(module_dir), list(root_modules), Path(output)))
        if self.error is not None:
            raise self.error
        Path(output).mkdir(parents=True, exist_ok=True)
        return Path(output)
