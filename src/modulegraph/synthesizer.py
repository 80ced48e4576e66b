"""Descriptor synthesis.

Leaf automatic modules are offered to the analyzer; when it can describe
them and the compiler accepts the result, the archive is rebuilt with a
real module-info.class and the module is promoted to a named one. The same
machinery produces descriptors for the delegate and its forwarders.
"""
from __future__ import annotations

import logging
import re
import shutil
import zipfile
from pathlib import Path
from typing import List, Sequence

from constants import Constants
from common.reporter import Reporter
from errors import SynthesisFailure
from toolchain.base import Analyzer, Compiler
from .descriptor import DescriptorFormatError, ModuleDescriptor, parse_module_info
from .graph import Module, ModuleGraph, ModuleState
from .merge import splice_descriptor

logger = logging.getLogger(__name__)

_MODULE_DECLARATION = re.compile(r"^(\s*(?:open\s+)?module\s+)([\w.$]+)", re.MULTILINE)


def declare_module_name(source: str, name: str) -> str:
    """Rename the module declared by source."""
    renamed, count = _MODULE_DECLARATION.subn(lambda m: m.group(1) + name, source, count=1)
    if count == 0:
        raise SynthesisFailure(f"no module declaration in inferred descriptor for {name}")
    return renamed


def forwarder_source(name: str) -> str:
    return (
        f"open module {name} {{\n"
        f"    requires transitive {Constants.DELEGATE_MODULE_NAME};\n"
        "}\n"
    )


def extract_classes(archive: Path, target: Path) -> None:
    if target.exists():
        shutil.rmtree(target)
    target.mkdir(parents=True)
    with zipfile.ZipFile(archive) as jar:
        members = [n for n in jar.namelist() if n != Constants.MODULE_INFO_CLASS]
        jar.extractall(target, members)


class ModuleSynthesizer:
    """Builds module descriptors under ``<output>/generated``."""

    def __init__(self, analyzer: Analyzer, compiler: Compiler, generated_dir: Path, reporter: Reporter):
        self.analyzer = analyzer
        self.compiler = compiler
        self.generated_dir = generated_dir
        self.reporter = reporter

    def workdir(self, name: str) -> Path:
        return self.generated_dir / name

    def descriptor_for(self, archive: Path, name: str, module_path: Sequence[Path] = ()) -> bytes:
        """Infer and compile a descriptor named name for archive.

        Raises:
            SynthesisFailure: if nothing could be inferred or compiled.
        """
        source = self.analyzer.infer_descriptor(archive, list(module_path))
        if not source:
            raise SynthesisFailure(f"no descriptor could be inferred for {name}")
        source = declare_module_name(source, name)

        classes = self.workdir(name) / "classes"
        extract_classes(archive, classes)
        compiled = self.compiler.compile(source, list(module_path), classes)
        return compiled.read_bytes()

    def forwarder_for(self, name: str, module_path: Sequence[Path]) -> bytes:
        """Compile the empty open module forwarding name to the delegate."""
        classes = self.workdir(name) / "forwarder"
        if classes.exists():
            shutil.rmtree(classes)
        compiled = self.compiler.compile(forwarder_source(name), list(module_path), classes)
        return compiled.read_bytes()

    def promote(self, module: Module, module_path: Sequence[Path] = ()) -> Module:
        """Return a named replacement for a leaf automatic module.

        Raises:
            SynthesisFailure: if no descriptor could be produced.
        """
        archive = module.path
        if archive is None:
            raise SynthesisFailure(f"{module.name} has no single archive")

        data = self.descriptor_for(archive, module.name, module_path)
        target = self.workdir(module.name) / f"{module.name}.jar"
        splice_descriptor(archive, target, data)

        try:
            descriptor = parse_module_info(data)
        except DescriptorFormatError:
            descriptor = ModuleDescriptor(name=module.name)

        return Module(
            name=module.name,
            id=module.id,
            paths=[target],
            depends=module.depends,
            automatic=False,
            state=ModuleState.PROMOTED,
            descriptor=descriptor,
        )

    def promote_leaves(self, graph: ModuleGraph) -> List[Module]:
        """Try to promote every leaf automatic module of graph.

        Modules that fail stay automatic and are left to delegation.
        """
        duplicated = {name for name, _, _ in graph.duplicates}
        promoted: List[Module] = []
        for module in graph.leaf_automatic():
            if module.name in duplicated:
                logger.info("Not synthesizing %s, its name is provided more than once", module.name)
                continue
            try:
                replacement = self.promote(module)
            except SynthesisFailure as e:
                self.reporter.warning("%s remains an automatic module: %s", module.name, e)
                continue
            graph.replace(replacement)
            promoted.append(replacement)
            self.reporter.info("synthesized module descriptor for %s", module.name)
        return promoted
