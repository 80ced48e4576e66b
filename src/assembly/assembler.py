"""Runtime image assembly.

Drives the resolved artifacts through classification, synthesis and
delegation, stages one archive per module, links the image and writes
the launcher script.
"""
from __future__ import annotations

import logging
import shutil
import stat
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from common.reporter import Reporter
from errors import LinkError, RymError, SynthesisFailure
from modulegraph.classifier import classify
from modulegraph.graph import ModuleGraph
from modulegraph.merge import merge_archives, splice_descriptor, write_descriptor_archive
from modulegraph.synthesizer import ModuleSynthesizer
from resolution.models import Artifact
from toolchain.base import Linker

logger = logging.getLogger(__name__)


class AssemblyState(Enum):
    EMPTY = "empty"
    DISCOVERED = "discovered"
    CLASSIFIED = "classified"
    DELEGATED = "delegated"
    STAGED = "staged"
    LINKED = "linked"
    LAUNCHER_EMITTED = "launcher_emitted"
    ABORTED = "aborted"


class ImageAssembler:
    """Assembles a runtime image from resolved artifacts.

    Each stage requires the previous one; ``run`` performs them all and
    marks the assembly ABORTED, keeping the error, if any stage fails.
    """

    def __init__(
        self,
        synthesizer: ModuleSynthesizer,
        linker: Linker,
        output_dir: Path,
        launcher_dir: Path,
        reporter: Reporter,
    ):
        self.synthesizer = synthesizer
        self.linker = linker
        self.output_dir = output_dir
        self.launcher_dir = launcher_dir
        self.reporter = reporter

        self.state = AssemblyState.EMPTY
        self.error: Optional[RymError] = None
        self.artifacts: List[Artifact] = []
        self.graph: Optional[ModuleGraph] = None
        self.roots: List[str] = []

    @property
    def modules_dir(self) -> Path:
        return self.output_dir / Constants.MODULES_DIRNAME

    @property
    def image_dir(self) -> Path:
        return self.output_dir / Constants.IMAGE_DIRNAME

    @property
    def launcher_path(self) -> Path:
        return self.launcher_dir / Constants.LAUNCHER_FILENAME

    def _expect(self, expected: AssemblyState) -> None:
        if self.state is not expected:
            raise RuntimeError(f"assembly is {self.state.value}, expected {expected.value}")

    def _advance(self, expected: AssemblyState, target: AssemblyState) -> None:
        self._expect(expected)
        if is_debug_enabled(logger):
            logger.debug(
                "assembly %s",
                target.value,
                extra=extra_context(event="state", component="assembler", action=target.value, outcome="success"),
            )
        self.state = target

    def discover(self, artifacts: Sequence[Artifact]) -> None:
        self.artifacts = list(artifacts)
        self._advance(AssemblyState.EMPTY, AssemblyState.DISCOVERED)

    def classify(self) -> ModuleGraph:
        self._expect(AssemblyState.DISCOVERED)
        self.graph = classify(self.artifacts, self.reporter)
        self._advance(AssemblyState.DISCOVERED, AssemblyState.CLASSIFIED)
        return self.graph

    def delegate(self) -> None:
        """Promote what can be promoted, then fold automatic modules into the delegate."""
        self._expect(AssemblyState.CLASSIFIED)
        graph = self._graph()
        self.synthesizer.promote_leaves(graph)
        for module in graph.delegate_automatic():
            self.reporter.debug("delegating %s", module.name)
        self._advance(AssemblyState.CLASSIFIED, AssemblyState.DELEGATED)

    def stage(self) -> List[str]:
        """Write one archive per module into the modules directory.

        Returns the module names to link.
        """
        self._expect(AssemblyState.DELEGATED)
        graph = self._graph()
        if self.modules_dir.exists():
            shutil.rmtree(self.modules_dir)
        self.modules_dir.mkdir(parents=True)

        roots: List[str] = []
        for module in graph.independent():
            if module.name in roots:
                logger.warning("Skipping second archive for module %s", module.name)
                continue
            shutil.copyfile(module.path, self.modules_dir / f"{module.name}.jar")
            roots.append(module.name)

        contributors = graph.delegate_contributors()
        if contributors:
            self._stage_delegate(contributors)
            roots.append(Constants.DELEGATE_MODULE_NAME)

            for module in graph.delegating():
                if module.name in roots:
                    continue
                try:
                    data = self.synthesizer.forwarder_for(module.name, [self.modules_dir])
                except SynthesisFailure as e:
                    raise LinkError(f"cannot forward {module.name} to the delegate: {e}") from e
                write_descriptor_archive(self.modules_dir / f"{module.name}.jar", data)
                roots.append(module.name)

        self.roots = roots
        self._advance(AssemblyState.DELEGATED, AssemblyState.STAGED)
        return roots

    def _stage_delegate(self, contributors: List[Path]) -> None:
        name = Constants.DELEGATE_MODULE_NAME
        merged = self.synthesizer.workdir(name) / f"{name}.jar"
        report = merge_archives(contributors, merged, self.reporter)
        logger.info("merged %d archives into %s (%d entries)", len(contributors), name, report.entries)
        try:
            data = self.synthesizer.descriptor_for(merged, name, [self.modules_dir])
        except SynthesisFailure as e:
            raise LinkError(f"cannot describe the {name} module: {e}") from e
        splice_descriptor(merged, self.modules_dir / f"{name}.jar", data)

    def link(self) -> Path:
        self._expect(AssemblyState.STAGED)
        image = self.linker.link(self.modules_dir, self.roots, self.image_dir)
        self._advance(AssemblyState.STAGED, AssemblyState.LINKED)
        return image

    def emit_launcher(self) -> Path:
        self._expect(AssemblyState.LINKED)
        self.launcher_dir.mkdir(parents=True, exist_ok=True)
        path = self.launcher_path
        path.write_text(
            "#!/bin/sh\n"
            "JLINK_VM_OPTIONS=\n"
            f"{self.image_dir}/bin/java $JLINK_VM_OPTIONS -m {Constants.LAUNCHER_MAIN} \"$@\"\n",
            encoding="utf-8",
        )
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        self._advance(AssemblyState.LINKED, AssemblyState.LAUNCHER_EMITTED)
        return path

    def run(self, artifacts: Sequence[Artifact]) -> Path:
        """Run every stage and return the launcher path.

        Raises:
            RymError: the first fatal error; the assembly is then ABORTED.
        """
        try:
            self.discover(artifacts)
            self.classify()
            self.delegate()
            self.stage()
            self.reporter.info("prepared modules")
            self.link()
            launcher = self.emit_launcher()
            self.reporter.info("generated launcher")
            return launcher
        except RymError as e:
            self.state = AssemblyState.ABORTED
            self.error = e
            raise

    def _graph(self) -> ModuleGraph:
        if self.graph is None:
            raise RuntimeError("artifacts have not been classified")
        return self.graph
