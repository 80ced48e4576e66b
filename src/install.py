"""The install pipeline: manifest to runtime image."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from constants import Constants
from common.logging_utils import Timer
from common.reporter import Reporter
from assembly.assembler import ImageAssembler
from lockfile.reconciler import LockReconciler, pin_manifest
from modulegraph.synthesizer import ModuleSynthesizer
from resolution.adapter import ArtifactResolverAdapter
from resolution.base import Resolver
from resolution.maven import MavenRepositoryResolver
from toolchain.base import Analyzer, Compiler, Linker
from toolchain.jdk import JavacCompiler, JdepsAnalyzer, JlinkLinker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstallPaths:
    """Directories one install reads from and writes to."""

    config_dir: Path
    lock_dir: Path
    cache_dir: Path
    output_dir: Path
    launcher_dir: Path

    @classmethod
    def from_args(cls, args) -> "InstallPaths":
        config_dir = Path(args.CONFIG_DIR or Constants.DEFAULT_CONFIG_DIR)
        output_dir = Path(args.OUTPUT_DIR or Constants.DEFAULT_OUTPUT_DIR)
        return cls(
            config_dir=config_dir,
            lock_dir=Path(args.LOCK_DIR) if args.LOCK_DIR else config_dir,
            cache_dir=Path(args.CACHE_DIR) if args.CACHE_DIR else output_dir / Constants.CACHE_DIRNAME,
            output_dir=output_dir,
            launcher_dir=Path(args.LAUNCHER_DIR or Constants.DEFAULT_LAUNCHER_DIR),
        )

    @property
    def manifest_path(self) -> Path:
        return self.config_dir / Constants.DEPENDENCY_FILENAME

    @property
    def lock_path(self) -> Path:
        return self.lock_dir / Constants.DEPENDENCY_LOCK_FILENAME

    @property
    def generated_dir(self) -> Path:
        return self.output_dir / Constants.GENERATED_DIRNAME


def install(
    paths: InstallPaths,
    reporter: Reporter,
    resolver: Optional[Resolver] = None,
    analyzer: Optional[Analyzer] = None,
    compiler: Optional[Compiler] = None,
    linker: Optional[Linker] = None,
) -> Path:
    """Resolve, lock, assemble and link; return the launcher path.

    Collaborators default to the Maven repository resolver and the JDK
    tools.

    Raises:
        ManifestError: if the manifest is missing or malformed.
        ResolutionError: if any dependency cannot be resolved.
        LinkError: if the image cannot be linked.
    """
    with Timer() as t:
        reconciler = LockReconciler(paths.manifest_path, paths.lock_path)
        manifest = reconciler.read()

        if resolver is None:
            repositories = manifest.repositories or (Constants.DEFAULT_REPOSITORY,)
            paths.cache_dir.mkdir(parents=True, exist_ok=True)
            resolver = MavenRepositoryResolver(repositories, paths.cache_dir)

        reporter.info("resolving dependencies")
        adapter = ArtifactResolverAdapter(resolver)
        nodes = adapter.resolve_nodes(manifest.dependencies, adapter.resolve_imports(manifest.imports))
        artifacts = adapter.artifacts(nodes)
        reporter.info("resolved %d artifacts", len(artifacts))
        reconciler.write(manifest, pin_manifest(manifest, nodes))

        synthesizer = ModuleSynthesizer(
            analyzer or JdepsAnalyzer(),
            compiler or JavacCompiler(),
            paths.generated_dir,
            reporter,
        )
        assembler = ImageAssembler(
            synthesizer,
            linker or JlinkLinker(),
            paths.output_dir,
            paths.launcher_dir,
            reporter,
        )
        launcher = assembler.run(artifacts)
    logger.debug("install finished in %d ms", t.duration_ms())
    return launcher
