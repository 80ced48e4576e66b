"""JDK command line tools behind the toolchain capabilities.

jdeps infers descriptors, javac compiles them and jlink links the image.
Each tool runs as a blocking subprocess; tools are looked up under
JAVA_HOME first, then on PATH.
"""
from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, Timer
from errors import LinkError, SynthesisFailure

logger = logging.getLogger(__name__)


def java_home() -> Optional[Path]:
    home = os.environ.get("JAVA_HOME")
    if home:
        return Path(home)
    javac = shutil.which("javac")
    if javac:
        return Path(javac).resolve().parent.parent
    return None


def tool_path(name: str) -> str:
    home = java_home()
    if home is not None:
        candidate = home / "bin" / name
        if candidate.exists():
            return str(candidate)
    return shutil.which(name) or name


def _module_path_arg(paths: Sequence[Path]) -> List[str]:
    if not paths:
        return []
    return ["--module-path", os.pathsep.join(str(p) for p in paths)]


def run_tool(name: str, args: Sequence[str]) -> subprocess.CompletedProcess:
    """Run a JDK tool, capturing its output.

    Raises:
        FileNotFoundError: if the tool cannot be found.
    """
    cmd = [tool_path(name), *args]
    if is_debug_enabled(logger):
        logger.debug(
            "Running %s",
            name,
            extra=extra_context(event="tool_start", component="toolchain", action=name, target=" ".join(cmd)),
        )
    with Timer() as t:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)  # noqa: S603
    if is_debug_enabled(logger):
        logger.debug(
            "%s finished",
            name,
            extra=extra_context(
                event="tool_end",
                component="toolchain",
                action=name,
                outcome="success" if result.returncode == 0 else "failure",
                status_code=result.returncode,
                duration_ms=t.duration_ms(),
            ),
        )
    return result


class JdepsAnalyzer:
    """Infers module-info.java with ``jdeps --generate-module-info``."""

    def infer_descriptor(self, archive: Path, module_path: Sequence[Path]) -> Optional[str]:
        with tempfile.TemporaryDirectory(prefix="rym-jdeps-") as tmp:
            try:
                result = run_tool(
                    "jdeps",
                    ["--generate-module-info", tmp, *_module_path_arg(module_path), str(archive)],
                )
            except FileNotFoundError as e:
                logger.warning("jdeps unavailable: %s", e)
                return None
            if result.returncode != 0:
                logger.info("jdeps could not analyze %s: %s", archive.name, result.stderr.strip())
                return None
            generated = sorted(Path(tmp).rglob(Constants.MODULE_INFO_SOURCE))
            if not generated:
                return None
            return generated[0].read_text(encoding="utf-8")


class JavacCompiler:
    """Compiles a lone module-info.java with javac.

    output_dir may already hold the module's classes; javac checks the
    descriptor's packages against them.
    """

    def compile(self, source: str, module_path: Sequence[Path], output_dir: Path) -> Path:
        output_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix="rym-javac-") as tmp:
            source_file = Path(tmp) / Constants.MODULE_INFO_SOURCE
            source_file.write_text(source, encoding="utf-8")
            try:
                result = run_tool(
                    "javac",
                    ["-d", str(output_dir), *_module_path_arg(module_path), str(source_file)],
                )
            except FileNotFoundError as e:
                raise SynthesisFailure(f"javac unavailable: {e}") from e
        if result.returncode != 0:
            raise SynthesisFailure((result.stderr or result.stdout).strip() or "javac failed")
        compiled = output_dir / Constants.MODULE_INFO_CLASS
        if not compiled.is_file():
            raise SynthesisFailure(f"javac produced no {Constants.MODULE_INFO_CLASS}")
        return compiled


class JlinkLinker:
    """Links a runtime image with jlink."""

    def link(self, module_dir: Path, root_modules: Sequence[str], output: Path) -> Path:
        module_path: List[Path] = [module_dir]
        home = java_home()
        if home is not None and (home / "jmods").is_dir():
            module_path.append(home / "jmods")

        if output.exists():
            shutil.rmtree(output)
        output.parent.mkdir(parents=True, exist_ok=True)

        args = [
            *_module_path_arg(module_path),
            "--output", str(output),
            *Constants.JLINK_OPTIONS,
            "--add-modules", ",".join(root_modules),
        ]
        try:
            result = run_tool("jlink", args)
        except FileNotFoundError as e:
            raise LinkError(f"jlink unavailable: {e}") from e
        if result.returncode != 0:
            raise LinkError((result.stderr or result.stdout).strip() or "jlink failed")
        return output
