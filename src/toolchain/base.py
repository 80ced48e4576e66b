"""External tool capabilities used to synthesize descriptors and link images."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol, Sequence


class Analyzer(Protocol):
    """Infers module descriptor source from an archive's symbol usage."""

    def infer_descriptor(self, archive: Path, module_path: Sequence[Path]) -> Optional[str]:
        """Return module-info.java source for archive, or None if none can be inferred."""
        raise NotImplementedError


class Compiler(Protocol):
    """Compiles module-info.java source into a binary descriptor."""

    def compile(self, source: str, module_path: Sequence[Path], output_dir: Path) -> Path:
        """Compile source and return the path of the resulting module-info.class.

        Raises:
            SynthesisFailure: if compilation fails.
        """
        raise NotImplementedError


class Linker(Protocol):
    """Links staged modules into a runtime image."""

    def link(self, module_dir: Path, root_modules: Sequence[str], output: Path) -> Path:
        """Link root_modules found in module_dir into output.

        Raises:
            LinkError: if the linker fails.
        """
        raise NotImplementedError
