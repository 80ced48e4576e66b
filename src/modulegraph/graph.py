"""Module arena and delegation walk.

Every resolved artifact becomes one Module addressed by its ArtifactId.
Automatic modules cannot be isolated from what they reach, so the walk
folds each of them, and everything reachable from them, into a single
delegate module whose archive holds all of their content.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from constants import Constants
from resolution.models import ArtifactId
from .descriptor import ModuleDescriptor

logger = logging.getLogger(__name__)


class ModuleState(Enum):
    """Lifecycle of one module in the arena."""
    NAMED = "named"
    AUTOMATIC_PENDING = "automatic"
    PROMOTED = "promoted"
    DELEGATED = "delegated"


@dataclass(eq=False)
class Module:
    name: str
    id: Optional[ArtifactId] = None
    paths: List[Path] = field(default_factory=list)
    depends: Tuple[ArtifactId, ...] = ()
    automatic: bool = False
    state: ModuleState = ModuleState.NAMED
    descriptor: Optional[ModuleDescriptor] = None

    @property
    def delegating(self) -> bool:
        return self.state is ModuleState.DELEGATED

    @property
    def path(self) -> Optional[Path]:
        """The single archive of a terminal, non-delegating module."""
        return self.paths[0] if len(self.paths) == 1 else None

    def __str__(self) -> str:
        marker = "+" if self.automatic else ""
        deps = ", ".join(str(d) for d in self.depends)
        return f"{self.name}{marker} ({self.state.value}) -> {{{deps}}} {[str(p) for p in self.paths]}"


def new_delegate() -> Module:
    return Module(name=Constants.DELEGATE_MODULE_NAME)


class ModuleGraph:
    """Arena of modules keyed by ArtifactId, plus the delegate."""

    def __init__(self) -> None:
        self.modules: Dict[ArtifactId, Module] = {}
        self.delegate = new_delegate()
        self.duplicates: List[Tuple[str, ArtifactId, ArtifactId]] = []
        self._rank: Dict[Path, int] = {}

    def _remember(self, path: Path) -> None:
        self._rank.setdefault(path, len(self._rank))

    def add(self, module: Module) -> None:
        if module.id is None:
            raise ValueError("arena modules need an artifact id")
        if module.id in self.modules:
            raise ValueError(f"{module.id} already has a module")
        for p in module.paths:
            self._remember(p)
        self.modules[module.id] = module

    def add_unnamed(self, path: Path) -> None:
        """Fold an archive without module identity straight into the delegate."""
        self._remember(path)
        if path not in self.delegate.paths:
            self.delegate.paths.append(path)

    def replace(self, module: Module) -> None:
        """Swap in a new record for an existing artifact id."""
        old = self.modules.get(module.id)
        if old is None:
            raise KeyError(module.id)
        # rebuilt archives keep the listing position of the ones they replace
        for before, after in zip(old.paths, module.paths):
            if before in self._rank:
                self._rank.setdefault(after, self._rank[before])
        for p in module.paths:
            self._remember(p)
        self.modules[module.id] = module

    def __iter__(self) -> Iterator[Module]:
        return iter(list(self.modules.values()))

    def __len__(self) -> int:
        return len(self.modules)

    def get(self, artifact_id: ArtifactId) -> Optional[Module]:
        return self.modules.get(artifact_id)

    def leaf_automatic(self) -> List[Module]:
        """Automatic, undelegated modules without outgoing edges."""
        return [m for m in self if m.automatic and not m.delegating and not m.depends]

    def delegate_from(self, start: ArtifactId) -> List[Module]:
        """Fold start and everything it reaches into the delegate.

        Iterative depth-first walk; the DELEGATED state doubles as the
        visited set, so cycles and repeated calls are safe.
        """
        folded: List[Module] = []
        stack = [start]
        while stack:
            module = self.modules.get(stack.pop())
            if module is None or module.delegating:
                continue
            module.state = ModuleState.DELEGATED
            for p in module.paths:
                if p not in self.delegate.paths:
                    self.delegate.paths.append(p)
            module.paths = []
            folded.append(module)
            stack.extend(reversed(module.depends))
        return folded

    def delegate_automatic(self) -> List[Module]:
        """Run the delegation walk from every pending automatic module."""
        folded: List[Module] = []
        for module in self:
            if module.automatic and not module.delegating:
                folded.extend(self.delegate_from(module.id))
        for module in folded:
            logger.debug("delegating %s", module.name)
        return folded

    def delegate_contributors(self) -> List[Path]:
        """Delegate archives in resolver listing order."""
        return sorted(self.delegate.paths, key=lambda p: self._rank.get(p, len(self._rank)))

    def independent(self) -> List[Module]:
        return [m for m in self if not m.delegating]

    def delegating(self) -> List[Module]:
        return [m for m in self if m.delegating]
