"""Classify resolved artifacts by module completeness."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Optional

from common.reporter import Reporter
from resolution.models import Artifact, ArtifactId
from .descriptor import ModuleDescriptor, read_descriptor
from .graph import Module, ModuleGraph, ModuleState

logger = logging.getLogger(__name__)

DescriptorReader = Callable[..., Optional[ModuleDescriptor]]


def classify(
    artifacts: Iterable[Artifact],
    reporter: Reporter,
    reader: DescriptorReader = read_descriptor,
) -> ModuleGraph:
    """Build the module arena for artifacts, in their listing order.

    Archives with a complete descriptor become named modules, those with
    only a derivable name become pending automatic modules, and the rest
    go straight into the delegate. Two artifacts claiming one module name
    are reported, and both are kept.
    """
    graph = ModuleGraph()
    owners: Dict[str, ArtifactId] = {}

    for artifact in artifacts:
        descriptor = reader(artifact.path)
        if descriptor is None:
            logger.info("%s has no module name, adding to %s", artifact.id, graph.delegate.name)
            graph.add_unnamed(artifact.path)
            continue

        owner = owners.get(descriptor.name)
        if owner is not None:
            kind = "automatic module" if descriptor.automatic else "module"
            reporter.error(
                "%s and %s both provide %s %s", owner, artifact.id, kind, descriptor.name
            )
            graph.duplicates.append((descriptor.name, owner, artifact.id))
        else:
            owners[descriptor.name] = artifact.id

        graph.add(
            Module(
                name=descriptor.name,
                id=artifact.id,
                paths=[artifact.path],
                depends=tuple(sorted(artifact.depends)),
                automatic=descriptor.automatic,
                state=ModuleState.AUTOMATIC_PENDING if descriptor.automatic else ModuleState.NAMED,
                descriptor=descriptor,
            )
        )

    return graph
