"""Tests for the artifact resolver adapter over a scripted resolver."""

from pathlib import Path

import pytest

from errors import ResolutionError
from lockfile.models import DependencyCoordinate, Manifest
from resolution.adapter import ArtifactResolverAdapter
from resolution.models import ArtifactId, ResolvedNode


def aid(name, version="1.0"):
    return ArtifactId("org.example", name, version)


class ScriptedResolver:
    """Returns canned nodes and records what it was asked."""

    def __init__(self, nodes=(), descriptors=()):
        self.nodes = list(nodes)
        self.descriptors = list(descriptors)
        self.resolved = []
        self.described = []

    def resolve(self, coordinates):
        self.resolved.append(list(coordinates))
        return list(self.nodes)

    def resolve_descriptors(self, coordinates):
        self.described.append(list(coordinates))
        return list(self.descriptors)


class TestImports:
    """Managed versions from imported descriptors."""

    def test_no_imports_skips_resolver(self):
        """Test that no imports means no resolver call."""
        resolver = ScriptedResolver()
        assert ArtifactResolverAdapter(resolver).resolve_imports(()) == {}
        assert resolver.described == []

    def test_earlier_import_wins(self):
        """Test import precedence."""
        resolver = ScriptedResolver(descriptors=[
            ResolvedNode(aid("bom-a"), managed={("org.example", "foo"): "1.0"}),
            ResolvedNode(aid("bom-b"), managed={("org.example", "foo"): "2.0", ("org.example", "bar"): "3.0"}),
        ])
        managed = ArtifactResolverAdapter(resolver).resolve_imports(
            [DependencyCoordinate("org.example", "bom-a", "1.0"), DependencyCoordinate("org.example", "bom-b", "1.0")]
        )
        assert managed == {("org.example", "foo"): "1.0", ("org.example", "bar"): "3.0"}


class TestComplete:
    """Filling versions from managed versions."""

    def test_fills_unversioned(self):
        """Test completion from managed versions."""
        deps = [DependencyCoordinate("org.example", "foo"), DependencyCoordinate("org.example", "bar", "2.0")]
        completed = ArtifactResolverAdapter.complete(deps, {("org.example", "foo"): "1.5"})
        assert [d.version for d in completed] == ["1.5", "2.0"]

    def test_declared_version_beats_managed(self):
        """Test that declared versions are kept."""
        deps = [DependencyCoordinate("org.example", "foo", "1.0")]
        completed = ArtifactResolverAdapter.complete(deps, {("org.example", "foo"): "9.9"})
        assert completed[0].version == "1.0"

    def test_unmanaged_unversioned_fails(self):
        """Test an unversioned dependency nothing manages."""
        with pytest.raises(ResolutionError):
            ArtifactResolverAdapter.complete([DependencyCoordinate("org.example", "foo")], {})


class TestResolve:
    """Turning resolver nodes into artifacts."""

    def test_shared_transitive_dependency_resolves_once(self):
        """Test a transitive dependency shared by two roots."""
        shared = aid("shared")
        resolver = ScriptedResolver(nodes=[
            ResolvedNode(aid("a"), Path("a.jar"), (shared,)),
            ResolvedNode(aid("b"), Path("b.jar"), (shared,)),
            ResolvedNode(shared, Path("shared.jar")),
            ResolvedNode(shared, Path("shared.jar")),
        ])
        manifest = Manifest(dependencies=(
            DependencyCoordinate("org.example", "a", "1.0"),
            DependencyCoordinate("org.example", "b", "1.0"),
        ))
        artifacts = ArtifactResolverAdapter(resolver).resolve_manifest(manifest)
        assert [a.id for a in artifacts] == [aid("a"), aid("b"), shared]
        assert sum(1 for a in artifacts if a.id == shared) == 1
        assert artifacts[0].depends == frozenset({shared})

    def test_nodes_without_content_are_dropped(self):
        """Test dropping of nodes without content."""
        resolver = ScriptedResolver(nodes=[
            ResolvedNode(aid("app"), Path("app.jar"), (aid("bom"), aid("lib"))),
            ResolvedNode(aid("bom")),
            ResolvedNode(aid("lib"), Path("lib.jar")),
        ])
        artifacts = ArtifactResolverAdapter(resolver).resolve(
            [DependencyCoordinate("org.example", "app", "1.0")], {}
        )
        assert [a.id for a in artifacts] == [aid("app"), aid("lib")]
        assert artifacts[0].depends == frozenset({aid("lib")})

    def test_imports_feed_completion(self):
        """Test a manifest resolved through its imports."""
        resolver = ScriptedResolver(
            nodes=[ResolvedNode(aid("foo", "4.2"), Path("foo.jar"))],
            descriptors=[ResolvedNode(aid("bom"), managed={("org.example", "foo"): "4.2"})],
        )
        manifest = Manifest(
            imports=(DependencyCoordinate("org.example", "bom", "1.0"),),
            dependencies=(DependencyCoordinate("org.example", "foo"),),
        )
        ArtifactResolverAdapter(resolver).resolve_manifest(manifest)
        assert resolver.resolved == [[DependencyCoordinate("org.example", "foo", "4.2")]]
