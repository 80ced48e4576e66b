"""End-to-end install pipeline with a scripted resolver and fake JDK tools."""

import json
from pathlib import Path

import pytest

from conftest import FakeAnalyzer, FakeCompiler, FakeLinker, write_jar
from common.reporter import Reporter
from errors import ManifestError, ResolutionError
from install import InstallPaths, install
from lockfile.reconciler import LockReconciler
from resolution.models import ArtifactId, ResolvedNode


class CacheResolver:
    """Resolves foo and its transitive bar out of a prepared directory."""

    def __init__(self, root):
        self.foo = ArtifactId("org.example", "foo", "1.0")
        self.bar = ArtifactId("org.example", "bar", "2.0")
        self.foo_path = write_jar(root / "foo-1.0.jar", {"foo/A.class": b"a"})
        self.bar_path = write_jar(root / "bar-2.0.jar", {"bar/B.class": b"b"}, module="org.example.bar")
        self.requests = []

    def resolve(self, coordinates):
        self.requests.append([str(c) for c in coordinates])
        return [
            ResolvedNode(self.foo, self.foo_path, (self.bar,)),
            ResolvedNode(self.bar, self.bar_path),
        ]

    def resolve_descriptors(self, coordinates):
        return [ResolvedNode(ArtifactId("org.example", "bom", "1.0"), managed={("org.example", "foo"): "1.0"})]


class AggregateResolver(CacheResolver):
    """Resolves a pom-packaged aggregator whose version comes from an import."""

    def resolve(self, coordinates):
        self.requests.append([str(c) for c in coordinates])
        agg = ArtifactId("org.example", "agg", "3.0")
        return [ResolvedNode(agg, None, (self.foo,)), ResolvedNode(self.foo, self.foo_path)]

    def resolve_descriptors(self, coordinates):
        return [ResolvedNode(ArtifactId("org.example", "bom", "1.0"), managed={("org.example", "agg"): "3.0"})]


class FailingResolver(CacheResolver):
    def resolve(self, coordinates):
        raise ResolutionError("no route to repository")


def _paths(tmp_path):
    return InstallPaths(
        config_dir=tmp_path / "project",
        lock_dir=tmp_path / "project",
        cache_dir=tmp_path / "cache",
        output_dir=tmp_path / "project" / ".ry",
        launcher_dir=tmp_path / "project",
    )


def _write_manifest(paths, data):
    paths.config_dir.mkdir(parents=True, exist_ok=True)
    paths.manifest_path.write_text(json.dumps(data), encoding="utf-8")


class TestInstall:
    """Manifest in, launcher out."""

    def test_installs_and_locks(self, tmp_path):
        """Test a full install writing the lock and linking."""
        paths = _paths(tmp_path)
        _write_manifest(paths, {
            "repositories": ["https://repo.example/maven2"],
            "imports": ["org.example:bom:1.0"],
            "dependencies": ["org.example:foo"],
        })
        resolver = CacheResolver(tmp_path / "jars")
        linker = FakeLinker()

        launcher = install(paths, Reporter(), resolver, FakeAnalyzer(), FakeCompiler(), linker)

        assert launcher == paths.launcher_dir / "ry"
        assert resolver.requests == [["org.example:foo:1.0"]]
        lock = json.loads(paths.lock_path.read_text(encoding="utf-8"))
        assert lock == {
            "repositories": ["https://repo.example/maven2"],
            "dependencies": ["org.example:foo:1.0"],
        }
        # foo is automatic but reaches the named bar, so both are delegated
        assert linker.calls[0][1] == ["__delegate__", "foo", "org.example.bar"]

    def test_content_less_dependency_is_pinned(self, tmp_path):
        """Test locking a declared aggregator that has no jar."""
        paths = _paths(tmp_path)
        _write_manifest(paths, {"imports": ["org.example:bom:1.0"], "dependencies": ["org.example:agg"]})
        resolver = AggregateResolver(tmp_path / "jars")

        install(paths, Reporter(), resolver, FakeAnalyzer(), FakeCompiler(), FakeLinker())

        lock = json.loads(paths.lock_path.read_text(encoding="utf-8"))
        assert lock["dependencies"] == ["org.example:agg:3.0"]
        assert LockReconciler(paths.manifest_path, paths.lock_path).read().is_pinned

    def test_corrupt_cached_jar_aborts_resolution(self, tmp_path):
        """Test that a corrupt cached jar fails the install before linking."""
        paths = _paths(tmp_path)
        _write_manifest(paths, {"dependencies": ["org.example:foo:1.0"]})
        resolver = CacheResolver(tmp_path / "jars")
        resolver.foo_path.write_bytes(b"truncated")
        linker = FakeLinker()
        with pytest.raises(ResolutionError, match="foo-1.0.jar"):
            install(paths, Reporter(), resolver, FakeAnalyzer(), FakeCompiler(), linker)
        assert linker.calls == []

    def test_missing_manifest(self, tmp_path):
        """Test install without a manifest."""
        with pytest.raises(ManifestError):
            install(_paths(tmp_path), Reporter(), CacheResolver(tmp_path / "jars"),
                    FakeAnalyzer(), FakeCompiler(), FakeLinker())

    def test_resolution_failure_stages_nothing(self, tmp_path):
        """Test that a resolution failure leaves no staged modules or lock."""
        paths = _paths(tmp_path)
        _write_manifest(paths, {"dependencies": ["org.example:foo:1.0"]})
        with pytest.raises(ResolutionError):
            install(paths, Reporter(), FailingResolver(tmp_path / "jars"),
                    FakeAnalyzer(), FakeCompiler(), FakeLinker())
        assert not (paths.output_dir / "modules").exists()
        assert not paths.lock_path.exists()


class TestInstallPaths:
    """Directory defaults derived from command line arguments."""

    def test_defaults(self):
        """Test default directories."""
        class Args:
            CONFIG_DIR = None
            LOCK_DIR = None
            CACHE_DIR = None
            OUTPUT_DIR = None
            LAUNCHER_DIR = None

        paths = InstallPaths.from_args(Args())
        assert paths.config_dir == Path(".")
        assert paths.lock_dir == Path(".")
        assert paths.output_dir == Path(".ry")
        assert paths.cache_dir == Path(".ry") / "cache"
        assert paths.launcher_dir == Path(".")
        assert paths.manifest_path == Path("ry.deps")
        assert paths.lock_path == Path("ry.deps.lock")

    def test_lock_follows_config_directory(self):
        """Test lock and cache placement from options."""
        class Args:
            CONFIG_DIR = "conf"
            LOCK_DIR = None
            CACHE_DIR = None
            OUTPUT_DIR = "build"
            LAUNCHER_DIR = "bin"

        paths = InstallPaths.from_args(Args())
        assert paths.lock_path == Path("conf") / "ry.deps.lock"
        assert paths.cache_dir == Path("build") / "cache"
        assert paths.generated_dir == Path("build") / "generated"
