"""Tests for module descriptor discovery."""

import zipfile

import pytest

from conftest import module_info_bytes
from errors import ResolutionError
from modulegraph.descriptor import (
    DescriptorFormatError,
    derive_automatic_name,
    is_module_name,
    manifest_attributes,
    parse_module_info,
    read_descriptor,
)


class TestParseModuleInfo:
    """Decoding compiled module-info.class bytes."""

    def test_name_and_requires(self):
        """Test decoding name and requires."""
        descriptor = parse_module_info(module_info_bytes("org.example.foo", ["java.base", "org.example.bar"]))
        assert descriptor.name == "org.example.foo"
        assert descriptor.requires == ("java.base", "org.example.bar")
        assert not descriptor.automatic
        assert not descriptor.open

    def test_open_flag(self):
        """Test decoding an open module."""
        assert parse_module_info(module_info_bytes("x", open_module=True)).open

    def test_bad_magic(self):
        """Test rejection of non class files."""
        with pytest.raises(DescriptorFormatError):
            parse_module_info(b"\x00\x00\x00\x00rest")

    def test_truncated(self):
        """Test rejection of truncated descriptors."""
        data = module_info_bytes("org.example.foo")
        with pytest.raises(DescriptorFormatError):
            parse_module_info(data[:20])


class TestAutomaticNames:
    """File name and manifest based module names."""

    @pytest.mark.parametrize("filename,expected", [
        ("foo-1.0.jar", "foo"),
        ("commons-lang3-3.12.0.jar", "commons.lang3"),
        ("jackson-core-2.15.2.jar", "jackson.core"),
        ("foo_bar--baz.jar", "foo.bar.baz"),
        ("guava-32.1.2-jre.jar", "guava"),
        ("plain.jar", "plain"),
    ])
    def test_derive(self, filename, expected):
        """Test automatic names derived from file names."""
        assert derive_automatic_name(filename) == expected

    @pytest.mark.parametrize("filename", ["1-2.jar", "int-1.0.jar", "-.jar"])
    def test_underivable(self, filename):
        """Test file names without a legal module name."""
        assert derive_automatic_name(filename) is None

    def test_is_module_name(self):
        """Test module name validation."""
        assert is_module_name("org.example.foo")
        assert not is_module_name("org.example.class")
        assert not is_module_name("org..foo")
        assert not is_module_name("9lives")

    def test_manifest_continuation_lines(self):
        """Test joining of manifest continuation lines."""
        attrs = manifest_attributes("Manifest-Version: 1.0\nAutomatic-Module-Name: org.exa\n mple.foo\n\nName: x\n")
        assert attrs["Automatic-Module-Name"] == "org.example.foo"
        assert "Name" not in attrs


class TestReadDescriptor:
    """Classifying archives by what they declare."""

    def test_declared_module(self, jar_factory):
        """Test a jar with a root descriptor."""
        jar = jar_factory("foo-1.0.jar", module="org.example.foo", requires=["java.base"])
        descriptor = read_descriptor(jar)
        assert descriptor.name == "org.example.foo"
        assert not descriptor.automatic

    def test_versioned_descriptor(self, jar_factory):
        """Test that the highest versioned descriptor is used."""
        jar = jar_factory("foo-1.0.jar", {
            "META-INF/versions/9/module-info.class": module_info_bytes("org.example.nine"),
            "META-INF/versions/11/module-info.class": module_info_bytes("org.example.eleven"),
        })
        assert read_descriptor(jar).name == "org.example.eleven"

    def test_manifest_name_wins_over_file_name(self, jar_factory):
        """Test Automatic-Module-Name precedence."""
        jar = jar_factory("foo-1.0.jar", automatic_name="org.example.named")
        descriptor = read_descriptor(jar)
        assert descriptor.name == "org.example.named"
        assert descriptor.automatic

    def test_file_name_fallback(self, jar_factory):
        """Test the file name fallback."""
        descriptor = read_descriptor(jar_factory("foo-1.0.jar", {"foo/A.class": b"\xca\xfe"}))
        assert descriptor.name == "foo"
        assert descriptor.automatic

    def test_illegal_manifest_name_falls_back(self, jar_factory):
        """Test fallback from an illegal Automatic-Module-Name."""
        jar = jar_factory("bar-2.0.jar", automatic_name="not-a.module")
        assert read_descriptor(jar).name == "bar"

    def test_unnamed(self, jar_factory):
        """Test a jar without any module name."""
        assert read_descriptor(jar_factory("1-2.jar", {"a.txt": b"x"})) is None

    def test_unreadable_descriptor_falls_back(self, jar_factory, tmp_path):
        """Test fallback from an undecodable descriptor."""
        path = tmp_path / "broken-1.0.jar"
        with zipfile.ZipFile(path, "w") as jar:
            jar.writestr("module-info.class", b"nonsense")
        assert read_descriptor(path).name == "broken"

    def test_corrupt_archive_is_a_resolution_error(self, tmp_path):
        """Test that a corrupt jar is reported with its file name."""
        path = tmp_path / "foo-1.0.jar"
        path.write_bytes(b"<html>not found</html>")
        with pytest.raises(ResolutionError, match="foo-1.0.jar"):
            read_descriptor(path)
