"""POM parsing and property interpolation."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from errors import ResolutionError
from lockfile.models import CoordinateKey

_PROPERTY_PATTERN = re.compile(r"\$\{([^}]+)\}")
_MAX_INTERPOLATION_DEPTH = 10


@dataclass(frozen=True)
class PomDependency:
    group: str
    artifact: str
    version: Optional[str] = None
    scope: Optional[str] = None
    type: str = "jar"
    classifier: Optional[str] = None
    optional: bool = False
    exclusions: Tuple[CoordinateKey, ...] = ()

    @property
    def key(self) -> CoordinateKey:
        return (self.group, self.artifact)


@dataclass
class Pom:
    """A parsed project object model, raw or effective."""
    group: Optional[str]
    artifact: str
    version: Optional[str]
    packaging: str = "jar"
    parent: Optional[Tuple[str, str, str]] = None
    properties: Dict[str, str] = field(default_factory=dict)
    dependencies: List[PomDependency] = field(default_factory=list)
    management: List[PomDependency] = field(default_factory=list)


def _strip_namespaces(root: ET.Element) -> None:
    for el in root.iter():
        if isinstance(el.tag, str) and "}" in el.tag:
            el.tag = el.tag.split("}", 1)[1]


def _text(el: Optional[ET.Element], path: str) -> Optional[str]:
    if el is None:
        return None
    node = el.find(path)
    if node is None or node.text is None:
        return None
    value = node.text.strip()
    return value or None


def _parse_dependency(el: ET.Element) -> Optional[PomDependency]:
    group = _text(el, "groupId")
    artifact = _text(el, "artifactId")
    if group is None or artifact is None:
        return None
    exclusions = []
    for ex in el.findall("exclusions/exclusion"):
        ex_group = _text(ex, "groupId") or "*"
        ex_artifact = _text(ex, "artifactId") or "*"
        exclusions.append((ex_group, ex_artifact))
    return PomDependency(
        group=group,
        artifact=artifact,
        version=_text(el, "version"),
        scope=_text(el, "scope"),
        type=_text(el, "type") or "jar",
        classifier=_text(el, "classifier"),
        optional=(_text(el, "optional") or "false").lower() == "true",
        exclusions=tuple(exclusions),
    )


def parse_pom(text: str, source: str = "pom") -> Pom:
    """Parse POM XML text without resolving inheritance.

    Raises:
        ResolutionError: if the text is not a POM.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ResolutionError(f"Malformed POM {source}: {e}") from e
    _strip_namespaces(root)
    if root.tag != "project":
        raise ResolutionError(f"Not a POM {source}: root element <{root.tag}>")

    parent = None
    parent_el = root.find("parent")
    if parent_el is not None:
        p_group = _text(parent_el, "groupId")
        p_artifact = _text(parent_el, "artifactId")
        p_version = _text(parent_el, "version")
        if p_group and p_artifact and p_version:
            parent = (p_group, p_artifact, p_version)

    artifact = _text(root, "artifactId")
    if artifact is None:
        raise ResolutionError(f"POM {source} has no artifactId")

    properties: Dict[str, str] = {}
    props_el = root.find("properties")
    if props_el is not None:
        for prop in props_el:
            if isinstance(prop.tag, str):
                properties[prop.tag] = (prop.text or "").strip()

    dependencies = [
        d for d in (_parse_dependency(el) for el in root.findall("dependencies/dependency")) if d
    ]
    management = [
        d
        for d in (
            _parse_dependency(el)
            for el in root.findall("dependencyManagement/dependencies/dependency")
        )
        if d
    ]

    return Pom(
        group=_text(root, "groupId"),
        artifact=artifact,
        version=_text(root, "version"),
        packaging=_text(root, "packaging") or "jar",
        parent=parent,
        properties=properties,
        dependencies=dependencies,
        management=management,
    )


def interpolate(value: Optional[str], properties: Dict[str, str]) -> Optional[str]:
    """Expand ${...} references; unknown properties are left in place."""
    if value is None or "${" not in value:
        return value
    for _ in range(_MAX_INTERPOLATION_DEPTH):
        expanded = _PROPERTY_PATTERN.sub(
            lambda m: properties.get(m.group(1), m.group(0)), value
        )
        if expanded == value:
            break
        value = expanded
    return value


def interpolate_dependency(dep: PomDependency, properties: Dict[str, str]) -> PomDependency:
    return replace(
        dep,
        group=interpolate(dep.group, properties) or dep.group,
        artifact=interpolate(dep.artifact, properties) or dep.artifact,
        version=interpolate(dep.version, properties),
        scope=interpolate(dep.scope, properties),
        classifier=interpolate(dep.classifier, properties),
    )


def project_properties(pom: Pom) -> Dict[str, str]:
    """Build the property table used for interpolation of pom."""
    props = dict(pom.properties)
    builtins = {
        "groupId": pom.group,
        "artifactId": pom.artifact,
        "version": pom.version,
        "packaging": pom.packaging,
    }
    for name, value in builtins.items():
        if value is not None:
            props[f"project.{name}"] = value
            props[f"pom.{name}"] = value
            props.setdefault(name, value)
    if pom.parent is not None:
        props["project.parent.groupId"] = pom.parent[0]
        props["project.parent.artifactId"] = pom.parent[1]
        props["project.parent.version"] = pom.parent[2]
    return props
