"""Maven POM parsing utilities.

This module reads the handful of POM elements the packager cares about:
coordinates, parent, properties, dependencies (with their scopes and
exclusions) and dependency management. It also implements the "parent
property resolver" used to fill `${...}` placeholders in descriptor templates
from the property table of a published parent POM.

Parsing is namespace-agnostic so both namespaced and bare POMs are accepted.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence
from xml.sax.saxutils import escape

from pants_backend_springboot_itest.exceptions import (
    InvalidCoordinateError,
    PropertyResolutionError,
)
from pants_backend_springboot_itest.utils.maven import (
    Exclusion,
    MavenCoordinate,
    MavenDependency,
    Scope,
)

_PROPERTY_REFERENCE = re.compile(r"\$\{([^}]*)\}")


@dataclass(frozen=True)
class PomDependency:
    """A raw `<dependency>` element, versions left uninterpolated."""

    group_id: str
    artifact_id: str
    version: str | None = None
    scope: str | None = None
    type: str = "jar"
    classifier: str | None = None
    optional: bool = False
    exclusions: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class PomModel:
    """Parse result for a single `pom.xml` file."""

    group_id: str | None
    artifact_id: str | None
    version: str | None
    packaging: str = "jar"
    parent_group_id: str | None = None
    parent_artifact_id: str | None = None
    parent_version: str | None = None
    properties: Mapping[str, str] = field(default_factory=dict)
    dependencies: tuple[PomDependency, ...] = ()
    dependency_management: tuple[PomDependency, ...] = ()

    @property
    def effective_properties(self) -> dict[str, str]:
        """Declared properties plus the implicit `project.*` ones."""
        props: dict[str, str] = {}
        implicit = {
            "project.groupId": self.group_id,
            "project.artifactId": self.artifact_id,
            "project.version": self.version,
            "pom.version": self.version,
            "project.parent.groupId": self.parent_group_id,
            "project.parent.version": self.parent_version,
        }
        for key, value in implicit.items():
            if value is not None:
                props[key] = value
        props.update(self.properties)
        return props

    def managed_version(self, dependency: PomDependency) -> str | None:
        for managed in self.dependency_management:
            if (
                managed.group_id == dependency.group_id
                and managed.artifact_id == dependency.artifact_id
                and managed.classifier == dependency.classifier
                and managed.type == dependency.type
            ):
                return managed.version
        return None

    def declared_version(
        self, dependency: PomDependency, managed_by: Sequence[PomModel] = ()
    ) -> str | None:
        """Version written on the dependency, else the closest managed one.

        This POM's own dependency management comes first, then that of each
        POM in `managed_by` (its parents, nearest first).
        """
        if dependency.version:
            return dependency.version
        for pom in (self, *managed_by):
            version = pom.managed_version(dependency)
            if version:
                return version
        return None

    def dependencies_for(
        self,
        scopes: Iterable[Scope],
        inherited_properties: Mapping[str, str] | None = None,
        managed_by: Sequence[PomModel] = (),
    ) -> list[MavenDependency]:
        """Dependencies declared in any of `scopes`, versions interpolated.

        `inherited_properties` (typically those of the parent POM) are
        consulted for references this POM does not define itself, and the
        dependency management of `managed_by` supplies missing versions.
        """
        wanted = set(scopes)
        props = {**(inherited_properties or {}), **self.effective_properties}
        result = []
        for dep in self.dependencies:
            scope = Scope.parse(dep.scope)
            if scope not in wanted:
                continue
            version = self.declared_version(dep, managed_by)
            if version is not None:
                version = interpolate(version, props)
            result.append(
                MavenDependency(
                    coordinate=MavenCoordinate(
                        group_id=interpolate(dep.group_id, props),
                        artifact_id=dep.artifact_id,
                        version=version,
                        packaging=dep.type,
                        classifier=dep.classifier,
                    ),
                    scope=scope,
                    exclusions=tuple(Exclusion(g, a) for g, a in dep.exclusions),
                    optional=dep.optional,
                )
            )
        return result

    def exclusions_for(self, group_id: str, artifact_id: str) -> set[str]:
        """Exclusions declared on every `<dependency>` of group_id:artifact_id."""
        exclusions: set[str] = set()
        for dep in self.dependencies:
            if dep.group_id == group_id and dep.artifact_id == artifact_id:
                exclusions.update(f"{g}:{a}" for g, a in dep.exclusions)
        return exclusions

    def dependency_block(self, scope: Scope, managed_by: Sequence[PomModel] = ()) -> str:
        """Re-emit the dependencies declared in `scope` as descriptor XML.

        Missing versions are taken from the dependency management of
        `managed_by`. Versions keep any placeholder this POM cannot resolve
        itself, so the block can be dropped into a template and rendered
        against a parent.
        """
        props = self.effective_properties
        lines = []
        for dep in self.dependencies:
            if Scope.parse(dep.scope) != scope:
                continue
            version = self.declared_version(dep, managed_by)
            lines.append("        <dependency>")
            lines.append(f"            <groupId>{escape(dep.group_id)}</groupId>")
            lines.append(f"            <artifactId>{escape(dep.artifact_id)}</artifactId>")
            if version:
                lines.append(
                    f"            <version>{escape(interpolate(version, props))}</version>"
                )
            if dep.type != "jar":
                lines.append(f"            <type>{escape(dep.type)}</type>")
            if dep.classifier:
                lines.append(f"            <classifier>{escape(dep.classifier)}</classifier>")
            lines.append(f"            <scope>{scope.value}</scope>")
            if dep.exclusions:
                lines.append("            <exclusions>")
                for group, artifact in dep.exclusions:
                    lines.append("                <exclusion>")
                    lines.append(f"                    <groupId>{escape(group)}</groupId>")
                    lines.append(
                        f"                    <artifactId>{escape(artifact)}</artifactId>"
                    )
                    lines.append("                </exclusion>")
                lines.append("            </exclusions>")
            lines.append("        </dependency>")
        return "".join(line + "\n" for line in lines)


def interpolate(
    value: str, properties: Mapping[str, str], *, strict: bool = False
) -> str:
    """Expand `${name}` references in `value`.

    Unknown references are left untouched unless `strict` is set, in which
    case a PropertyResolutionError is raised. Reference cycles always raise.
    """

    def expand(text: str, seen: tuple[str, ...]) -> str:
        def replace(match: re.Match) -> str:
            name = match.group(1)
            if name in seen:
                chain = " -> ".join((*seen, name))
                raise PropertyResolutionError(f"Cyclic property reference: {chain}")
            if name not in properties:
                if strict:
                    raise PropertyResolutionError(f"Cannot resolve property ${{{name}}}")
                return match.group(0)
            return expand(properties[name], (*seen, name))

        return _PROPERTY_REFERENCE.sub(replace, text)

    return expand(value, ())


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element | None, name: str) -> ET.Element | None:
    if element is None:
        return None
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def _children(element: ET.Element | None, name: str) -> list[ET.Element]:
    if element is None:
        return []
    return [child for child in element if _local_name(child.tag) == name]


def _text(element: ET.Element | None, name: str) -> str | None:
    child = _child(element, name)
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


def _parse_dependency(element: ET.Element) -> PomDependency:
    group_id = _text(element, "groupId")
    artifact_id = _text(element, "artifactId")
    if not group_id or not artifact_id:
        raise InvalidCoordinateError("POM dependency is missing groupId or artifactId")

    exclusions = tuple(
        (_text(ex, "groupId") or "*", _text(ex, "artifactId") or "*")
        for ex in _children(_child(element, "exclusions"), "exclusion")
    )
    return PomDependency(
        group_id=group_id,
        artifact_id=artifact_id,
        version=_text(element, "version"),
        scope=_text(element, "scope"),
        type=_text(element, "type") or "jar",
        classifier=_text(element, "classifier"),
        optional=(_text(element, "optional") or "false").lower() == "true",
        exclusions=exclusions,
    )


def parse_pom(content: str | bytes) -> PomModel:
    """Parse POM text into a PomModel.

    Raises:
        xml.etree.ElementTree.ParseError: if the text is not well-formed XML.
    """
    root = ET.fromstring(content)
    parent = _child(root, "parent")

    properties_element = _child(root, "properties")
    properties = {}
    if properties_element is not None:
        properties = {
            _local_name(prop.tag): (prop.text or "").strip() for prop in properties_element
        }

    dependencies = tuple(
        _parse_dependency(dep)
        for dep in _children(_child(root, "dependencies"), "dependency")
    )
    managed = tuple(
        _parse_dependency(dep)
        for dep in _children(
            _child(_child(root, "dependencyManagement"), "dependencies"), "dependency"
        )
    )

    return PomModel(
        group_id=_text(root, "groupId") or _text(parent, "groupId"),
        artifact_id=_text(root, "artifactId"),
        version=_text(root, "version") or _text(parent, "version"),
        packaging=_text(root, "packaging") or "jar",
        parent_group_id=_text(parent, "groupId"),
        parent_artifact_id=_text(parent, "artifactId"),
        parent_version=_text(parent, "version"),
        properties=properties,
        dependencies=dependencies,
        dependency_management=managed,
    )


class PomPropertyResolver:
    """Resolves placeholders against the property tables of parent POMs.

    When several POMs are given, the first one defining a property wins.
    """

    def __init__(self, *poms: PomModel) -> None:
        merged: dict[str, str] = {}
        for pom in reversed(poms):
            merged.update(pom.effective_properties)
        self._properties = merged

    @property
    def properties(self) -> Mapping[str, str]:
        return dict(self._properties)

    def resolve(self, token: str) -> str:
        """Resolve `${name}` (or a bare `name`) to its fully expanded value."""
        match = _PROPERTY_REFERENCE.fullmatch(token.strip())
        name = match.group(1) if match else token.strip()
        if name not in self._properties:
            raise PropertyResolutionError(
                f"Cannot resolve property ${{{name}}}: it is not defined by the parent descriptor"
            )
        return interpolate(self._properties[name], self._properties, strict=True)

    __call__ = resolve
