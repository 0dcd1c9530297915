"""Maven reactor discovery from pom.xml files.

Reads the root pom and its ``<modules>`` recursively. Only the parts of the
POM that identify modules and their dependencies are interpreted:

- groupId/version inherited from ``<parent>`` when absent
- ``${project.version}``, ``${project.groupId}``, ``${project.artifactId}``,
  ``${project.parent.version}``, ``${project.parent.groupId}`` and
  ``<properties>`` (own and inherited from in-reactor parents)
- dependency versions omitted locally come from ``<dependencyManagement>``
  of the pom or its in-reactor parents
- ``<build><sourceDirectory>`` and ``<outputDirectory>`` override the default
  source and class roots

Profiles, imports of BOMs and remote parents are not resolved; a dependency
that stays unresolvable is simply not found in the reactor.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from reactorcov.core.errors import ConfigError
from reactorcov.project.models import (
    DEFAULT_CLASS_ROOTS,
    DEFAULT_SOURCE_ROOTS,
    DependencyRecord,
    Module,
    ModuleId,
    ProjectModel,
    Reactor,
    Scope,
)

log = structlog.get_logger(__name__)

POM_FILE = "pom.xml"
_PROPERTY_RE = re.compile(r"\$\{([^}]+)\}")


@dataclass(slots=True)
class _Pom:
    """Raw values of one pom.xml, before inheritance."""

    path: Path
    group_id: str | None
    artifact_id: str
    version: str | None
    parent: tuple[str | None, str, str | None] | None  # (group, artifact, version)
    properties: dict[str, str] = field(default_factory=dict)
    managed: dict[tuple[str, str], str] = field(default_factory=dict)
    dependencies: list[tuple[str, str, str | None, str | None]] = field(default_factory=list)
    modules: list[str] = field(default_factory=list)
    source_directory: str | None = None
    output_directory: str | None = None


def _strip_ns(root: ET.Element) -> None:
    """Drop the POM namespace so plain tag names can be used in lookups."""
    for el in root.iter():
        if isinstance(el.tag, str) and "}" in el.tag:
            el.tag = el.tag.split("}", 1)[1]


def _text(el: ET.Element | None, tag: str) -> str | None:
    if el is None:
        return None
    child = el.find(tag)
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def _read_pom(path: Path) -> _Pom:
    try:
        tree = ET.parse(path)
    except ET.ParseError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    except OSError as e:
        raise ConfigError.file_not_found(str(path)) from e

    root = tree.getroot()
    _strip_ns(root)

    artifact_id = _text(root, "artifactId")
    if artifact_id is None:
        raise ConfigError.missing_required(f"{path}: project/artifactId")

    parent_el = root.find("parent")
    parent = None
    if parent_el is not None:
        parent_artifact = _text(parent_el, "artifactId")
        if parent_artifact:
            parent = (_text(parent_el, "groupId"), parent_artifact, _text(parent_el, "version"))

    pom = _Pom(
        path=path,
        group_id=_text(root, "groupId"),
        artifact_id=artifact_id,
        version=_text(root, "version"),
        parent=parent,
    )

    props = root.find("properties")
    if props is not None:
        for prop in props:
            if isinstance(prop.tag, str):
                pom.properties[prop.tag] = (prop.text or "").strip()

    for dep in root.findall("dependencyManagement/dependencies/dependency"):
        group, artifact = _text(dep, "groupId"), _text(dep, "artifactId")
        version = _text(dep, "version")
        if group and artifact and version:
            pom.managed[(group, artifact)] = version

    for dep in root.findall("dependencies/dependency"):
        group, artifact = _text(dep, "groupId"), _text(dep, "artifactId")
        if group and artifact:
            pom.dependencies.append((group, artifact, _text(dep, "version"), _text(dep, "scope")))

    pom.modules = [
        m.text.strip() for m in root.findall("modules/module") if m.text and m.text.strip()
    ]
    build = root.find("build")
    pom.source_directory = _text(build, "sourceDirectory")
    pom.output_directory = _text(build, "outputDirectory")
    return pom


def _collect(root_dir: Path) -> list[_Pom]:
    """Read the root pom and every pom reachable through <modules>, depth first."""
    poms: list[_Pom] = []
    seen: set[Path] = set()

    def visit(pom_path: Path) -> None:
        pom_path = pom_path.resolve()
        if pom_path in seen:
            return
        seen.add(pom_path)
        if not pom_path.is_file():
            raise ConfigError.file_not_found(str(pom_path))
        pom = _read_pom(pom_path)
        poms.append(pom)
        for module in pom.modules:
            child = pom_path.parent / module
            # <module> may name a pom file instead of a directory
            visit(child if child.suffix == ".xml" else child / POM_FILE)

    visit(root_dir / POM_FILE)
    return poms


class _Resolver:
    """Applies parent inheritance and property interpolation across the reactor."""

    def __init__(self, poms: list[_Pom]) -> None:
        self._by_artifact: dict[str, _Pom] = {}
        for pom in poms:
            self._by_artifact.setdefault(pom.artifact_id, pom)

    def _parent_of(self, pom: _Pom) -> _Pom | None:
        if pom.parent is None:
            return None
        return self._by_artifact.get(pom.parent[1])

    def _chain(self, pom: _Pom) -> list[_Pom]:
        chain: list[_Pom] = []
        current: _Pom | None = pom
        while current is not None and current not in chain:
            chain.append(current)
            current = self._parent_of(current)
        return chain

    def group_id(self, pom: _Pom) -> str:
        if pom.group_id:
            return self.interpolate(pom, pom.group_id)
        if pom.parent and pom.parent[0]:
            return self.interpolate(pom, pom.parent[0])
        raise ConfigError.missing_required(f"{pom.path}: project/groupId")

    def version(self, pom: _Pom) -> str:
        if pom.version:
            return self.interpolate(pom, pom.version)
        if pom.parent and pom.parent[2]:
            return self.interpolate(pom, pom.parent[2])
        raise ConfigError.missing_required(f"{pom.path}: project/version")

    def _lookup(self, pom: _Pom, name: str) -> str | None:
        if name in ("project.version", "pom.version", "version"):
            return self.version(pom)
        if name in ("project.groupId", "pom.groupId", "groupId"):
            return self.group_id(pom)
        if name in ("project.artifactId", "pom.artifactId"):
            return pom.artifact_id
        if name in ("project.basedir", "basedir"):
            return pom.path.parent.as_posix()
        if name == "project.build.directory":
            return (pom.path.parent / "target").as_posix()
        if name == "project.parent.version" and pom.parent:
            return pom.parent[2]
        if name == "project.parent.groupId" and pom.parent:
            return pom.parent[0]
        for ancestor in self._chain(pom):
            if name in ancestor.properties:
                return ancestor.properties[name]
        return None

    def interpolate(self, pom: _Pom, value: str, _depth: int = 0) -> str:
        if "${" not in value or _depth > 10:
            return value

        def substitute(match: re.Match[str]) -> str:
            resolved = self._lookup(pom, match.group(1))
            return match.group(0) if resolved is None else resolved

        expanded = _PROPERTY_RE.sub(substitute, value)
        if expanded == value:
            return value
        return self.interpolate(pom, expanded, _depth + 1)

    def managed_version(self, pom: _Pom, group: str, artifact: str) -> str | None:
        for ancestor in self._chain(pom):
            version = ancestor.managed.get((group, artifact))
            if version is not None:
                return self.interpolate(ancestor, version)
        return None

    def to_module(self, pom: _Pom) -> Module:
        dependencies: list[DependencyRecord] = []
        for group, artifact, version, scope in pom.dependencies:
            group = self.interpolate(pom, group)
            artifact = self.interpolate(pom, artifact)
            resolved = (
                self.interpolate(pom, version)
                if version
                else self.managed_version(pom, group, artifact)
            )
            if resolved is None:
                log.debug(
                    "dependency_version_unknown",
                    pom=str(pom.path),
                    dependency=f"{group}:{artifact}",
                )
                continue
            dependencies.append(
                DependencyRecord(
                    group_id=group,
                    artifact_id=artifact,
                    version=resolved,
                    scope=Scope.from_maven(scope),
                )
            )

        source_roots = DEFAULT_SOURCE_ROOTS
        if pom.source_directory:
            source_roots = (self.interpolate(pom, pom.source_directory),)
        class_roots = DEFAULT_CLASS_ROOTS
        if pom.output_directory:
            class_roots = (self.interpolate(pom, pom.output_directory),)

        return Module(
            id=ModuleId(self.group_id(pom), pom.artifact_id, self.version(pom)),
            base_dir=pom.path.parent,
            dependencies=tuple(dependencies),
            source_roots=source_roots,
            class_roots=class_roots,
        )


def load_maven_reactor(root: Path, project: str | None = None) -> ProjectModel:
    """Build the project model for the Maven reactor rooted at ``root``.

    Args:
        root: Directory holding the root pom.xml.
        project: Artifact id of the aggregating module; the root pom if None.

    Raises:
        ConfigError: Missing or malformed poms, missing identity fields,
            duplicate modules, or an unknown ``project``.
    """
    poms = _collect(root)
    resolver = _Resolver(poms)
    reactor = Reactor.of(resolver.to_module(pom) for pom in poms)

    if project is None:
        aggregating = reactor.find_artifact(poms[0].artifact_id)
    else:
        aggregating = reactor.find_artifact(project)
    if aggregating is None:
        raise ConfigError.invalid_value(
            "project", project, "no module with this artifact id in the reactor"
        )

    log.debug(
        "maven_reactor_loaded",
        root=str(root),
        modules=len(reactor),
        project=aggregating.artifact_id,
    )
    return ProjectModel(project=aggregating, reactor=reactor)
