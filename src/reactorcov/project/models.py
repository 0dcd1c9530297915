"""Reactor project model.

Modules are built by a project-model provider (a YAML manifest or a Maven
pom tree) before aggregation starts and are read-only afterwards.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from reactorcov.core.errors import ConfigError

DEFAULT_SOURCE_ROOTS: tuple[str, ...] = ("src/main/java",)
DEFAULT_CLASS_ROOTS: tuple[str, ...] = ("target/classes",)


class Scope(StrEnum):
    """Why a project depends on a sibling module."""

    CONTRIBUTES_SOURCE = "compile"  # sources and coverage data are reported
    DATA_ONLY = "test"  # only coverage data is loaded
    OTHER = "other"

    @classmethod
    def from_maven(cls, scope: str | None) -> Scope:
        """Map a Maven dependency scope; a missing scope defaults to compile."""
        value = (scope or "compile").strip().lower()
        if value == "compile":
            return cls.CONTRIBUTES_SOURCE
        if value == "test":
            return cls.DATA_ONLY
        return cls.OTHER


@dataclass(frozen=True, slots=True, order=True)
class ModuleId:
    """(group, artifact, version) identity of a module, unique within a reactor."""

    group_id: str
    artifact_id: str
    version: str

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"


@dataclass(frozen=True, slots=True)
class DependencyRecord:
    """A dependency declared by a module."""

    group_id: str
    artifact_id: str
    version: str
    scope: Scope = Scope.CONTRIBUTES_SOURCE

    @property
    def module_id(self) -> ModuleId:
        return ModuleId(self.group_id, self.artifact_id, self.version)


@dataclass(frozen=True, slots=True)
class Module:
    """One module of the reactor."""

    id: ModuleId
    base_dir: Path
    dependencies: tuple[DependencyRecord, ...] = ()
    source_roots: tuple[str, ...] = DEFAULT_SOURCE_ROOTS
    class_roots: tuple[str, ...] = DEFAULT_CLASS_ROOTS

    @property
    def group_id(self) -> str:
        return self.id.group_id

    @property
    def artifact_id(self) -> str:
        return self.id.artifact_id

    @property
    def version(self) -> str:
        return self.id.version

    def source_dirs(self) -> list[Path]:
        return [self.base_dir / root for root in self.source_roots]

    def class_dirs(self) -> list[Path]:
        return [self.base_dir / root for root in self.class_roots]


@dataclass(slots=True)
class Reactor:
    """All modules built together in one session, keyed by ModuleId."""

    _modules: dict[ModuleId, Module] = field(default_factory=dict)

    @classmethod
    def of(cls, modules: Iterable[Module]) -> Reactor:
        reactor = cls()
        for module in modules:
            reactor.add(module)
        return reactor

    def add(self, module: Module) -> None:
        if module.id in self._modules:
            raise ConfigError.duplicate_module(str(module.id))
        self._modules[module.id] = module

    def find(self, module_id: ModuleId) -> Module | None:
        return self._modules.get(module_id)

    def find_artifact(self, artifact_id: str) -> Module | None:
        """First module (registration order) with the given artifact id."""
        for module in self._modules.values():
            if module.artifact_id == artifact_id:
                return module
        return None

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._modules

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules.values())

    def __len__(self) -> int:
        return len(self._modules)


@dataclass(frozen=True, slots=True)
class ProjectModel:
    """The aggregating project together with its reactor."""

    project: Module
    reactor: Reactor
