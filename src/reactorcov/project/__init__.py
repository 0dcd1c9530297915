"""Reactor project model and its providers."""

from reactorcov.project.manifest import load_manifest
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
from reactorcov.project.pom import load_maven_reactor

__all__ = [
    "DEFAULT_CLASS_ROOTS",
    "DEFAULT_SOURCE_ROOTS",
    "DependencyRecord",
    "Module",
    "ModuleId",
    "ProjectModel",
    "Reactor",
    "Scope",
    "load_manifest",
    "load_maven_reactor",
]
