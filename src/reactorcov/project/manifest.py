"""YAML reactor manifest.

For builds that are not driven by Maven, the reactor can be described in a
small YAML file::

    project: coverage-report        # artifact id of the aggregating module
    modules:
      - group: com.example
        artifact: app
        version: "1.0"
        basedir: app                # relative to the manifest directory
        sources: [src/main/java]    # optional
        classes: [target/classes]    # optional
      - group: com.example
        artifact: coverage-report
        version: "1.0"
        basedir: report
        dependencies:
          - {group: com.example, artifact: app, version: "1.0", scope: compile}
          - {group: com.example, artifact: it-tests, version: "1.0", scope: test}

``scope`` follows Maven naming: compile (default), test, anything else.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

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


class ManifestDependency(BaseModel):
    group: str
    artifact: str
    version: str
    scope: str | None = None

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v: object) -> object:
        # YAML reads 1.0 as a float
        return str(v) if isinstance(v, int | float) else v


class ManifestModule(BaseModel):
    group: str
    artifact: str
    version: str
    basedir: str
    sources: list[str] = Field(default_factory=lambda: list(DEFAULT_SOURCE_ROOTS))
    classes: list[str] = Field(default_factory=lambda: list(DEFAULT_CLASS_ROOTS))
    dependencies: list[ManifestDependency] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v: object) -> object:
        # YAML reads 1.0 as a float
        return str(v) if isinstance(v, int | float) else v


class Manifest(BaseModel):
    project: str
    modules: list[ManifestModule]


def _to_module(entry: ManifestModule, base: Path) -> Module:
    basedir = Path(entry.basedir).expanduser()
    return Module(
        id=ModuleId(entry.group, entry.artifact, entry.version),
        base_dir=basedir if basedir.is_absolute() else base / basedir,
        dependencies=tuple(
            DependencyRecord(
                group_id=dep.group,
                artifact_id=dep.artifact,
                version=dep.version,
                scope=Scope.from_maven(dep.scope),
            )
            for dep in entry.dependencies
        ),
        source_roots=tuple(entry.sources),
        class_roots=tuple(entry.classes),
    )


def load_manifest(path: Path) -> ProjectModel:
    """Build the project model described by a YAML manifest.

    Raises:
        ConfigError: Missing file, invalid YAML, schema violations, duplicate
            modules, or a ``project`` that names no module.
    """
    if not path.is_file():
        raise ConfigError.file_not_found(str(path))
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e

    try:
        manifest = Manifest.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e

    base = path.parent.resolve()
    reactor = Reactor.of(_to_module(entry, base) for entry in manifest.modules)
    project = reactor.find_artifact(manifest.project)
    if project is None:
        raise ConfigError.invalid_value(
            "project", manifest.project, "no module with this artifact id in the manifest"
        )
    return ProjectModel(project=project, reactor=reactor)
