"""Classification of reactor dependencies by scope.

A project's declared dependencies are walked in declaration order and
resolved against the reactor. Dependencies that are not part of the reactor
(published artifacts, typos) are skipped: they are logged at debug level and
handed to an optional callback, but never raise.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

import structlog

from reactorcov.project.models import DependencyRecord, Module, ModuleId, Reactor, Scope

log = structlog.get_logger(__name__)

UnresolvedCallback = Callable[[DependencyRecord], None]


def find_dependencies(
    project: Module,
    reactor: Reactor,
    scopes: Iterable[Scope],
    *,
    on_unresolved: UnresolvedCallback | None = None,
) -> list[Module]:
    """Reactor modules the project depends on with one of ``scopes``.

    Declaration order is preserved and duplicate declarations produce
    duplicate entries.

    Args:
        project: The aggregating module.
        reactor: Modules of the current build session.
        scopes: Relationship tags to select.
        on_unresolved: Called with each selected dependency missing from the reactor.
    """
    wanted = frozenset(scopes)
    result: list[Module] = []
    for dependency in project.dependencies:
        if dependency.scope not in wanted:
            continue
        module = reactor.find(dependency.module_id)
        if module is None:
            log.debug(
                "dependency_unresolved",
                project=project.artifact_id,
                dependency=str(dependency.module_id),
                scope=dependency.scope.value,
            )
            if on_unresolved is not None:
                on_unresolved(dependency)
            continue
        result.append(module)
    return result


def unique_modules(modules: Iterable[Module]) -> list[Module]:
    """Drop repeated modules, keeping the first occurrence of each id."""
    seen: set[ModuleId] = set()
    result: list[Module] = []
    for module in modules:
        if module.id in seen:
            continue
        seen.add(module.id)
        result.append(module)
    return result
