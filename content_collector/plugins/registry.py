"""Plugin registry with dependency-ordered execution.

Plugins are keyed by their concrete class name and may declare the names of
plugins that must run before them. :meth:`PluginRegistry.get_ordered_plugins`
returns a depth-first post-order over that graph so every dependency precedes
its dependents.

Example
-------
>>> from content_collector.plugins import PluginRegistry, ProcessorPlugin
>>> class First(ProcessorPlugin): ...
>>> class Second(ProcessorPlugin): ...
>>> registry = PluginRegistry().register(Second(), ["First"]).register(First())
>>> [plugin.name for plugin in registry.get_ordered_plugins()]
['First', 'Second']
"""

from __future__ import annotations

import logging
import typing as typ

from ..errors import CircularDependencyError, MissingDependencyError

logger = logging.getLogger(__name__)


class PluginRegistry:
    """Hold plugin instances and their declared dependencies."""

    def __init__(self) -> None:
        self._plugins: dict[str, typ.Any] = {}
        self._dependencies: dict[str, tuple[str, ...]] = {}

    def register(
        self, plugin: typ.Any, dependencies: typ.Iterable[str] = ()
    ) -> PluginRegistry:
        """Store ``plugin`` under its class name, replacing any previous entry.

        Parameters
        ----------
        plugin : Any
            Plugin instance exposing one or more hook methods.
        dependencies : Iterable[str], optional
            Class names of plugins that must run before ``plugin``.

        Returns
        -------
        PluginRegistry
            The registry itself, for chaining.
        """
        name = type(plugin).__name__
        if name in self._plugins:
            logger.debug("Replacing registered plugin %s", name)
        self._plugins[name] = plugin
        self._dependencies[name] = tuple(dependencies)
        return self

    def get(self, name: str) -> typ.Any | None:
        return self._plugins.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)

    def get_ordered_plugins(self) -> list[typ.Any]:
        """Return plugins with every dependency ahead of its dependents.

        Plugins without ordering constraints keep their registration order.

        Raises
        ------
        MissingDependencyError
            If a declared dependency is not registered.
        CircularDependencyError
            If the dependency graph contains a cycle.
        """
        visited: set[str] = set()
        in_progress: list[str] = []
        ordered: list[typ.Any] = []

        def visit(name: str) -> None:
            if name in visited:
                return
            if name in in_progress:
                cycle = [*in_progress[in_progress.index(name) :], name]
                raise CircularDependencyError(cycle)
            in_progress.append(name)
            for dependency in self._dependencies.get(name, ()):
                if dependency not in self._plugins:
                    raise MissingDependencyError(dependency, required_by=name)
                visit(dependency)
            in_progress.pop()
            visited.add(name)
            ordered.append(self._plugins[name])

        for name in self._plugins:
            visit(name)
        return ordered


__all__ = ["PluginRegistry"]
