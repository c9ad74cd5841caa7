"""Collect a directory of Markdown sections into a structured site tree.

This package walks a content root (``site.yml``, ``theme.yml`` and a
``pages/`` directory of Markdown files with YAML front matter), runs plugins
over every section and returns a :class:`~content_collector.models.SiteContent`
ready to be serialized for a renderer.

Exports
-------
- ``create_collector``: Build a collector with the built-in plugins wired in.
- ``ContentCollector``: The collector itself, for custom plugin wiring.
- ``SiteContent``, ``Page``, ``Section``: The collected content models.
- ``app``: Cyclopts application behind the ``content-collector`` command.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from content_collector import create_collector
>>> site = create_collector().collect_sync("site")  # doctest: +SKIP
>>> site.get_page("/").sections[0].title  # doctest: +SKIP
'Hero'
"""

from __future__ import annotations

from .cli import app, main
from .collector import ContentCollector, build_hierarchy, create_collector
from .models import Page, Section, SiteContent

__all__ = [
    "ContentCollector",
    "Page",
    "Section",
    "SiteContent",
    "app",
    "build_hierarchy",
    "create_collector",
    "main",
]
