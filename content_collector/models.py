"""Dataclasses describing the collected site content tree.

The collector builds :class:`Section` and :class:`Page` objects while walking
the source directory and wraps them in a :class:`SiteContent`. Each model
exposes ``to_dict()`` returning the JSON-serializable shape consumed by the
rendering layer.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from .document_tree import DocumentNode
from .ordering import section_id_sort_key

ErrorRecord = dict[str, typ.Any]


@dc.dataclass(slots=True)
class Section:
    """One Markdown file's processed output.

    Attributes
    ----------
    id : str
        Ordering key derived from the filename prefix (``"2.1"``), or the
        title when the file has no prefix.
    title : str
        Filename remainder after the prefix, without extension.
    component : str | None
        Rendering component named in the front matter.
    config : dict | None
        Component configuration from the front matter.
    props : dict
        Component properties; ``props["input"]`` holds loader output.
    content : DocumentNode
        Parsed document tree of the Markdown body.
    subsections : list[Section]
        Child sections, sorted by id.
    """

    id: str
    title: str
    component: str | None
    config: dict[str, typ.Any] | None
    props: dict[str, typ.Any]
    content: DocumentNode
    subsections: list[Section] = dc.field(default_factory=list)

    def to_dict(self) -> dict[str, typ.Any]:
        return {
            "id": self.id,
            "title": self.title,
            "component": self.component,
            "config": self.config,
            "props": self.props,
            "content": self.content,
            "subsections": [child.to_dict() for child in self.subsections],
        }


def sort_sections(sections: list[Section]) -> None:
    """Sort ``sections`` in place by numeric-aware id order."""
    sections.sort(key=lambda section: section_id_sort_key(section.id))


@dc.dataclass(slots=True)
class Page:
    """One content directory's ordered sections plus nested subpages.

    ``metadata`` holds the ``page.yml`` mapping and is flattened into the
    JSON object next to ``route``.
    """

    route: str
    sections: list[Section]
    metadata: dict[str, typ.Any] = dc.field(default_factory=dict)
    subpages: list[Page] = dc.field(default_factory=list)

    def to_dict(self) -> dict[str, typ.Any]:
        payload: dict[str, typ.Any] = {"route": self.route, **self.metadata}
        payload["sections"] = [section.to_dict() for section in self.sections]
        if self.subpages:
            payload["subpages"] = [page.to_dict() for page in self.subpages]
        return payload


@dc.dataclass(slots=True)
class SiteContent:
    """Root of the collected output.

    Attributes
    ----------
    pages : list[Page]
        Collected pages; the home page (``route == "/"``) comes first.
    config : dict
        Contents of ``site.yml``.
    theme : dict
        Contents of ``theme.yml``.
    errors : list[ErrorRecord] | None
        Non-fatal error log, present only outside production.
    regions : dict[str, Page]
        Special pages (``header``, ``footer``, ``left``, ``right``) collected
        from ``@``-prefixed directories.
    """

    pages: list[Page]
    config: dict[str, typ.Any]
    theme: dict[str, typ.Any]
    errors: list[ErrorRecord] | None = None
    regions: dict[str, Page] = dc.field(default_factory=dict)

    def get_page(self, route: str) -> Page | None:
        """Return the top-level page served at ``route``, if collected."""
        return next((page for page in self.pages if page.route == route), None)

    def to_dict(self) -> dict[str, typ.Any]:
        payload: dict[str, typ.Any] = {
            "pages": [page.to_dict() for page in self.pages],
            "config": self.config,
            "theme": self.theme,
        }
        for name, page in self.regions.items():
            payload[name] = page.to_dict()
        if self.errors is not None:
            payload["errors"] = list(self.errors)
        return payload


__all__ = [
    "DocumentNode",
    "ErrorRecord",
    "Page",
    "Section",
    "SiteContent",
    "sort_sections",
]
