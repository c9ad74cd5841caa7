r"""Split Markdown section files into YAML front matter and body text.

A section file may open with a YAML block delimited by ``---`` lines::

    ---
    component: Hero
    props:
      background: ./images/hero.jpg
    input: ./data.json
    ---
    # Welcome

Only the ``component``, ``config``, ``props`` and ``input`` keys are
meaningful to the collector; anything else is ignored.

Example
-------
>>> from content_collector.front_matter import split_front_matter
>>> parsed = split_front_matter("---\ncomponent: Hero\n---\n# Hi\n")
>>> parsed.component, parsed.body
('Hero', '# Hi\n')
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from ruamel.yaml.error import YAMLError

from .errors import FrontMatterError
from .yaml_io import load_yaml_text

DELIMITER = "---\n"


@dc.dataclass(slots=True)
class FrontMatter:
    """Structured metadata extracted from the top of a section file.

    Attributes
    ----------
    component : str | None
        Name of the rendering component for the section.
    config : dict | None
        Component configuration, passed through untouched.
    props : dict
        Component properties; empty when not declared.
    input : Any
        Raw external data reference handed to loader plugins, if any.
    body : str
        Markdown that follows the front matter (the whole file when no front
        matter is present).
    """

    component: str | None = None
    config: dict[str, typ.Any] | None = None
    props: dict[str, typ.Any] = dc.field(default_factory=dict)
    input: typ.Any = None
    body: str = ""


def split_front_matter(text: str) -> FrontMatter:
    """Return the front matter and Markdown body contained in ``text``.

    The block is recognised only when the stripped text starts with ``---``
    and splitting on ``---`` lines yields at least three segments; otherwise
    the whole text is the body.

    Raises
    ------
    FrontMatterError
        If the YAML block cannot be parsed or is not a mapping, or a known key
        has the wrong shape.
    """
    normalized = text.replace("\r\n", "\n")
    if not normalized.strip().startswith("---"):
        return FrontMatter(body=normalized)

    parts = normalized.split(DELIMITER)
    if len(parts) < 3:
        return FrontMatter(body=normalized)

    try:
        loaded = load_yaml_text(parts[1])
    except YAMLError as exc:
        msg = f"Invalid front matter: {exc}"
        raise FrontMatterError(msg) from exc

    body = DELIMITER.join(parts[2:])
    if loaded is None:
        return FrontMatter(body=body)
    if not isinstance(loaded, dict):
        msg = "Invalid front matter: expected a mapping of section settings."
        raise FrontMatterError(msg)

    component = loaded.get("component")
    config = loaded.get("config")
    props = loaded.get("props") or {}
    if component is not None and not isinstance(component, str):
        msg = "Invalid front matter: 'component' must be a string."
        raise FrontMatterError(msg)
    if config is not None and not isinstance(config, dict):
        msg = "Invalid front matter: 'config' must be a mapping."
        raise FrontMatterError(msg)
    if not isinstance(props, dict):
        msg = "Invalid front matter: 'props' must be a mapping."
        raise FrontMatterError(msg)

    return FrontMatter(
        component=component,
        config=config,
        props=dict(props),
        input=loaded.get("input"),
        body=body,
    )


__all__ = ["FrontMatter", "split_front_matter"]
