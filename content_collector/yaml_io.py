"""Read YAML metadata files and front-matter blocks.

All YAML in a content tree (``site.yml``, ``theme.yml``, ``page.yml``, image
sidecars, section front matter) goes through the safe YAML 1.2 loader built
here, so every caller sees the same scalar semantics.
"""

from __future__ import annotations

import typing as typ

from ruamel.yaml import YAML

if typ.TYPE_CHECKING:
    from pathlib import Path


def _build_safe_yaml() -> YAML:
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    return loader


def load_yaml_text(text: str) -> typ.Any:
    """Parse ``text`` and return the loaded document (``None`` when empty)."""
    return _build_safe_yaml().load(text)


def load_yaml_file(path: Path) -> typ.Any:
    """Return the parsed YAML document at ``path`` or ``None`` when absent.

    Raises
    ------
    OSError
        For I/O failures other than a missing file.
    YAMLError
        If the file content cannot be parsed.
    """
    try:
        with path.open("r", encoding="utf-8") as handle:
            return _build_safe_yaml().load(handle)
    except FileNotFoundError:
        return None


def read_yaml_file(path: Path) -> dict[str, typ.Any]:
    """Load a YAML mapping from ``path``.

    Parameters
    ----------
    path : Path
        Location of the YAML file. A missing file is not an error.

    Returns
    -------
    dict[str, Any]
        The parsed mapping, or an empty dict when the file does not exist or
        is empty.

    Raises
    ------
    TypeError
        If the top-level YAML structure is not a mapping.
    OSError
        For I/O failures other than a missing file.
    YAMLError
        If the YAML content cannot be parsed.
    """
    loaded = load_yaml_file(path)
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        msg = f"Top-level YAML structure in '{path}' must be a mapping."
        raise TypeError(msg)
    return dict(loaded)


__all__ = ["load_yaml_file", "load_yaml_text", "read_yaml_file"]
