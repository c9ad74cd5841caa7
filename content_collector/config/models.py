"""Typed dataclasses describing collector configuration."""

from __future__ import annotations

import dataclasses as dc
import typing as typ


class CollectorConfigError(ValueError):
    """Raised when the collector configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class CollectorConfig:
    """Options controlling a content collection run.

    Attributes
    ----------
    require_numeric_prefix : bool
        Skip section files whose names lack an ordering prefix.
    environment : str | None
        Runtime environment; ``None`` defers to ``CONTENT_COLLECTOR_ENV``.
    data_loader : dict | False
        Options for the built-in data loader, or ``False`` to disable it.
    image_meta : dict | False
        Options for the built-in image metadata processor, or ``False`` to
        disable it.
    plugins : list
        Extra plugins, each an instance or a ``(plugin, dependencies)`` pair.
    """

    require_numeric_prefix: bool = False
    environment: str | None = None
    data_loader: dict[str, typ.Any] | typ.Literal[False] = dc.field(
        default_factory=dict
    )
    image_meta: dict[str, typ.Any] | typ.Literal[False] = dc.field(
        default_factory=dict
    )
    plugins: list[typ.Any] = dc.field(default_factory=list)


__all__ = ["CollectorConfig", "CollectorConfigError"]
