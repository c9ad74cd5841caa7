"""Run-scoped state shared by the collector and its plugins.

A :class:`PluginContext` is created at the start of every ``collect()`` call
and threaded through each page and section builder. Plugins use it to report
errors and to share cached values; the collector uses it to decide whether
the error log is surfaced in the output.
"""

from __future__ import annotations

import dataclasses as dc
import traceback
import typing as typ

from ._constants import DEVELOPMENT, PRODUCTION

if typ.TYPE_CHECKING:
    from pathlib import Path

ErrorScope = typ.Literal["phase", "page", "plugin"]


@dc.dataclass(slots=True)
class PluginContext:
    """Mutable state for one collection run.

    Attributes
    ----------
    config : Any
        Collector configuration in effect for the run.
    environment : str
        Runtime environment name (``"development"``, ``"production"``, ...).
    errors : list[dict]
        Append-only error log shared by every builder and plugin.
    cache : dict
        Scratch storage plugins may share during the run.
    current_file : str | None
        File currently being processed, when known.
    resource_path : Path | None
        Root directory of the content tree being collected.
    current_section : str | None
        Section file handed to processor plugins.
    """

    config: typ.Any = None
    environment: str = DEVELOPMENT
    errors: list[dict[str, typ.Any]] = dc.field(default_factory=list)
    cache: dict[str, typ.Any] = dc.field(default_factory=dict)
    current_file: str | None = None
    resource_path: Path | None = None
    current_section: str | None = None

    @property
    def is_production(self) -> bool:
        return self.environment == PRODUCTION

    def for_section(self, path: Path | str) -> PluginContext:
        """Return a view of this context pointing at the section file ``path``.

        The view shares ``errors`` and ``cache`` with the run context so
        anything a plugin records is visible to the collector.
        """
        return dc.replace(self, current_file=str(path), current_section=str(path))

    def record_error(
        self,
        scope: ErrorScope,
        name: str,
        error: BaseException | str,
        *,
        message: str | None = None,
    ) -> dict[str, typ.Any]:
        """Append an error record and return it.

        Parameters
        ----------
        scope : {"phase", "page", "plugin"}
            Key identifying what failed.
        name : str
            Value stored under ``scope`` (phase name, page directory, plugin
            class name).
        error : BaseException | str
            The failure; stack traces are captured for exceptions when running
            in the development environment.
        message : str, optional
            Overrides the message derived from ``error``.
        """
        record: dict[str, typ.Any] = {scope: name, "message": message or str(error)}
        if self.environment == DEVELOPMENT and isinstance(error, BaseException):
            record["stack"] = "".join(traceback.format_exception(error))
        self.errors.append(record)
        return record


__all__ = ["ErrorScope", "PluginContext"]
