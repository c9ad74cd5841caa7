"""Loader plugin resolving front-matter ``input`` references into data.

A section may declare where its data comes from::

    input: ./data/team.json                 # JSON file under the content root
    input: https://api.example.com/team     # remote JSON, cached for an hour
    input:
      url: https://api.example.com/team
      revalidate: 60                        # cache lifetime in seconds
      fallback: ./data/team.json            # used when the fetch fails

Remote responses are cached for the duration of a collection run so repeated
references cost one request. Every failure is reported through
:meth:`~content_collector.plugins.base.ContentPlugin.add_error` and resolves
to ``None`` (or the fallback) instead of raising.
"""

from __future__ import annotations

import asyncio
import json
import logging
import typing as typ
from pathlib import Path
from urllib.parse import urlsplit

from .._constants import DEFAULT_FETCH_TIMEOUT_MS, DEFAULT_REVALIDATE_SECONDS
from ..cache import Cache
from ..errors import DataFetchError
from .base import LoaderPlugin

if typ.TYPE_CHECKING:
    from ..context import PluginContext

logger = logging.getLogger(__name__)

URL_SCHEMES = ("http", "https")


def is_url(source: str) -> bool:
    """Return whether ``source`` is an absolute HTTP(S) URL."""
    parts = urlsplit(source.strip())
    return parts.scheme.lower() in URL_SCHEMES and bool(parts.netloc)


def _read_json(path: Path) -> typ.Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


class DataLoaderPlugin(LoaderPlugin):
    """Resolve file paths, URLs and ``{url, path, revalidate, fallback}`` maps.

    Options
    -------
    timeout : float
        Milliseconds to wait for a remote response (default 5000).
    revalidate : float
        Default cache lifetime for remote data in seconds (default 3600).
    retries : int
        Retry budget for transient HTTP failures (default 2).
    """

    def __init__(self, options: typ.Mapping[str, typ.Any] | None = None) -> None:
        super().__init__(options)
        self.timeout = float(self.options.get("timeout", DEFAULT_FETCH_TIMEOUT_MS))
        self.revalidate = _revalidate_seconds(
            self.options.get("revalidate", DEFAULT_REVALIDATE_SECONDS)
        )
        self._cache = Cache()

    @property
    def cache(self) -> Cache:
        return self._cache

    async def before_collect(self, context: PluginContext) -> None:
        self._cache.clear()

    async def load_data(self, source: typ.Any, context: PluginContext) -> typ.Any:
        """Return the data referenced by ``source`` or ``None``."""
        if isinstance(source, str):
            source = source.strip()
        match source:
            case str() if source:
                if is_url(source):
                    return await self._load_from_url(source, context)
                return await self._load_from_file(source, context)
            case dict():
                return await self._load_from_config(source, context)
            case _:
                return None

    async def _load_from_config(
        self, config: typ.Mapping[str, typ.Any], context: PluginContext
    ) -> typ.Any:
        url = config.get("url")
        path = config.get("path")
        if url:
            url = str(url).strip()
            raw_revalidate = config.get("revalidate")
            revalidate = _coerce_seconds(raw_revalidate)
            if revalidate is None and raw_revalidate is not None:
                message = (
                    f"Invalid revalidate value {raw_revalidate!r} for {url}; "
                    f"using {self.revalidate:g} seconds"
                )
                self.add_error(context, message)
            return await self._load_from_url(
                url,
                context,
                revalidate=revalidate,
                fallback=config.get("fallback"),
            )
        if path:
            return await self._load_from_file(str(path).strip(), context)
        return None

    async def _load_from_file(self, path: str, context: PluginContext) -> typ.Any:
        base = Path(context.resource_path) if context.resource_path else Path()
        full_path = base / path
        try:
            return await asyncio.to_thread(_read_json, full_path)
        except (OSError, ValueError) as exc:
            self.add_error(context, f"Failed to load data from file {path}: {exc}")
            return None

    async def _load_from_url(
        self,
        url: str,
        context: PluginContext,
        *,
        revalidate: float | None = None,
        fallback: str | None = None,
    ) -> typ.Any:
        cache_key = f"url:{url}"
        if self._cache.has(cache_key):
            logger.debug("Serving %s from cache", url)
            return self._cache.get(cache_key)

        try:
            data = await self.fetch_with_timeout(url, self.timeout)
        except DataFetchError as exc:
            self.add_error(context, f"Failed to fetch data from {url}: {exc}")
            if fallback:
                return await self._load_from_file(str(fallback), context)
            return None

        lifetime = self.revalidate if revalidate is None else revalidate
        self._cache.set(cache_key, data, ttl=lifetime * 1000)
        return data


def _coerce_seconds(value: object) -> float | None:
    """Return ``value`` as seconds, accepting numeric strings; ``None`` if invalid."""
    match value:
        case bool():
            return None
        case int() | float():
            return float(value)
        case str():
            try:
                return float(value.strip())
            except ValueError:
                return None
        case _:
            return None


def _revalidate_seconds(value: object) -> float:
    seconds = _coerce_seconds(value)
    if seconds is None:
        msg = f"'revalidate' must be a number of seconds, got {value!r}"
        raise ValueError(msg)
    return seconds


__all__ = ["DataLoaderPlugin", "is_url"]
