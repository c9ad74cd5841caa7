"""Base contracts for content collector plugins.

A plugin is any object exposing one or more hook methods. The collector
checks for hook presence rather than type identity, so a single plugin may
act as a processor and a loader at the same time. The classes below give
each role a default implementation and share the error-reporting helper.

Roles
-----
- lifecycle: ``before_collect(context)`` / ``after_collect(context)``
- processor: ``process_content(document, context) -> document``
- loader: ``load_data(source, context) -> data | None``
- transformer: ``transform(output, context) -> output``

Hooks may be plain functions or coroutines; :func:`call_hook` awaits
whatever the hook returns when it is awaitable.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
import typing as typ

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .._constants import DEFAULT_FETCH_TIMEOUT_MS
from ..errors import DataFetchError

if typ.TYPE_CHECKING:
    from ..context import PluginContext
    from ..document_tree import DocumentNode

logger = logging.getLogger(__name__)

LIFECYCLE_HOOKS = ("before_collect", "after_collect")
PROCESSOR_HOOK = "process_content"
LOADER_HOOK = "load_data"
TRANSFORMER_HOOK = "transform"


def has_hook(plugin: object, hook_name: str) -> bool:
    """Return whether ``plugin`` exposes a callable named ``hook_name``."""
    return callable(getattr(plugin, hook_name, None))


async def call_hook(plugin: object, hook_name: str, *args: typ.Any) -> typ.Any:
    """Invoke ``plugin.<hook_name>(*args)`` and await the result if needed."""
    result = getattr(plugin, hook_name)(*args)
    if inspect.isawaitable(result):
        return await result
    return result


class ContentPlugin:
    """Common base for plugins: options, lifecycle hooks and error reporting."""

    def __init__(self, options: typ.Mapping[str, typ.Any] | None = None) -> None:
        self.options: dict[str, typ.Any] = dict(options or {})

    @property
    def name(self) -> str:
        """Registry key of the plugin: its concrete class name."""
        return type(self).__name__

    async def before_collect(self, context: PluginContext) -> None:
        """Run once before any page is collected."""

    async def after_collect(self, context: PluginContext) -> None:
        """Run once after every page has been collected."""

    def add_error(self, context: PluginContext, error: BaseException | str) -> None:
        """Record ``error`` against this plugin in ``context.errors``.

        Never raises; a failure while recording is logged and dropped.
        """
        try:
            context.record_error("plugin", self.name, error)
        except Exception:  # pragma: no cover - never let reporting escape
            logger.exception("%s could not record an error", self.name)
            return
        logger.warning("%s: %s", self.name, error)


class ProcessorPlugin(ContentPlugin):
    """Plugin that transforms each section's document tree."""

    async def process_content(
        self, document: DocumentNode, context: PluginContext
    ) -> DocumentNode:
        return document


class LoaderPlugin(ContentPlugin):
    """Plugin that resolves a front-matter ``input`` reference into data."""

    async def load_data(self, source: typ.Any, context: PluginContext) -> typ.Any:
        """Return loaded data for ``source`` or ``None`` to decline."""
        return None

    async def fetch_with_timeout(
        self, url: str, timeout: float = DEFAULT_FETCH_TIMEOUT_MS
    ) -> typ.Any:
        """Fetch ``url`` and decode its JSON body within ``timeout`` milliseconds.

        The blocking request runs in a worker thread. When the deadline passes
        the response socket is shut down so a body that is still trickling in
        stops being read and the worker thread returns promptly.

        Raises
        ------
        DataFetchError
            If the request fails, returns an error status, is not JSON, or does
            not complete in time.
        """
        seconds = timeout / 1000
        request = _InflightRequest(url)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._fetch_json, url, seconds, request),
                timeout=seconds,
            )
        except TimeoutError as exc:
            request.abort()
            msg = f"Request to {url} aborted after {timeout:g} ms"
            raise DataFetchError(msg) from exc

    def _fetch_json(
        self, url: str, timeout: float, request: _InflightRequest | None = None
    ) -> typ.Any:
        session = self._build_session()
        try:
            response = session.get(url, timeout=timeout, stream=True)
            if request is not None:
                request.attach(response)
            response.raise_for_status()
            return response.json()
        except requests.JSONDecodeError as exc:
            msg = f"Response from {url} was not valid JSON"
            raise DataFetchError(msg) from exc
        except requests.RequestException as exc:
            msg = f"HTTP request to {url} failed: {exc}"
            raise DataFetchError(msg) from exc
        finally:
            session.close()

    def _build_session(self) -> requests.Session:
        session = requests.Session()
        retry = Retry(
            total=int(self.options.get("retries", 2)),
            connect=2,
            read=1,
            backoff_factor=0.2,
            status_forcelist=(500, 502, 503, 504),
            allowed_methods=("GET", "HEAD"),
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session


class _InflightRequest:
    """Response handle shared between a fetch thread and the event loop."""

    def __init__(self, url: str) -> None:
        self.url = url
        self._lock = threading.Lock()
        self._response: requests.Response | None = None
        self._aborted = False

    def attach(self, response: requests.Response) -> None:
        """Remember ``response``; raise if the caller already gave up."""
        with self._lock:
            self._response = response
            aborted = self._aborted
        if aborted:
            response.close()
            msg = f"Request to {self.url} was aborted"
            raise DataFetchError(msg)

    def abort(self) -> None:
        """Stop any ongoing body read by shutting the response socket down."""
        with self._lock:
            self._aborted = True
            response = self._response
        if response is None:
            return
        try:
            response.raw.shutdown()
        except (OSError, ValueError) as exc:
            logger.debug("Could not shut down response from %s: %s", self.url, exc)


class TransformerPlugin(ContentPlugin):
    """Plugin that post-processes the assembled output."""

    async def transform(self, output: typ.Any, context: PluginContext) -> typ.Any:
        return output


__all__ = [
    "LIFECYCLE_HOOKS",
    "LOADER_HOOK",
    "PROCESSOR_HOOK",
    "TRANSFORMER_HOOK",
    "ContentPlugin",
    "LoaderPlugin",
    "ProcessorPlugin",
    "TransformerPlugin",
    "call_hook",
    "has_hook",
]
