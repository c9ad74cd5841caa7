"""Walk a content directory and assemble the site content tree.

The collector reads ``site.yml`` and ``theme.yml`` from the content root,
builds one :class:`~content_collector.models.Page` per directory under
``pages/`` and one :class:`~content_collector.models.Section` per Markdown
file inside it, and runs the registered plugins over every section. Pages,
sections and subpages are built concurrently on the running event loop;
blocking file reads happen in worker threads.

Failures are contained at the smallest enclosing unit: a broken section
fails its page, a broken page or subpage is dropped and logged in the error
list, and only failures outside any page (plugin wiring, lifecycle hooks,
unreadable root or site metadata) abort the run.

Example
-------
>>> from content_collector import create_collector
>>> collector = create_collector({"requireNumericPrefix": True})
>>> site = collector.collect_sync("site")  # doctest: +SKIP
>>> [page.route for page in site.pages]  # doctest: +SKIP
['/', '/about']
"""

from __future__ import annotations

import asyncio
import logging
import typing as typ
from pathlib import Path

from . import _constants as const
from .config import CollectorConfig, build_collector_config, resolve_environment
from .context import PluginContext
from .document_tree import markdown_to_document_tree
from .errors import SectionHierarchyError, SectionProcessingError
from .front_matter import split_front_matter
from .models import Page, Section, SiteContent, sort_sections
from .ordering import filename_sort_key, parse_ordering_prefix
from .plugins import DataLoaderPlugin, ImageMetadataPlugin, PluginRegistry
from .plugins.base import LOADER_HOOK, PROCESSOR_HOOK, call_hook, has_hook
from .yaml_io import read_yaml_file

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import os

    from .document_tree import DocumentNode

logger = logging.getLogger(__name__)

MarkdownParser = typ.Callable[[str], "DocumentNode"]
T = typ.TypeVar("T")


class ContentCollector:
    """Collect a content directory into a :class:`SiteContent` tree."""

    def __init__(
        self,
        config: CollectorConfig | typ.Mapping[str, typ.Any] | None = None,
        *,
        parser: MarkdownParser = markdown_to_document_tree,
    ) -> None:
        """Initialize the collector.

        Parameters
        ----------
        config : CollectorConfig | Mapping, optional
            Collector options; mappings are validated with
            :func:`~content_collector.config.build_collector_config`.
        parser : Callable[[str], DocumentNode], optional
            Markdown parser producing document trees. Defaults to
            :func:`~content_collector.document_tree.markdown_to_document_tree`.
        """
        self._config = build_collector_config(config)
        self._parser = parser
        self._plugins = PluginRegistry()

    @property
    def config(self) -> CollectorConfig:
        return self._config

    def use(
        self, plugin: typ.Any, dependencies: typ.Iterable[str] = ()
    ) -> ContentCollector:
        """Register ``plugin`` to run after the plugins named in ``dependencies``."""
        self._plugins.register(plugin, dependencies)
        return self

    async def collect(self, root_path: str | os.PathLike[str]) -> SiteContent:
        """Collect the content tree rooted at ``root_path``.

        Returns
        -------
        SiteContent
            Pages, site config and theme. ``errors`` is attached unless the
            environment is ``production``.

        Raises
        ------
        Exception
            Any failure outside the per-page boundary (a lifecycle hook, a
            missing or circular plugin dependency, an unreadable root or
            ``site.yml``). The failure is recorded in the run's error log
            before it propagates.
        """
        root = Path(root_path)
        context = PluginContext(
            config=self._config,
            environment=resolve_environment(self._config.environment),
            resource_path=root,
        )
        try:
            plugins = self._plugins.get_ordered_plugins()
            run = _CollectionRun(context, plugins, self._parser, self._config)
            await run.run_hooks("before_collect")
            output = await run.collect_root(root)
            await run.run_hooks("after_collect")
        except Exception as exc:
            context.record_error("phase", "collection", exc)
            logger.error("Content collection failed for %s: %s", root, exc)
            raise

        if not context.is_production:
            output.errors = context.errors
        return output

    def collect_sync(self, root_path: str | os.PathLike[str]) -> SiteContent:
        """Run :meth:`collect` to completion on a fresh event loop."""
        return asyncio.run(self.collect(root_path))


def create_collector(
    options: CollectorConfig | typ.Mapping[str, typ.Any] | None = None,
    *,
    parser: MarkdownParser = markdown_to_document_tree,
) -> ContentCollector:
    """Build a collector with the built-in plugins wired in.

    Parameters
    ----------
    options : CollectorConfig | Mapping, optional
        Recognizes ``require_numeric_prefix``, ``environment``,
        ``data_loader`` (options mapping or ``False``), ``image_meta``
        (options mapping or ``False``) and ``plugins`` (instances or
        ``(plugin, dependencies)`` pairs). camelCase spellings are accepted.
    parser : Callable[[str], DocumentNode], optional
        Markdown parser used for section bodies.

    Returns
    -------
    ContentCollector
        Collector with the data loader and image metadata plugins registered
        unless disabled, followed by any extra plugins.
    """
    config = build_collector_config(options)
    collector = ContentCollector(config, parser=parser)
    if config.data_loader is not False:
        collector.use(DataLoaderPlugin(config.data_loader))
    if config.image_meta is not False:
        collector.use(ImageMetadataPlugin(config.image_meta))
    for entry in config.plugins:
        if isinstance(entry, tuple):
            plugin, dependencies = entry
            collector.use(plugin, dependencies)
        else:
            collector.use(entry)
    return collector


def build_hierarchy(
    sections: list[Section], *, keep_order: bool = False
) -> list[Section]:
    """Nest ``sections`` under their parents by dotted id.

    Ids without a dot are top level; ``"2.1"`` becomes a subsection of
    ``"2"``. Every list in the result is sorted by id unless ``keep_order``
    is set, in which case siblings stay in the order they were given.

    Raises
    ------
    SectionHierarchyError
        If two sections share an id or a dotted id has no parent section.
    """
    by_id: dict[str, Section] = {}
    for section in sections:
        if section.id in by_id:
            msg = f"Duplicate section id {section.id}"
            raise SectionHierarchyError(msg)
        by_id[section.id] = section

    top_level: list[Section] = []
    for section in sections:
        if "." not in section.id:
            top_level.append(section)
            continue
        parent_id = section.id.rsplit(".", 1)[0]
        parent = by_id.get(parent_id)
        if parent is None:
            msg = f"Parent section {parent_id} not found for {section.id}"
            raise SectionHierarchyError(msg)
        parent.subsections.append(section)

    if not keep_order:
        sort_sections(top_level)
        for section in sections:
            sort_sections(section.subsections)
    return top_level


class _CollectionRun:
    """State and builders for a single ``collect()`` invocation."""

    def __init__(
        self,
        context: PluginContext,
        plugins: list[typ.Any],
        parser: MarkdownParser,
        config: CollectorConfig,
    ) -> None:
        self.context = context
        self.plugins = plugins
        self.parser = parser
        self.config = config

    async def run_hooks(self, hook_name: str) -> None:
        for plugin in self.plugins:
            if has_hook(plugin, hook_name):
                await call_hook(plugin, hook_name, self.context)

    async def collect_root(self, root: Path) -> SiteContent:
        if not await asyncio.to_thread(root.is_dir):
            msg = f"Content root '{root}' is not a readable directory."
            raise FileNotFoundError(msg)

        site_config, theme = await _join(
            [
                asyncio.to_thread(read_yaml_file, root / const.SITE_CONFIG_FILE),
                asyncio.to_thread(read_yaml_file, root / const.THEME_CONFIG_FILE),
            ]
        )
        pages_dir = root / const.PAGES_DIR
        _, directories = await asyncio.to_thread(_scan_directory, pages_dir)
        results = await asyncio.gather(
            *(self._collect_top_level_page(pages_dir, name) for name in directories)
        )

        output = SiteContent(pages=[], config=site_config, theme=theme)
        for name, page in zip(directories, results, strict=True):
            if page is None:
                continue
            region = _special_region(name)
            if region:
                output.regions[region] = page
            else:
                output.pages.append(page)
        output.pages.sort(key=lambda page: page.route != "/")
        logger.info(
            "Collected %d page(s) from %s with %d error(s)",
            len(output.pages),
            root,
            len(self.context.errors),
        )
        return output

    async def _collect_top_level_page(self, pages_dir: Path, name: str) -> Page | None:
        try:
            return await self.build_page(pages_dir / name, (name,))
        except Exception as exc:
            self.context.record_error("page", name, exc)
            logger.warning("Skipping page %s: %s", name, exc)
            return None

    async def build_page(self, page_path: Path, parts: tuple[str, ...]) -> Page | None:
        """Build the page stored in ``page_path``; ``None`` when it is hidden.

        A non-empty ``sections`` list in ``page.yml`` names the section files
        to use, in order, instead of the sorted directory listing.
        """
        metadata, (files, directories) = await _join(
            [
                asyncio.to_thread(read_yaml_file, page_path / const.PAGE_CONFIG_FILE),
                asyncio.to_thread(_scan_directory, page_path),
            ]
        )
        if metadata.pop("hidden", False):
            logger.debug("Page %s is hidden", page_path)
            return None

        listed = _listed_sections(metadata.pop("sections", None))
        markdown_files = listed or [name for name in files if _is_section_file(name)]
        built = await _join(
            [self.build_section(page_path / name) for name in markdown_files]
        )
        sections = build_hierarchy(
            [section for section in built if section], keep_order=bool(listed)
        )
        subpages = await self._build_subpages(page_path, parts, directories)
        route = _route_for(parts)
        logger.debug("Built page %s with %d section(s)", route, len(sections))
        return Page(
            route=route, sections=sections, metadata=metadata, subpages=subpages
        )

    async def _build_subpages(
        self, page_path: Path, parts: tuple[str, ...], directories: list[str]
    ) -> list[Page]:
        async def build(name: str) -> Page | None:
            try:
                return await self.build_page(page_path / name, (*parts, name))
            except Exception as exc:
                self.context.record_error(
                    "page", name, exc, message=f"Failed to process subpage: {exc}"
                )
                logger.warning("Skipping subpage %s of %s: %s", name, page_path, exc)
                return None

        results = await asyncio.gather(*(build(name) for name in directories))
        return [page for page in results if page is not None]

    async def build_section(self, file_path: Path) -> Section | None:
        """Build the section stored in ``file_path``.

        Returns ``None`` when numeric prefixes are required and the filename
        has none.

        Raises
        ------
        SectionProcessingError
            Wrapping any failure while reading, parsing, processing or
            loading data for the section.
        """
        parsed = parse_ordering_prefix(file_path.stem)
        if self.config.require_numeric_prefix and parsed.prefix is None:
            logger.debug("Skipping %s: no numeric prefix", file_path.name)
            return None

        try:
            text = await asyncio.to_thread(file_path.read_text, encoding="utf-8")
            front_matter = split_front_matter(text)
            section_context = self.context.for_section(file_path)
            document = await self._process_content(
                self.parser(front_matter.body), section_context
            )
            props = dict(front_matter.props)
            if front_matter.input:
                data = await self._load_input(front_matter.input, section_context)
                if data is not None:
                    props["input"] = data
        except Exception as exc:
            msg = f"Failed to process section {file_path.name}: {exc}"
            raise SectionProcessingError(msg, path=str(file_path)) from exc

        return Section(
            id=parsed.prefix or parsed.name,
            title=parsed.name,
            component=front_matter.component,
            config=front_matter.config,
            props=props,
            content=document,
        )

    async def _process_content(
        self, document: DocumentNode, context: PluginContext
    ) -> DocumentNode:
        for plugin in self.plugins:
            if has_hook(plugin, PROCESSOR_HOOK):
                document = await call_hook(plugin, PROCESSOR_HOOK, document, context)
        return document

    async def _load_input(self, source: typ.Any, context: PluginContext) -> typ.Any:
        for plugin in self.plugins:
            if not has_hook(plugin, LOADER_HOOK):
                continue
            data = await call_hook(plugin, LOADER_HOOK, source, context)
            if data is not None:
                return data
        return None


async def _join(awaitables: cabc.Iterable[cabc.Awaitable[T]]) -> list[T]:
    """Await every awaitable, then re-raise the first failure, if any."""
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return typ.cast("list[T]", results)


def _scan_directory(path: Path) -> tuple[list[str], list[str]]:
    """Return sorted file and directory names in ``path`` (empty if missing)."""
    try:
        entries = list(path.iterdir())
    except FileNotFoundError:
        return [], []
    files: list[str] = []
    directories: list[str] = []
    for entry in entries:
        if entry.is_dir():
            if not entry.name.startswith("."):
                directories.append(entry.name)
        elif entry.is_file():
            files.append(entry.name)
    files.sort(key=filename_sort_key)
    directories.sort(key=filename_sort_key)
    return files, directories


def _is_section_file(name: str) -> bool:
    return name.lower().endswith(const.MARKDOWN_SUFFIX) and not name.startswith("_")


def _listed_sections(value: object) -> list[str]:
    """Return the section filenames named by a ``page.yml`` ``sections`` list."""
    if not isinstance(value, list):
        return []
    return [str(name).strip() for name in value if str(name).strip()]


def _route_for(parts: tuple[str, ...]) -> str:
    if parts == (const.HOME_PAGE_DIR,):
        return "/"
    return "/" + "/".join(parts)


def _special_region(name: str) -> str | None:
    region = name.removeprefix(const.SPECIAL_PAGE_PREFIX)
    if name.startswith(const.SPECIAL_PAGE_PREFIX) and region in const.SPECIAL_PAGES:
        return region
    return None


__all__ = ["ContentCollector", "build_hierarchy", "create_collector"]
