"""Processor plugin enriching image nodes with sidecar metadata.

For an image ``images/sunset.jpg`` the plugin looks for
``images/sunset.jpg.yml`` next to it. A sidecar such as::

    alt: A beautiful sunset
    caption: Sunset over the mountains
    dimensions:
      width: 1920
      height: 1080
    credit: Photo by Jane Doe

fills in the image's ``alt`` and ``title`` attributes when the Markdown did
not set them and is attached whole under ``attrs["metadata"]``. SVG images
also get their markup inlined under ``attrs["svg"]``.

Root-relative sources (``/images/logo.svg``) resolve under the public
directory of the content root; relative sources resolve against the section
file that references them.
"""

from __future__ import annotations

import asyncio
import logging
import typing as typ
from pathlib import Path
from urllib.parse import urlsplit

from ruamel.yaml.error import YAMLError

from ..errors import ImageMetadataError
from ..yaml_io import load_yaml_file
from .base import ProcessorPlugin

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from ..context import PluginContext
    from ..document_tree import DocumentNode

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS: dict[str, typ.Any] = {
    "sidecar_ext": ".yml",
    "public_dir": "public",
    "validate": False,
    "inline_svg": True,
}
IMAGE_FORMATS = ("webp", "jpeg", "png")


def iter_image_nodes(node: DocumentNode) -> cabc.Iterator[DocumentNode]:
    """Yield every ``image`` node in the tree rooted at ``node``, pre-order."""
    if node.get("type") == "image":
        yield node
    children = node.get("content")
    if isinstance(children, list):
        for child in children:
            if isinstance(child, dict):
                yield from iter_image_nodes(child)


class ImageMetadataPlugin(ProcessorPlugin):
    """Backfill image attributes from YAML sidecar files.

    Options
    -------
    sidecar_ext : str
        Suffix appended to the image path to find its metadata (``.yml``).
    public_dir : str
        Directory under the content root serving root-relative images.
    validate : bool
        Reject sidecars failing :meth:`validate_metadata` (default ``False``).
    inline_svg : bool
        Inline SVG markup under ``attrs["svg"]`` (default ``True``).
    """

    def __init__(self, options: typ.Mapping[str, typ.Any] | None = None) -> None:
        super().__init__({**DEFAULT_OPTIONS, **dict(options or {})})

    async def process_content(
        self, document: DocumentNode, context: PluginContext
    ) -> DocumentNode:
        if not isinstance(document, dict) or document.get("type") != "doc":
            return document
        for node in iter_image_nodes(document):
            await self._enrich_image(node, context)
        return document

    async def _enrich_image(self, node: DocumentNode, context: PluginContext) -> None:
        attrs = node.get("attrs")
        if not isinstance(attrs, dict):
            return
        src = attrs.get("src")
        if not isinstance(src, str) or not src or urlsplit(src).scheme:
            return

        try:
            image_path = self._resolve_image_path(src, context)
            suffix = self.options["sidecar_ext"]
            sidecar = image_path.with_name(image_path.name + suffix)
            metadata = await asyncio.to_thread(load_yaml_file, sidecar)
            if isinstance(metadata, dict):
                self._apply_metadata(attrs, metadata, src, context)
            if self.options["inline_svg"] and image_path.suffix.lower() == ".svg":
                await self._inline_svg(attrs, image_path, src, context)
        except (OSError, YAMLError, ValueError) as exc:
            message = f"Failed to process image metadata for {src}: {exc}"
            self.add_error(context, message)

        for key in [key for key, value in attrs.items() if value is None]:
            del attrs[key]

    def _apply_metadata(
        self,
        attrs: dict[str, typ.Any],
        metadata: dict[str, typ.Any],
        src: str,
        context: PluginContext,
    ) -> None:
        if self.options["validate"]:
            try:
                self.validate_metadata(metadata)
            except ImageMetadataError as exc:
                self.add_error(context, f"Invalid image metadata for {src}: {exc}")
                return

        title = metadata.get("title") or metadata.get("caption")
        alt = metadata.get("alt")
        if title and not attrs.get("title"):
            attrs["title"] = title
        if alt and not attrs.get("alt"):
            attrs["alt"] = alt
        attrs["metadata"] = metadata

    async def _inline_svg(
        self,
        attrs: dict[str, typ.Any],
        image_path: Path,
        src: str,
        context: PluginContext,
    ) -> None:
        try:
            attrs["svg"] = await asyncio.to_thread(
                image_path.read_text, encoding="utf-8"
            )
        except OSError as exc:
            self.add_error(context, f"Failed to read SVG content for {src}: {exc}")

    def _resolve_image_path(self, src: str, context: PluginContext) -> Path:
        """Return the filesystem location of the image referenced by ``src``."""
        relative = urlsplit(src).path
        root = Path(context.resource_path) if context.resource_path else Path()
        if relative.startswith("/"):
            return (root / self.options["public_dir"] / relative.lstrip("/")).resolve()
        current = context.current_section or context.current_file
        base = Path(current).parent if current else root
        return (base / relative).resolve()

    @staticmethod
    def validate_metadata(metadata: typ.Mapping[str, typ.Any]) -> bool:
        """Check the typed fields of an image sidecar mapping.

        Raises
        ------
        ImageMetadataError
            If ``dimensions`` are not numeric, ``optimization.quality`` is not
            a number between 0 and 100, or ``optimization.format`` is not one
            of ``webp``, ``jpeg`` or ``png``.
        """
        dimensions = metadata.get("dimensions") or {}
        if not isinstance(dimensions, dict):
            msg = "Dimensions must be a mapping"
            raise ImageMetadataError(msg)
        for field in ("width", "height"):
            value = dimensions.get(field)
            if value is not None and not _is_number(value):
                msg = f"{field.capitalize()} must be a number"
                raise ImageMetadataError(msg)

        optimization = metadata.get("optimization") or {}
        if not isinstance(optimization, dict):
            msg = "Optimization must be a mapping"
            raise ImageMetadataError(msg)
        quality = optimization.get("quality")
        valid_quality = _is_number(quality) and 0 <= quality <= 100
        if quality is not None and not valid_quality:
            msg = "Quality must be a number between 0 and 100"
            raise ImageMetadataError(msg)
        image_format = optimization.get("format")
        if image_format is not None and image_format not in IMAGE_FORMATS:
            msg = "Invalid format specified"
            raise ImageMetadataError(msg)
        return True


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


__all__ = ["ImageMetadataPlugin", "iter_image_nodes"]
