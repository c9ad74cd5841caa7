"""Plugin contracts, registry and built-in plugins for the content collector."""

from .base import (
    ContentPlugin,
    LoaderPlugin,
    ProcessorPlugin,
    TransformerPlugin,
    call_hook,
    has_hook,
)
from .data_loader import DataLoaderPlugin
from .image_meta import ImageMetadataPlugin
from .registry import PluginRegistry

__all__ = [
    "ContentPlugin",
    "DataLoaderPlugin",
    "ImageMetadataPlugin",
    "LoaderPlugin",
    "PluginRegistry",
    "ProcessorPlugin",
    "TransformerPlugin",
    "call_hook",
    "has_hook",
]
