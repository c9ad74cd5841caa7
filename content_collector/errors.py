"""Exception types raised by the content collection pipeline.

The collector distinguishes unit-scoped failures (a section or page that
cannot be built) from run-fatal failures (plugin wiring, lifecycle hooks,
unreadable roots). Both are plain exceptions; the collector decides where
they are caught.
"""

from __future__ import annotations


class ContentCollectorError(RuntimeError):
    """Base class for failures raised by content_collector."""


class FrontMatterError(ContentCollectorError):
    """Raised when a section's YAML front matter cannot be parsed."""


class SectionProcessingError(ContentCollectorError):
    """Raised when a section file cannot be turned into a Section.

    Attributes
    ----------
    path : str | None
        Filesystem path of the section file that failed.
    """

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class SectionHierarchyError(ContentCollectorError):
    """Raised when section ids within a page do not form a valid tree."""


class PluginError(ContentCollectorError):
    """Raised when plugins are registered in an unusable configuration."""


class MissingDependencyError(PluginError):
    """Raised when a plugin depends on a plugin that is not registered."""

    def __init__(self, dependency: str, *, required_by: str | None = None) -> None:
        msg = f"Missing plugin dependency: {dependency}"
        if required_by:
            msg = f"{msg} (required by {required_by})"
        super().__init__(msg)
        self.dependency = dependency
        self.required_by = required_by


class CircularDependencyError(PluginError):
    """Raised when plugin dependencies form a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        super().__init__(f"Circular dependency between plugins: {' -> '.join(cycle)}")
        self.cycle = cycle


class DataFetchError(ContentCollectorError):
    """Raised when a remote data source cannot be fetched in time."""


class ImageMetadataError(ContentCollectorError, ValueError):
    """Raised when an image sidecar mapping fails validation."""


__all__ = [
    "CircularDependencyError",
    "ContentCollectorError",
    "DataFetchError",
    "FrontMatterError",
    "ImageMetadataError",
    "MissingDependencyError",
    "PluginError",
    "SectionHierarchyError",
    "SectionProcessingError",
]
