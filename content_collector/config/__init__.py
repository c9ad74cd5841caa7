"""Load and validate collector options.

Options come from keyword mappings passed to
:func:`~content_collector.collector.create_collector` or from a YAML file read
by :func:`load_collector_config`; both paths end in a validated
:class:`CollectorConfig`.

Examples
--------
>>> from content_collector.config import build_collector_config
>>> config = build_collector_config({"requireNumericPrefix": True, "imageMeta": False})
>>> config.require_numeric_prefix, config.image_meta
(True, False)
"""

from .loader import (
    build_collector_config,
    load_collector_config,
    resolve_environment,
)
from .models import CollectorConfig, CollectorConfigError

__all__ = [
    "CollectorConfig",
    "CollectorConfigError",
    "build_collector_config",
    "load_collector_config",
    "resolve_environment",
]
