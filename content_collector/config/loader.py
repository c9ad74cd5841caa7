"""Load collector options from YAML files and plain mappings."""

from __future__ import annotations

import os
import typing as typ

from .._constants import DEVELOPMENT, ENVIRONMENT_VAR
from ..yaml_io import load_yaml_file
from .models import CollectorConfig, CollectorConfigError

if typ.TYPE_CHECKING:
    from pathlib import Path

_OPTION_ALIASES = {
    "requireNumericPrefix": "require_numeric_prefix",
    "dataLoader": "data_loader",
    "imageMeta": "image_meta",
}
_KNOWN_OPTIONS = {
    "require_numeric_prefix",
    "environment",
    "data_loader",
    "image_meta",
    "plugins",
}


def resolve_environment(explicit: str | None = None) -> str:
    """Return ``explicit``, else ``$CONTENT_COLLECTOR_ENV``, else development."""
    value = explicit or os.getenv(ENVIRONMENT_VAR) or DEVELOPMENT
    return value.strip().lower()


def load_collector_config(path: Path) -> CollectorConfig:
    """Load collector options from the YAML file at ``path``.

    Parameters
    ----------
    path : Path
        Filesystem path to the options file, for example ``collector.yml``.

    Returns
    -------
    CollectorConfig
        Parsed options with defaults applied.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    CollectorConfigError
        If a known option has the wrong type.

    Examples
    --------
    >>> from pathlib import Path
    >>> config = load_collector_config(Path("collector.yml"))  # doctest: +SKIP
    >>> config.require_numeric_prefix  # doctest: +SKIP
    True
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)
    loaded = load_yaml_file(path) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    if "plugins" in loaded:
        msg = "Plugins cannot be declared in a YAML options file."
        raise CollectorConfigError(msg)
    return build_collector_config(loaded)


def build_collector_config(
    options: typ.Mapping[str, typ.Any] | CollectorConfig | None,
) -> CollectorConfig:
    """Coerce ``options`` into a validated :class:`CollectorConfig`.

    Both snake_case and camelCase option names are accepted
    (``require_numeric_prefix`` / ``requireNumericPrefix``).
    """
    if isinstance(options, CollectorConfig):
        return options
    raw = {
        _OPTION_ALIASES.get(key, key): value for key, value in (options or {}).items()
    }
    unknown = sorted(set(raw) - _KNOWN_OPTIONS)
    if unknown:
        msg = f"Unknown collector option(s): {', '.join(unknown)}"
        raise CollectorConfigError(msg)

    require_prefix = raw.get("require_numeric_prefix", False)
    if not isinstance(require_prefix, bool):
        msg = "'require_numeric_prefix' must be a boolean."
        raise CollectorConfigError(msg)

    environment = raw.get("environment")
    if environment is not None and not isinstance(environment, str):
        msg = "'environment' must be a string."
        raise CollectorConfigError(msg)

    plugins = raw.get("plugins") or []
    if not isinstance(plugins, list | tuple):
        msg = "'plugins' must be a list."
        raise CollectorConfigError(msg)

    return CollectorConfig(
        require_numeric_prefix=require_prefix,
        environment=environment,
        data_loader=_plugin_options("data_loader", raw.get("data_loader")),
        image_meta=_plugin_options("image_meta", raw.get("image_meta")),
        plugins=list(plugins),
    )


def _plugin_options(
    key: str, value: object
) -> dict[str, typ.Any] | typ.Literal[False]:
    """Normalize a built-in plugin setting to an options dict or ``False``."""
    match value:
        case None | True:
            return {}
        case False:
            return False
        case dict():
            return dict(value)
        case _:
            msg = f"'{key}' must be a mapping of options or false."
            raise CollectorConfigError(msg)


__all__ = ["build_collector_config", "load_collector_config", "resolve_environment"]
