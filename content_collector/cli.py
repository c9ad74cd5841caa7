"""Cyclopts CLI entrypoint for collecting site content into JSON.

The ``content-collector`` console script walks a content directory (``site.yml``,
``theme.yml`` and a ``pages/`` tree of Markdown sections) and writes the
collected structure to ``site-content.json`` in the target directory. It is
typically run as a build step before the site renderer consumes the JSON.

Examples
--------
Collect the content of ``site/`` into ``dist/``:

>>> from content_collector.cli import app
>>> app.run(["collect", "site", "dist", "--pretty"])  # doctest: +SKIP
"""

from __future__ import annotations

import json
import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from ._constants import OUTPUT_FILENAME
from .collector import create_collector
from .config import CollectorConfig, load_collector_config

app = App(
    name="content-collector",
    config=cyclopts.config.Env("INPUT_", command=False),  # type: ignore[unknown-argument]
)


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command(help="Collect a content directory into site-content.json.")
def collect(
    source: typ.Annotated[Path, Parameter(help="Content root directory")],
    target: typ.Annotated[Path, Parameter(help="Directory receiving the JSON")],
    *,
    pretty: typ.Annotated[
        bool, Parameter(help="Indent the JSON output", env_var="INPUT_PRETTY")
    ] = False,
    config: typ.Annotated[
        Path | None,
        Parameter(help="Path to a collector options file", env_var="INPUT_CONFIG"),
    ] = None,
    require_numeric_prefix: typ.Annotated[
        bool,
        Parameter(
            help="Skip section files without a numeric prefix",
            env_var="INPUT_REQUIRE_NUMERIC_PREFIX",
        ),
    ] = False,
    environment: typ.Annotated[
        str | None,
        Parameter(
            help="Runtime environment (development, production)",
            env_var="INPUT_ENVIRONMENT",
        ),
    ] = None,
    verbose: typ.Annotated[bool, Parameter(help="Enable debug logging")] = False,
) -> None:
    """Collect ``source`` and write ``site-content.json`` under ``target``.

    Parameters
    ----------
    source : Path
        Content root containing ``site.yml``, ``theme.yml`` and ``pages/``.
    target : Path
        Output directory; created when missing.
    pretty : bool, optional
        Indent the JSON with two spaces.
    config : Path or None, optional
        YAML options file; command-line flags override its values.
    require_numeric_prefix : bool, optional
        Only collect section files whose names start with an ordering prefix.
    environment : str or None, optional
        Environment name; ``production`` omits the error log from the output.
    verbose : bool, optional
        Log at ``DEBUG`` level instead of ``WARNING``.

    Returns
    -------
    None
        Writes the JSON file and prints its path.
    """
    _configure_logging(verbose=verbose)
    options = load_collector_config(config) if config else CollectorConfig()
    if require_numeric_prefix:
        options.require_numeric_prefix = True
    if environment:
        options.environment = environment

    site = create_collector(options).collect_sync(source)

    target.mkdir(parents=True, exist_ok=True)
    output_path = target / OUTPUT_FILENAME
    payload = json.dumps(
        site.to_dict(), indent=2 if pretty else None, ensure_ascii=False, default=str
    )
    output_path.write_text(payload + "\n", encoding="utf-8")
    print(f"wrote {_format_path(output_path)}")


def main() -> None:
    """Invoke the Cyclopts application."""
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation
    main()
