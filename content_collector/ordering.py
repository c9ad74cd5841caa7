r"""Parse numeric ordering prefixes and order section filenames.

Section files are named ``<prefix>-<title>.md`` where the prefix is a
dot-separated run of integers (``1``, ``2.1``, ``10.3.2``). The prefix decides
both the processing order of the files in a page directory and where the
section sits in the page hierarchy.

Example
-------
>>> from content_collector.ordering import (
...     compare_filenames,
...     filename_sort_key,
...     parse_ordering_prefix,
... )
>>> parse_ordering_prefix("2.1-Features.md")
OrderingPrefix(prefix='2.1', name='Features.md')
>>> sorted(["10-x.md", "2-x.md", "about.md"], key=filename_sort_key)
['2-x.md', '10-x.md', 'about.md']
>>> compare_filenames("10-x", "2-x")
1
"""

from __future__ import annotations

import dataclasses as dc
import re

PREFIX_PATTERN = re.compile(r"^(\d+(?:\.\d+)*)-(.+)$", re.DOTALL)
NUMERIC_ID_PATTERN = re.compile(r"^\d+(?:\.\d+)*$")


@dc.dataclass(frozen=True, slots=True)
class OrderingPrefix:
    """Result of splitting a filename into its ordering prefix and remainder.

    Attributes
    ----------
    prefix : str | None
        Dot-separated numeric prefix, or ``None`` when the name has none.
    name : str
        Remainder after the ``<prefix>-`` separator, or the whole input when
        no prefix matched.
    """

    prefix: str | None
    name: str


def parse_ordering_prefix(name: str) -> OrderingPrefix:
    """Split ``name`` of the form ``<digits[.digits...]>-<rest>``."""
    match = PREFIX_PATTERN.match(name)
    if not match:
        return OrderingPrefix(prefix=None, name=name)
    return OrderingPrefix(prefix=match.group(1), name=match.group(2))


def _numeric_segments(prefix: str) -> tuple[int, ...]:
    return tuple(int(segment) for segment in prefix.split("."))


def _order_key(prefix: str | None, name: str) -> tuple[int, tuple[int, ...], str]:
    if prefix is not None:
        return (0, _numeric_segments(prefix), "")
    return (1, (), name.casefold())


def filename_sort_key(name: str) -> tuple[int, tuple[int, ...], str]:
    """Return a ``sorted()`` key implementing :func:`compare_filenames`."""
    parsed = parse_ordering_prefix(name)
    return _order_key(parsed.prefix, parsed.name)


def section_id_sort_key(section_id: str) -> tuple[int, tuple[int, ...], str]:
    """Return a sort key for section ids (bare prefixes or unprefixed titles).

    Numeric ids such as ``"2"`` or ``"2.10"`` compare segment by segment and
    always sort before textual ids, which compare case-insensitively.
    """
    if NUMERIC_ID_PATTERN.match(section_id):
        return _order_key(section_id, section_id)
    return _order_key(None, section_id)


def compare_filenames(a: str, b: str) -> int:
    """Compare two filenames by ordering prefix.

    Parameters
    ----------
    a, b : str
        Filenames (with or without extension).

    Returns
    -------
    int
        ``-1`` when ``a`` sorts first, ``1`` when ``b`` sorts first, ``0``
        when they are equivalent. Prefixed names compare numerically segment
        by segment and sort before unprefixed names; two unprefixed names
        compare case-insensitively.
    """
    key_a = filename_sort_key(a)
    key_b = filename_sort_key(b)
    if key_a < key_b:
        return -1
    if key_a > key_b:
        return 1
    return 0


__all__ = [
    "OrderingPrefix",
    "compare_filenames",
    "filename_sort_key",
    "parse_ordering_prefix",
    "section_id_sort_key",
]
