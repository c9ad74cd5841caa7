r"""Convert Markdown into a ProseMirror-style document tree.

The collector only needs a pure function from Markdown text to a nested
``dict`` tree; :func:`markdown_to_document_tree` provides one on top of
Python-Markdown. A tree processor registered through an extension captures
the final ElementTree after inline processing, and :class:`_TreeBuilder`
walks it into ``{"type": ..., "content": [...], "attrs": {...}}`` nodes.

Example
-------
>>> from content_collector.document_tree import markdown_to_document_tree
>>> tree = markdown_to_document_tree("# Title\n\n![Logo](logo.svg)")
>>> [node["type"] for node in tree["content"]]
['heading', 'paragraph']
>>> tree["content"][1]["content"][0]
{'type': 'image', 'attrs': {'src': 'logo.svg', 'alt': 'Logo'}}
"""

from __future__ import annotations

import re
import typing as typ
from html import unescape

from markdown import Markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from markdown.util import HTML_PLACEHOLDER_RE

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

DocumentNode = dict[str, typ.Any]

MARKDOWN_EXTENSIONS = ("fenced_code", "tables", "sane_lists")
HEADING_TAGS = {f"h{level}": level for level in range(1, 7)}
SIMPLE_MARKS = {
    "strong": "bold",
    "b": "bold",
    "em": "italic",
    "i": "italic",
    "code": "code",
    "del": "strike",
    "s": "strike",
}
LIST_TAGS = {"ul": "bulletList", "ol": "orderedList"}
STASHED_CODE_PATTERN = re.compile(
    r"^\s*<pre[^>]*><code(?P<attrs>[^>]*)>(?P<code>.*?)</code></pre>\s*$", re.DOTALL
)
LANGUAGE_CLASS_PATTERN = re.compile(r'class="(?:language-)?([^"\s]+)')
ENTITY_PATTERN = re.compile(r"^&#?\w+;$")


class _CaptureTreeprocessor(Treeprocessor):
    """Keep a reference to the fully processed tree for later conversion."""

    def __init__(self, md: Markdown) -> None:
        super().__init__(md)
        self.root: Element | None = None

    def run(self, root: Element) -> None:
        self.root = root


class DocumentTreeExtension(Extension):
    """Register the capture processor after inline parsing and unescaping."""

    def __init__(self) -> None:
        super().__init__()
        self.processor: _CaptureTreeprocessor | None = None

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the capturing treeprocessor on the Markdown instance."""
        self.processor = _CaptureTreeprocessor(md)
        md.treeprocessors.register(self.processor, "document_tree_capture", -10)


def markdown_to_document_tree(markdown_text: str) -> DocumentNode:
    """Parse ``markdown_text`` into a ``doc`` node.

    Parameters
    ----------
    markdown_text : str
        Markdown body without front matter.

    Returns
    -------
    DocumentNode
        Root node of type ``"doc"`` whose ``content`` lists block nodes.
    """
    capture = DocumentTreeExtension()
    md = Markdown(extensions=[*MARKDOWN_EXTENSIONS, capture])
    md.convert(markdown_text)
    root = capture.processor.root if capture.processor else None
    if root is None:
        return {"type": "doc", "content": []}
    return {"type": "doc", "content": _TreeBuilder(md).blocks(root)}


class _TreeBuilder:
    """Translate Python-Markdown elements into document nodes."""

    def __init__(self, md: Markdown) -> None:
        self._stash = md.htmlStash.rawHtmlBlocks

    def blocks(self, parent: Element) -> list[DocumentNode]:
        nodes: list[DocumentNode] = []
        for child in parent:
            nodes.extend(self._block(child))
        return nodes

    def _block(self, element: Element) -> list[DocumentNode]:  # noqa: PLR0911
        tag = element.tag
        if tag in HEADING_TAGS:
            return [
                {
                    "type": "heading",
                    "attrs": {"level": HEADING_TAGS[tag]},
                    "content": self.inline(element),
                }
            ]
        if tag == "p":
            raw = self._stashed_block(element)
            if raw is not None:
                return [raw]
            return [{"type": "paragraph", "content": self.inline(element)}]
        if tag in LIST_TAGS:
            return [self._list(element)]
        if tag == "blockquote":
            return [{"type": "blockquote", "content": self.blocks(element)}]
        if tag == "pre":
            return [self._code_block(element)]
        if tag == "hr":
            return [{"type": "horizontalRule"}]
        if tag == "table":
            return [self._table(element)]
        return self.blocks(element)

    def _list(self, element: Element) -> DocumentNode:
        node: DocumentNode = {
            "type": LIST_TAGS[element.tag],
            "content": [self._list_item(item) for item in element if item.tag == "li"],
        }
        if element.tag == "ol":
            node["attrs"] = {"start": int(element.get("start", "1"))}
        return node

    def _list_item(self, item: Element) -> DocumentNode:
        has_blocks = any(
            child.tag in ("p", "ul", "ol", "pre", "blockquote", "table")
            for child in item
        )
        if not has_blocks:
            return {
                "type": "listItem",
                "content": [{"type": "paragraph", "content": self.inline(item)}],
            }
        content: list[DocumentNode] = []
        if item.text and item.text.strip():
            content.append(
                {"type": "paragraph", "content": self._text(item.text.strip(), [])}
            )
        content.extend(self.blocks(item))
        return {"type": "listItem", "content": content}

    def _code_block(self, element: Element) -> DocumentNode:
        code = element.find("code")
        source = code if code is not None else element
        language = _language_from_class(source.get("class"))
        return _code_node(unescape(source.text or ""), language)

    def _table(self, element: Element) -> DocumentNode:
        rows: list[DocumentNode] = []
        for row in element.iter("tr"):
            cells = [
                {
                    "type": "tableHeader" if cell.tag == "th" else "tableCell",
                    "content": [{"type": "paragraph", "content": self.inline(cell)}],
                }
                for cell in row
                if cell.tag in ("th", "td")
            ]
            rows.append({"type": "tableRow", "content": cells})
        return {"type": "table", "content": rows}

    def _stashed_block(self, element: Element) -> DocumentNode | None:
        """Return a node for a paragraph that only holds a stashed raw block."""
        if len(element) or not element.text:
            return None
        match = HTML_PLACEHOLDER_RE.fullmatch(element.text.strip())
        if not match:
            return None
        raw = self._stash_entry(int(match.group(1)))
        code = STASHED_CODE_PATTERN.match(raw)
        if code:
            language = _language_from_attrs(code.group("attrs"))
            return _code_node(unescape(code.group("code")), language)
        return {"type": "html", "attrs": {"html": raw}}

    def _stash_entry(self, index: int) -> str:
        if index >= len(self._stash):
            return ""
        return str(self._stash[index])

    def inline(
        self, element: Element, marks: list[DocumentNode] | None = None
    ) -> list[DocumentNode]:
        active = marks or []
        nodes: list[DocumentNode] = []
        if element.text:
            nodes.extend(self._text(element.text, active))
        for child in element:
            nodes.extend(self._inline_element(child, active))
            if child.tail:
                nodes.extend(self._text(child.tail, active))
        return nodes

    def _inline_element(
        self, element: Element, marks: list[DocumentNode]
    ) -> list[DocumentNode]:
        tag = element.tag
        if tag == "img":
            attrs = _prune(
                {
                    "src": element.get("src"),
                    "alt": element.get("alt"),
                    "title": element.get("title"),
                }
            )
            return [{"type": "image", "attrs": attrs}]
        if tag == "br":
            return [{"type": "hardBreak"}]
        if tag == "a":
            link = {
                "type": "link",
                "attrs": _prune(
                    {"href": element.get("href"), "title": element.get("title")}
                ),
            }
            return self.inline(element, [*marks, link])
        if tag in SIMPLE_MARKS:
            return self.inline(element, [*marks, {"type": SIMPLE_MARKS[tag]}])
        return self.inline(element, marks)

    def _text(self, text: str, marks: list[DocumentNode]) -> list[DocumentNode]:
        expanded = HTML_PLACEHOLDER_RE.sub(
            lambda match: _expand_entity(self._stash_entry(int(match.group(1)))), text
        )
        if any(mark["type"] == "code" for mark in marks):
            expanded = unescape(expanded)
        if not expanded:
            return []
        node: DocumentNode = {"type": "text", "text": expanded}
        if marks:
            node["marks"] = [dict(mark) for mark in marks]
        return [node]


def _code_node(code: str, language: str | None) -> DocumentNode:
    node: DocumentNode = {"type": "codeBlock", "attrs": {"language": language}}
    text = code.rstrip("\n")
    if text:
        node["content"] = [{"type": "text", "text": text}]
    return node


def _language_from_class(value: str | None) -> str | None:
    """Return the language named by a ``class`` attribute value."""
    if not value or not value.split():
        return None
    return value.split()[0].removeprefix("language-")


def _language_from_attrs(attrs: str) -> str | None:
    """Return the language named in the raw attribute text of a stashed block."""
    match = LANGUAGE_CLASS_PATTERN.search(attrs)
    return match.group(1) if match else None


def _expand_entity(raw: str) -> str:
    return unescape(raw) if ENTITY_PATTERN.match(raw) else raw


def _prune(attrs: dict[str, typ.Any]) -> dict[str, typ.Any]:
    return {key: value for key, value in attrs.items() if value not in (None, "")}


__all__ = ["DocumentNode", "DocumentTreeExtension", "markdown_to_document_tree"]
