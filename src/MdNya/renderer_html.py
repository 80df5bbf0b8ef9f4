from __future__ import annotations

import io
import logging
import re
import time
from dataclasses import dataclass
from html import escape
from pathlib import Path
from typing import Iterable, Optional, Sequence, TextIO

from . import markdown_parser
from .errors import MalformedNodeError, UnsupportedNodeError
from .frontmatter import parse_front_matter
from .html_writer import Attr, HTMLWriter
from .model import (
    BlockQuote,
    Break,
    Code,
    Delete,
    DocumentMetadata,
    Emphasis,
    Heading,
    Html,
    Image,
    InlineCode,
    Link,
    List,
    ListItem,
    Node,
    Paragraph,
    Root,
    Strong,
    Table,
    TableCell,
    TableRow,
    Text,
    ThematicBreak,
    Yaml,
)
from .options import RenderOptions

logger = logging.getLogger(__name__)

RE_HASHTAG = re.compile(r"(?<!\w)#([\w-]+)")
RE_RAZOR_STATEMENT = re.compile(r"^@\w+")
RE_ADMONITION = re.compile(r"^\{(?P<class>[\w-]+)\}(?:\s*(?P<title>\S.*))?$")
RE_SLUG_DROP = re.compile(r"[^a-z0-9-]")

TABLE_CAPTION_PREFIX = ": "
MAX_HEADING_LEVEL = 6
DEFAULT_ADMONITION_CLASS = "note"

INLINE_WRAP_TAGS = {
    Emphasis: "em",
    Strong: "strong",
    Delete: "del",
}


@dataclass(frozen=True)
class RenderContext:
    """Position of a node in the tree; depth 0 means a direct child of the root."""

    depth: int = 0

    def nested(self) -> "RenderContext":
        return RenderContext(depth=self.depth + 1)


def slugify(text: str) -> str:
    return RE_SLUG_DROP.sub("", text.lower().replace(" ", "-"))


def plain_text(nodes: Iterable[Node]) -> str:
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, (Text, InlineCode)):
            parts.append(node.value)
        elif hasattr(node, "children"):
            parts.append(plain_text(node.children))
    return "".join(parts)


def raw_text(nodes: Iterable[Node]) -> str:
    """Source-like text of inline nodes, keeping raw HTML and line breaks."""
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, (Text, InlineCode, Html)):
            parts.append(node.value)
        elif isinstance(node, Break):
            parts.append("\n")
        elif isinstance(node, Image):
            parts.append(node.alt)
        elif hasattr(node, "children"):
            parts.append(raw_text(node.children))
    return "".join(parts)


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def _is_table_caption(node: Optional[Node]) -> bool:
    if not isinstance(node, Paragraph) or not node.children:
        return False
    first = node.children[0]
    return isinstance(first, Text) and first.value.startswith(TABLE_CAPTION_PREFIX)


def _marker_numbers(items: Sequence[Node]) -> list[int] | None:
    numbers: list[int] = []
    for item in items:
        marker = getattr(item, "marker", None)
        if not marker:
            return None
        digits = marker.rstrip(".)")
        if not digits.isdigit():
            return None
        numbers.append(int(digits))
    return numbers


def _list_tag(node: List) -> tuple[str, list[Attr]]:
    if node.start is None:
        return "ul", []
    numbers = _marker_numbers(node.children)
    if numbers and len(numbers) > 1 and numbers == list(range(len(numbers), 0, -1)):
        return "ol", [("reversed", None)]
    if node.start == 1:
        return "ol", []
    return "ol", [("start", str(node.start))]


def _align_attrs(align: Sequence[Optional[str]], index: int) -> list[Attr]:
    if not align:
        return []
    value = align[index % len(align)]
    if value in (None, "none"):
        return []
    return [("style", f"text-align:{value}")]


class HTMLRenderer:
    """Walks a document tree depth-first and writes indented HTML.

    One renderer can render several documents one after another; each
    ``render`` call starts with fresh metadata and a fresh writer.
    """

    def __init__(self, options: RenderOptions | None = None, out: TextIO | None = None):
        self.options = options or RenderOptions()
        self.out = out if out is not None else io.StringIO()
        self.metadata = DocumentMetadata()

    def render(self, root: Root) -> tuple[int, DocumentMetadata]:
        """Render ``root`` into the sink and return (bytes written, metadata)."""
        self.metadata = DocumentMetadata()
        writer = HTMLWriter(self.out, close_all_tags=self.options.close_all_tags)
        try:
            self._render_document(root, writer)
        finally:
            writer.flush()
        return writer.written, self.metadata

    def _render_document(self, root: Root, out: HTMLWriter) -> None:
        if not isinstance(root, Root):
            raise MalformedNodeError(f"expected a Root node, got {type(root).__name__}")
        children = list(root.children)
        if children and isinstance(children[0], Yaml):
            self.metadata.frontmatter = parse_front_matter(children[0].value)
            children = children[1:]

        wrap_tags = self.options.wrap_document or ()
        for tag in wrap_tags:
            out.start(tag)
        self._render_seq(children, out, RenderContext())
        out.maybe_exit_section()
        for tag in reversed(wrap_tags):
            out.end(tag)

    def _render_seq(self, nodes: Sequence[Node], out: HTMLWriter, ctx: RenderContext) -> None:
        i = 0
        while i < len(nodes):
            node = nodes[i]
            following = nodes[i + 1] if i + 1 < len(nodes) else None
            if isinstance(node, Table) and _is_table_caption(following):
                self._render_table(node, out, ctx, caption=following)
                i += 2
                continue
            self._dispatch(node, out, ctx)
            i += 1

    def _render_children(self, nodes: Iterable[Node], out: HTMLWriter, ctx: RenderContext) -> None:
        for node in nodes:
            self._dispatch(node, out, ctx)

    def _dispatch(self, node: Node, out: HTMLWriter, ctx: RenderContext) -> None:
        wrap_tag = INLINE_WRAP_TAGS.get(type(node))
        if wrap_tag is not None:
            self._render_inline_wrap(wrap_tag, [], node.children, out, ctx)
        elif isinstance(node, Text):
            self._render_text(node, out)
        elif isinstance(node, Heading):
            self._render_heading(node, out, ctx)
        elif isinstance(node, Paragraph):
            self._render_paragraph(node, out, ctx)
        elif isinstance(node, List):
            self._render_list(node, out, ctx)
        elif isinstance(node, ListItem):
            self._render_list_item(node, out, ctx)
        elif isinstance(node, Code):
            self._render_code(node, out)
        elif isinstance(node, Table):
            self._render_table(node, out, ctx)
        elif isinstance(node, BlockQuote):
            out.start("blockquote")
            self._render_seq(node.children, out, ctx.nested())
            out.end("blockquote")
        elif isinstance(node, Link):
            attrs: list[Attr] = [("href", node.url)]
            if node.title:
                attrs.append(("title", node.title))
            self._render_inline_wrap("a", attrs, node.children, out, ctx)
        elif isinstance(node, InlineCode):
            out.enter_inline()
            out.start("code")
            out.write_text(node.value)
            out.end("code")
            out.exit_inline()
        elif isinstance(node, Image):
            self._render_image(node, out)
        elif isinstance(node, Break):
            out.enter_inline()
            if self.options.close_all_tags:
                out.void_tag("br")
            else:
                out.start("br")
                out.end("br")
            out.exit_inline()
        elif isinstance(node, ThematicBreak):
            out.void_tag("hr")
        elif isinstance(node, Html):
            self._render_html(node, out)
        elif isinstance(node, (TableRow, TableCell)):
            raise MalformedNodeError(f"{type(node).__name__} outside of a Table")
        elif isinstance(node, Yaml):
            raise MalformedNodeError("front matter is only allowed as the first node of the document")
        elif isinstance(node, Root):
            raise MalformedNodeError("Root node nested inside the document")
        else:
            raise UnsupportedNodeError(type(node).__name__)

    def _render_inline_wrap(
        self, tag: str, attrs: list[Attr], children: Sequence[Node], out: HTMLWriter, ctx: RenderContext
    ) -> None:
        out.enter_inline()
        out.start(tag, attrs)
        self._render_children(children, out, ctx.nested())
        out.end(tag)
        out.exit_inline()

    def _render_heading(self, node: Heading, out: HTMLWriter, ctx: RenderContext) -> None:
        top_level = ctx.depth == 0
        if top_level:
            out.maybe_exit_section()
        if node.depth < 1:
            raise MalformedNodeError(f"heading depth must be at least 1, got {node.depth}")
        level = node.depth + self.options.heading_level - 1
        if level > MAX_HEADING_LEVEL:
            logger.warning("Heading level h%d clamped to h%d", level, MAX_HEADING_LEVEL)
            level = MAX_HEADING_LEVEL
        tag = f"h{level}"
        attrs: list[Attr] = []
        if self.options.add_header_ids:
            attrs.append(("id", slugify(plain_text(node.children))))

        out.enter_inline()
        out.start(tag, attrs)
        if top_level and node.depth == 1 and self.metadata.title is None:
            title = self._render_fragment(node.children, ctx.nested())
            self.metadata.title = title
            out.write_html(title)
        else:
            self._render_children(node.children, out, ctx.nested())
        out.end(tag)
        out.exit_inline()

        if top_level and self.options.wrap_sections:
            out.enter_section(self.options.wrap_sections)

    def _render_fragment(self, nodes: Sequence[Node], ctx: RenderContext) -> str:
        buffer = io.StringIO()
        fragment = HTMLWriter(buffer, close_all_tags=self.options.close_all_tags, inline=True)
        self._render_children(nodes, fragment, ctx)
        return buffer.getvalue()

    def _render_text(self, node: Text, out: HTMLWriter) -> None:
        escaped = escape(node.value, quote=False)
        out.enter_inline()
        pos = 0
        for match in RE_HASHTAG.finditer(escaped):
            name = match.group(1)
            out.write_html(escaped[pos : match.start()])
            out.write_html(f'<span class="tag">{name}</span>')
            self.metadata.tags.append(name)
            pos = match.end()
        out.write_html(escaped[pos:])
        out.exit_inline()

    def _render_paragraph(self, node: Paragraph, out: HTMLWriter, ctx: RenderContext) -> None:
        children = node.children
        if (
            self.options.razor
            and children
            and isinstance(children[0], Text)
            and RE_RAZOR_STATEMENT.match(children[0].value)
        ):
            out.enter_inline()
            out.write_html(raw_text(children))
            out.exit_inline()
            return
        if len(children) == 1 and isinstance(children[0], Image):
            self._render_image(children[0], out, force_block=True)
            return
        self._render_inline_wrap("p", [], children, out, ctx)

    def _render_list(self, node: List, out: HTMLWriter, ctx: RenderContext) -> None:
        tag, attrs = _list_tag(node)
        out.start(tag, attrs)
        self._render_children(node.children, out, ctx.nested())
        out.end(tag)

    def _render_list_item(self, node: ListItem, out: HTMLWriter, ctx: RenderContext) -> None:
        children = node.children
        if len(children) == 1 and isinstance(children[0], Paragraph):
            inline_children: Sequence[Node] | None = children[0].children
        elif not children:
            inline_children = []
        else:
            inline_children = None

        if inline_children is not None:
            out.enter_inline()
            out.start("li")
            self._render_checkbox(node, out)
            self._render_children(inline_children, out, ctx.nested())
            out.end("li")
            out.exit_inline()
            return

        # Items holding block content keep one block per line.
        out.start("li")
        self._render_checkbox(node, out)
        self._render_seq(children, out, ctx.nested())
        out.end("li")

    def _render_checkbox(self, node: ListItem, out: HTMLWriter) -> None:
        if node.checked is None:
            return
        attrs: list[Attr] = [("type", "checkbox"), ("disabled", None)]
        if node.checked:
            attrs.append(("checked", None))
        out.void_tag("input", attrs)

    def _render_code(self, node: Code, out: HTMLWriter) -> None:
        lang = (node.lang or "").strip() or None

        if self.options.razor and lang == "@":
            out.enter_inline()
            out.write_html("@{\n" + node.value.rstrip() + "\n}")
            out.exit_inline()
            return

        admonition = RE_ADMONITION.match(lang) if lang else None
        meta = (node.meta or "").strip()
        if admonition is not None:
            css_class = admonition.group("class")
            title = meta or admonition.group("title") or _capitalize(css_class)
            self._render_admonition(css_class, title.strip(), node.value, out)
            return
        if meta:
            # A titled block without {class} takes its class from the language.
            self._render_admonition(lang or DEFAULT_ADMONITION_CLASS, meta, node.value, out)
            return

        attrs: list[Attr] = []
        if lang:
            attrs.append(("data-lang", lang))
        highlighter = self.options.highlighter
        if lang and highlighter is not None:
            started = time.perf_counter()
            body = highlighter.highlight(lang, node.value)
            logger.debug("Highlighting %s block took %.1f ms", lang, (time.perf_counter() - started) * 1000)
        else:
            body = escape(node.value, quote=False)

        body = body.rstrip()
        if not self.options.no_code_lines:
            lines = body.split("\n") if body else []
            body = "\n".join(f'<span class="code-line">{line}</span>' for line in lines)

        out.enter_inline()
        out.start("pre", attrs)
        out.start("code")
        out.write_html(body)
        out.end("code")
        out.end("pre")
        out.exit_inline()

    def _render_admonition(self, css_class: str, title: str, value: str, out: HTMLWriter) -> None:
        out.start("div", [("class", f"admonition {css_class}")])
        out.enter_inline()
        out.start("div", [("class", "admonition-title")])
        out.write_text(title)
        out.end("div")
        out.exit_inline()
        out.enter_inline()
        out.start("p")
        out.write_text(value.rstrip())
        out.end("p")
        out.exit_inline()
        out.end("div")

    def _render_table(
        self, node: Table, out: HTMLWriter, ctx: RenderContext, caption: Paragraph | None = None
    ) -> None:
        rows = node.children
        if not rows:
            raise MalformedNodeError("table has no rows")
        for row in rows:
            if not isinstance(row, TableRow):
                raise MalformedNodeError(f"table children must be TableRow, got {type(row).__name__}")

        out.start("table")
        if caption is not None:
            first = caption.children[0]
            caption_children = [Text(first.value[len(TABLE_CAPTION_PREFIX) :]), *caption.children[1:]]
            self._render_inline_wrap("caption", [], caption_children, out, ctx)
        out.start("thead")
        self._render_row(rows[0], "th", node.align, out, ctx)
        out.end("thead")
        if len(rows) > 1:
            out.start("tbody")
            for row in rows[1:]:
                self._render_row(row, "td", node.align, out, ctx)
            out.end("tbody")
        out.end("table")

    def _render_row(
        self, row: TableRow, cell_tag: str, align: Sequence[Optional[str]], out: HTMLWriter, ctx: RenderContext
    ) -> None:
        out.start("tr")
        for index, cell in enumerate(row.children):
            if not isinstance(cell, TableCell):
                raise MalformedNodeError(f"table row children must be TableCell, got {type(cell).__name__}")
            self._render_inline_wrap(cell_tag, _align_attrs(align, index), cell.children, out, ctx.nested())
        out.end("tr")

    def _render_image(self, node: Image, out: HTMLWriter, force_block: bool = False) -> None:
        attrs: list[Attr] = [("src", node.url), ("alt", node.alt)]
        if node.title:
            attrs.append(("title", node.title))
        out.void_tag("img", attrs, force_block=force_block)

    def _render_html(self, node: Html, out: HTMLWriter) -> None:
        if out.is_inline:
            out.write_html(node.value)
            return
        out.enter_inline()
        out.write_html(node.value.strip("\n"))
        out.exit_inline()


def render_document(root: Root, options: RenderOptions | None = None) -> tuple[str, DocumentMetadata]:
    """Render a tree to an HTML string."""
    buffer = io.StringIO()
    _, metadata = HTMLRenderer(options, buffer).render(root)
    return buffer.getvalue(), metadata


def render_markdown(text: str, options: RenderOptions | None = None) -> tuple[str, DocumentMetadata]:
    return render_document(markdown_parser.parse_markdown(text), options)


def render_file(
    input_path: str | Path, output_path: str | Path, options: RenderOptions | None = None
) -> DocumentMetadata:
    input_path = Path(input_path)
    output_path = Path(output_path)
    root = markdown_parser.parse_markdown(input_path.read_text(encoding="utf-8"))
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as out:
        _, metadata = HTMLRenderer(options, out).render(root)
    return metadata
