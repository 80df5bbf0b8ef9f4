from __future__ import annotations

import re
from typing import Iterable, Optional

from markdown_it import MarkdownIt
from mdit_py_plugins.front_matter import front_matter_plugin

from .model import (
    BlockQuote,
    Break,
    Code,
    Delete,
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

RE_TASK_MARKER = re.compile(r"^\[([ xX])\](?:\s+|$)")
RE_CELL_ALIGN = re.compile(r"text-align:\s*(left|right|center)")

_INLINE_CONTAINERS = {
    "em_open": Emphasis,
    "strong_open": Strong,
    "s_open": Delete,
}
_INLINE_CLOSERS = {"em_close", "strong_close", "s_close", "link_close"}


def create_parser() -> MarkdownIt:
    return MarkdownIt("commonmark").use(front_matter_plugin).enable(["table", "strikethrough"])


def parse_markdown(text: str) -> Root:
    tokens = create_parser().parse(text)
    children, _ = _parse_blocks(tokens, 0, stop_types=set())
    return Root(children=children)


def _parse_blocks(tokens, index: int, stop_types: set[str]) -> tuple[list[Node], int]:
    blocks: list[Node] = []
    i = index
    while i < len(tokens):
        tok = tokens[i]
        if tok.type in stop_types:
            break
        if tok.type == "front_matter":
            blocks.append(Yaml(value=tok.content))
            i += 1
        elif tok.type == "heading_open":
            level = int(tok.tag[1])
            inline = tokens[i + 1]
            blocks.append(Heading(depth=level, children=_parse_inline(inline.children or [])))
            i += 3
        elif tok.type == "paragraph_open":
            inline = tokens[i + 1]
            blocks.append(Paragraph(children=_parse_inline(inline.children or [])))
            i += 3
        elif tok.type in ("bullet_list_open", "ordered_list_open"):
            ordered = tok.type == "ordered_list_open"
            close_type = "ordered_list_close" if ordered else "bullet_list_close"
            start = int(tok.attrGet("start") or 1) if ordered else None
            i += 1
            items: list[Node] = []
            while i < len(tokens) and tokens[i].type != close_type:
                if tokens[i].type == "list_item_open":
                    item_tok = tokens[i]
                    item_blocks, i = _parse_blocks(tokens, i + 1, stop_types={"list_item_close"})
                    items.append(_list_item(item_tok, item_blocks))
                    i += 1  # skip list_item_close
                else:
                    i += 1
            blocks.append(List(children=items, start=start))
            i += 1  # skip list close
        elif tok.type == "blockquote_open":
            quoted, i = _parse_blocks(tokens, i + 1, stop_types={"blockquote_close"})
            blocks.append(BlockQuote(children=quoted))
            i += 1
        elif tok.type == "fence":
            lang, meta = _split_info(tok.info)
            blocks.append(Code(value=tok.content, lang=lang, meta=meta))
            i += 1
        elif tok.type == "code_block":
            blocks.append(Code(value=tok.content))
            i += 1
        elif tok.type == "hr":
            blocks.append(ThematicBreak())
            i += 1
        elif tok.type == "html_block":
            blocks.append(Html(value=tok.content))
            i += 1
        elif tok.type == "table_open":
            table, i = _parse_table(tokens, i)
            blocks.append(table)
        else:
            i += 1
    return blocks, i


def _list_item(tok, blocks: list[Node]) -> ListItem:
    marker = f"{tok.info}{tok.markup}" if tok.info else tok.markup
    checked: bool | None = None
    if blocks and isinstance(blocks[0], Paragraph) and blocks[0].children:
        first = blocks[0].children[0]
        match = RE_TASK_MARKER.match(first.value) if isinstance(first, Text) else None
        if match:
            checked = match.group(1) != " "
            rest = first.value[match.end() :]
            remaining = ([Text(rest)] if rest else []) + blocks[0].children[1:]
            blocks = [Paragraph(children=remaining)] + blocks[1:]
    return ListItem(children=blocks, checked=checked, marker=marker or None)


def _split_info(info: str) -> tuple[str | None, str | None]:
    parts = info.strip().split(None, 1)
    if not parts:
        return None, None
    meta = parts[1].strip() if len(parts) > 1 else None
    return parts[0], meta or None


def _parse_table(tokens, index: int) -> tuple[Table, int]:
    rows: list[Node] = []
    align: list[Optional[str]] = []
    i = index + 1
    while i < len(tokens):
        tok = tokens[i]
        if tok.type == "tr_open":
            cells: list[Node] = []
            i += 1
            while tokens[i].type != "tr_close":
                if tokens[i].type in {"th_open", "td_open"}:
                    if tokens[i].type == "th_open":
                        align.append(_cell_align(tokens[i]))
                    inline = tokens[i + 1]
                    cells.append(TableCell(children=_parse_inline(inline.children or [])))
                    i += 3  # skip cell open, inline, cell close
                else:
                    i += 1
            rows.append(TableRow(children=cells))
            i += 1  # skip tr_close
        elif tok.type == "table_close":
            break
        else:
            i += 1
    return Table(children=rows, align=align), i + 1


def _cell_align(tok) -> str | None:
    match = RE_CELL_ALIGN.search(str(tok.attrGet("style") or ""))
    return match.group(1) if match else None


def _parse_inline(children: Iterable) -> list[Node]:
    result: list[Node] = []
    stack: list[list[Node]] = [result]
    for tok in children:
        current = stack[-1]
        if tok.type == "text":
            _append_text(current, tok.content)
        elif tok.type == "softbreak":
            _append_text(current, "\n")
        elif tok.type == "hardbreak":
            current.append(Break())
        elif tok.type in _INLINE_CONTAINERS:
            container = _INLINE_CONTAINERS[tok.type]()
            current.append(container)
            stack.append(container.children)
        elif tok.type == "link_open":
            link = Link(url=str(tok.attrGet("href") or ""), title=tok.attrGet("title") or None)
            current.append(link)
            stack.append(link.children)
        elif tok.type in _INLINE_CLOSERS:
            if len(stack) > 1:
                stack.pop()
        elif tok.type == "code_inline":
            current.append(InlineCode(value=tok.content))
        elif tok.type == "image":
            current.append(
                Image(
                    url=str(tok.attrGet("src") or ""),
                    alt=tok.content or str(tok.attrGet("alt") or ""),
                    title=tok.attrGet("title") or None,
                )
            )
        elif tok.type == "html_inline":
            current.append(Html(value=tok.content))
    return result


def _append_text(nodes: list[Node], value: str) -> None:
    if nodes and isinstance(nodes[-1], Text):
        nodes[-1] = Text(nodes[-1].value + value)
    else:
        nodes.append(Text(value))
