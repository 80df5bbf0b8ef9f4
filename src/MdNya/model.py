from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence


@dataclass
class Node:
    """Base class for document tree nodes."""


@dataclass
class Root(Node):
    children: list[Node] = field(default_factory=list)


@dataclass
class Yaml(Node):
    """Leading front matter block, kept as raw YAML text."""

    value: str


@dataclass
class Heading(Node):
    depth: int
    children: list[Node] = field(default_factory=list)


@dataclass
class Text(Node):
    value: str


@dataclass
class Paragraph(Node):
    children: list[Node] = field(default_factory=list)


@dataclass
class Emphasis(Node):
    children: list[Node] = field(default_factory=list)


@dataclass
class Strong(Node):
    children: list[Node] = field(default_factory=list)


@dataclass
class Delete(Node):
    children: list[Node] = field(default_factory=list)


@dataclass
class BlockQuote(Node):
    children: list[Node] = field(default_factory=list)


@dataclass
class Link(Node):
    url: str
    children: list[Node] = field(default_factory=list)
    title: str | None = None


@dataclass
class Image(Node):
    url: str
    alt: str = ""
    title: str | None = None


@dataclass
class Code(Node):
    """Fenced or indented code block.

    ``lang`` is the first word of the info string and ``meta`` the rest of it.
    """

    value: str
    lang: str | None = None
    meta: str | None = None


@dataclass
class ThematicBreak(Node):
    """Horizontal rule."""


@dataclass
class Break(Node):
    """Hard line break."""


@dataclass
class List(Node):
    children: list[Node] = field(default_factory=list)
    start: int | None = None


@dataclass
class ListItem(Node):
    children: list[Node] = field(default_factory=list)
    checked: bool | None = None
    marker: str | None = None


@dataclass
class InlineCode(Node):
    value: str


@dataclass
class Table(Node):
    children: list[Node] = field(default_factory=list)
    align: Sequence[Optional[str]] = field(default_factory=list)


@dataclass
class TableRow(Node):
    children: list[Node] = field(default_factory=list)


@dataclass
class TableCell(Node):
    children: list[Node] = field(default_factory=list)


@dataclass
class Html(Node):
    value: str


@dataclass
class DocumentMetadata:
    title: str | None = None
    tags: list[str] = field(default_factory=list)
    frontmatter: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "tags": list(self.tags), "frontmatter": dict(self.frontmatter)}
