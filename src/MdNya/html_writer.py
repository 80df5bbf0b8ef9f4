from __future__ import annotations

from html import escape
from typing import Iterable, Optional, TextIO, Tuple

from .errors import WriterStateError

INDENT = "    "

# Tags whose closing tag is left out unless close_all_tags is set.
OPTIONAL_CLOSE_TAGS = frozenset({"p", "li", "br"})

Attr = Tuple[str, Optional[str]]


def format_attrs(attrs: Iterable[Attr]) -> str:
    parts: list[str] = []
    for name, value in attrs:
        if value is None:
            parts.append(f" {name}")
        else:
            parts.append(f' {name}="{escape(str(value), quote=True)}"')
    return "".join(parts)


class HTMLWriter:
    """Indenting HTML emitter with an inline/block mode switch.

    In block mode every tag starts on its own line and block tags indent their
    content by one level. In inline mode tags are written back to back. At most
    one section container is open at a time.

    A writer created with ``inline=True`` stays in inline mode for its whole
    life; it is used to capture HTML fragments such as a heading's content.
    """

    def __init__(self, out: TextIO, close_all_tags: bool = False, inline: bool = False):
        self._out = out
        self.close_all_tags = close_all_tags
        self.is_inline = inline
        self.indent_level = 0
        self.open_section: str | None = None
        self.is_first_tag = True
        self.written = 0
        self._inline_depth = 1 if inline else 0

    def _write(self, text: str) -> None:
        if not text:
            return
        self._out.write(text)
        self.written += len(text.encode("utf-8"))
        self.is_first_tag = False

    def _newline(self) -> None:
        if self.is_first_tag:
            return
        self._write("\n" + INDENT * self.indent_level)

    def _close_line_at_top(self) -> None:
        if not self.is_inline and self.indent_level == 0:
            self._write("\n")

    def start(self, tag: str, attrs: Iterable[Attr] = ()) -> None:
        if not self.is_inline:
            self._newline()
        self._write(f"<{tag}{format_attrs(attrs)}>")
        if not self.is_inline:
            self.indent_level += 1

    def end(self, tag: str) -> None:
        if not self.is_inline:
            self.indent_level = max(0, self.indent_level - 1)
        if not self.close_all_tags and tag in OPTIONAL_CLOSE_TAGS:
            return
        if not self.is_inline:
            self._newline()
        self._write(f"</{tag}>")
        self._close_line_at_top()

    def void_tag(self, tag: str, attrs: Iterable[Attr] = (), force_block: bool = False) -> None:
        prior = self.is_inline
        if force_block:
            self.is_inline = False
        try:
            if not self.is_inline:
                self._newline()
            self._write(f"<{tag}{format_attrs(attrs)} />")
            self._close_line_at_top()
        finally:
            self.is_inline = prior

    def enter_inline(self) -> None:
        # Nested calls only count; the outermost pair does the switching.
        if self._inline_depth == 0:
            self._newline()
            self.is_inline = True
        self._inline_depth += 1

    def exit_inline(self) -> None:
        if self._inline_depth == 0:
            raise WriterStateError("exit_inline() called outside an inline run")
        self._inline_depth -= 1
        if self._inline_depth == 0:
            self.is_inline = False
            self._close_line_at_top()

    def enter_section(self, tag: str) -> None:
        if self.open_section is not None:
            self.end(self.open_section)
        self.start(tag)
        self.open_section = tag

    def maybe_exit_section(self) -> None:
        if self.open_section is None:
            return
        tag, self.open_section = self.open_section, None
        self.end(tag)

    def write_text(self, text: str) -> None:
        self._write(escape(text, quote=False))

    def write_html(self, html: str) -> None:
        self._write(html)

    def flush(self) -> None:
        flush = getattr(self._out, "flush", None)
        if flush is not None:
            flush()
