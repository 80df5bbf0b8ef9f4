import io

import pytest

from MdNya.errors import WriterStateError
from MdNya.html_writer import HTMLWriter


def _writer(**kwargs):
    buffer = io.StringIO()
    return HTMLWriter(buffer, **kwargs), buffer


def test_block_tags_indent_and_close_on_own_line():
    writer, buffer = _writer()
    writer.start("div")
    writer.start("section")
    writer.end("section")
    writer.end("div")
    assert buffer.getvalue() == "<div>\n    <section>\n    </section>\n</div>\n"
    assert writer.indent_level == 0


def test_optional_close_tags_are_skipped_unless_requested():
    writer, buffer = _writer()
    writer.enter_inline()
    writer.start("p")
    writer.write_text("a")
    writer.end("p")
    writer.exit_inline()
    assert buffer.getvalue() == "<p>a\n"

    writer, buffer = _writer(close_all_tags=True)
    writer.enter_inline()
    writer.start("p")
    writer.write_text("a")
    writer.end("p")
    writer.exit_inline()
    assert buffer.getvalue() == "<p>a</p>\n"


def test_attributes_are_escaped_and_bare_attributes_supported():
    writer, buffer = _writer()
    writer.enter_inline()
    writer.start("a", [("href", 'x"y&z'), ("download", None)])
    writer.end("a")
    writer.exit_inline()
    assert buffer.getvalue() == '<a href="x&quot;y&amp;z" download></a>\n'


def test_indent_never_goes_below_zero():
    writer, buffer = _writer()
    writer.end("div")
    assert writer.indent_level == 0
    assert buffer.getvalue() == "</div>\n"


def test_void_tag_force_block_restores_inline_mode():
    writer, buffer = _writer()
    writer.start("div")
    writer.enter_inline()
    writer.void_tag("img", [("src", "a.png")], force_block=True)
    assert writer.is_inline
    writer.exit_inline()
    writer.end("div")
    assert buffer.getvalue() == '<div>\n    \n    <img src="a.png" />\n</div>\n'


def test_nested_inline_runs_are_counted():
    writer, _ = _writer()
    writer.enter_inline()
    writer.enter_inline()
    writer.exit_inline()
    assert writer.is_inline
    writer.exit_inline()
    assert not writer.is_inline


def test_unmatched_exit_inline_raises():
    writer, _ = _writer()
    with pytest.raises(WriterStateError):
        writer.exit_inline()


def test_sections_hold_a_single_slot():
    writer, buffer = _writer()
    writer.enter_section("section")
    writer.enter_section("section")
    assert writer.open_section == "section"
    writer.maybe_exit_section()
    writer.maybe_exit_section()
    html = buffer.getvalue()
    assert html == "<section>\n</section>\n\n<section>\n</section>\n"
    assert writer.open_section is None


def test_written_counts_utf8_bytes():
    writer, buffer = _writer()
    writer.enter_inline()
    writer.write_text("é<")
    writer.exit_inline()
    assert buffer.getvalue() == "é&lt;\n"
    assert writer.written == len(buffer.getvalue().encode("utf-8"))


def test_fragment_writer_stays_inline():
    writer, buffer = _writer(inline=True)
    writer.start("em")
    writer.write_text("x")
    writer.end("em")
    assert buffer.getvalue() == "<em>x</em>"
