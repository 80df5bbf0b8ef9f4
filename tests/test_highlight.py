import sys
import textwrap

import pytest

from MdNya.errors import HighlightError
from MdNya.highlight import PygmentsHighlighter, SubprocessHighlighter, resolve_language
from MdNya.options import RenderOptions
from MdNya.renderer_html import render_markdown

ECHO_HIGHLIGHTER = textwrap.dedent(
    """\
    import sys

    print("ready", flush=True)
    lang = None
    lines = []
    while True:
        line = sys.stdin.readline()
        if not line:
            break
        line = line.rstrip("\\n")
        if lang is None:
            lang = line
        elif line == "":
            for code in lines:
                print(f"<{lang}>{code}</{lang}>")
            print("\\x04", flush=True)
            lang = None
            lines = []
        else:
            lines.append(line[1:])
    """
)


def _script(tmp_path, name, body):
    path = tmp_path / name
    path.write_text(body, encoding="utf-8")
    return [sys.executable, str(path)]


@pytest.mark.parametrize(
    "lang, expected",
    [("py", "python"), ("JS", "javascript"), ("c++", "cpp"), ("rust", "rust")],
)
def test_resolve_language_aliases(lang, expected):
    assert resolve_language(lang) == expected


def test_resolve_language_extra_aliases_win():
    assert resolve_language("py", {"py": "python3"}) == "python3"


def test_pygments_highlights_known_language():
    html = PygmentsHighlighter().highlight("py", "1")
    assert '<span class="mi">1</span>' in html


def test_pygments_unknown_language_is_plain_escaped_text():
    html = PygmentsHighlighter().highlight("no-such-language", "a < b")
    assert html.strip() == "a &lt; b"


def test_subprocess_highlighter_reuses_child(tmp_path):
    with SubprocessHighlighter(_script(tmp_path, "echo.py", ECHO_HIGHLIGHTER)) as highlighter:
        pid = highlighter._proc.pid
        assert highlighter.highlight("py", "a\n\nb") == "<python>a</python>\n<python></python>\n<python>b</python>\n"
        assert highlighter.highlight("rs", "x") == "<rs>x</rs>\n"
        assert highlighter._proc.pid == pid
    assert highlighter._proc.poll() is not None


def test_subprocess_highlighter_in_render(tmp_path):
    with SubprocessHighlighter(_script(tmp_path, "echo.py", ECHO_HIGHLIGHTER)) as highlighter:
        html, _ = render_markdown("```py\nx\n```\n", RenderOptions(highlighter=highlighter))
    assert html == '<pre data-lang="py"><code><span class="code-line"><python>x</python></span></code></pre>\n'


def test_subprocess_highlighter_bad_handshake(tmp_path):
    with SubprocessHighlighter(_script(tmp_path, "hello.py", 'print("hello", flush=True)\n')) as highlighter:
        with pytest.raises(HighlightError):
            highlighter.highlight("py", "x")


def test_subprocess_highlighter_child_exits(tmp_path):
    highlighter = SubprocessHighlighter(_script(tmp_path, "quit.py", 'print("ready", flush=True)\n'))
    with pytest.raises(HighlightError):
        highlighter.highlight("py", "x")
    highlighter._proc.wait(timeout=5)
    highlighter.close()


def test_subprocess_highlighter_missing_command():
    with pytest.raises(HighlightError):
        SubprocessHighlighter(["/nonexistent/mdnya-highlighter"])
