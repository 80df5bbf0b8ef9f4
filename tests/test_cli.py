import json
from pathlib import Path

import pytest

from MdNya import cli


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "notes.md"
    path.write_text(text, encoding="utf-8")
    return path


def test_cli_writes_html_and_metadata(tmp_path: Path):
    source = _write(tmp_path, "---\nauthor: me\n---\n# Notes\n\nAbout #python.\n")
    meta_path = tmp_path / "meta" / "notes.json"
    assert cli.main([str(source), "-m", str(meta_path), "--highlight", "none"]) == 0

    html = (tmp_path / "notes.html").read_text(encoding="utf-8")
    assert html == '<h1 id="notes">Notes</h1>\n\n<p>About <span class="tag">python</span>.\n'
    assert json.loads(meta_path.read_text(encoding="utf-8")) == {
        "title": "Notes",
        "tags": ["python"],
        "frontmatter": {"author": "me"},
    }


def test_cli_extension_and_output_directory(tmp_path: Path):
    source = _write(tmp_path, "text\n")
    out_dir = tmp_path / "site"
    out_dir.mkdir()
    assert cli.main([str(source), "-o", str(out_dir), "--ext", ".cshtml"]) == 0
    assert (out_dir / "notes.cshtml").read_text(encoding="utf-8") == "<p>text\n"


def test_cli_stdout_with_wrap_tags(tmp_path: Path, capsys):
    source = _write(tmp_path, "# T\n\nbody\n")
    args = [str(source), "-o", "stdout", "--wrap-tags", "html, body", "--wrap-sections", "section", "-c", "--no-ids"]
    assert cli.main(args) == 0
    assert capsys.readouterr().out == (
        "<html>\n"
        "    <body>\n"
        "        <h1>T</h1>\n"
        "        <section>\n"
        "            <p>body</p>\n"
        "        </section>\n"
        "    </body>\n"
        "</html>\n"
    )


def test_cli_heading_level(tmp_path: Path):
    source = _write(tmp_path, "# T\n")
    out = tmp_path / "out.html"
    assert cli.main([str(source), "-o", str(out), "-l", "3"]) == 0
    assert out.read_text(encoding="utf-8") == '<h3 id="t">T</h3>\n'


def test_cli_reports_render_errors(tmp_path: Path):
    source = _write(tmp_path, "---\n- a\n- b\n---\ntext\n")
    assert cli.main([str(source), "-o", str(tmp_path / "out.html")]) == 1


def test_cli_rejects_bad_options(tmp_path: Path):
    source = _write(tmp_path, "text\n")
    assert cli.main([str(source), "-l", "9"]) == 1


def test_cli_missing_input(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        cli.main([str(tmp_path / "missing.md")])
