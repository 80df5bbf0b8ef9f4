from __future__ import annotations

import argparse
import logging
import shlex
import sys
import time
from pathlib import Path

from . import markdown_parser
from .errors import MdNyaError
from .highlight import Highlighter, PygmentsHighlighter, SubprocessHighlighter
from .options import RenderOptions
from .renderer_html import HTMLRenderer
from .utils import configure_logging, read_markdown, resolve_output_path, write_metadata


def _comma_list(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdnya",
        description="Render Markdown into indented HTML and extract title, tags and front matter.",
    )
    parser.add_argument("input", type=str, help="Path to Markdown file")
    parser.add_argument("-o", "--output", type=str, help="HTML output path, or 'stdout' (default: <input>.<ext>)")
    parser.add_argument("-m", "--metadata", type=str, help="Write document metadata as JSON to this path")
    parser.add_argument("-c", "--close-all-tags", action="store_true", help="Close <p>, <li> and <br> tags")
    parser.add_argument(
        "--wrap-tags",
        type=_comma_list,
        help="Surround the document in tags, comma separated (e.g. 'html,body' or 'article')",
    )
    parser.add_argument("--wrap-sections", type=str, help="Surround the content after each heading in this tag")
    parser.add_argument("-l", "--heading-level", type=int, default=1, help="Emit '#' headings as this level")
    parser.add_argument("--ext", type=str, default="html", help="Extension for the default output path")
    parser.add_argument("--no-ids", action="store_true", help="Don't add id attributes to headings")
    parser.add_argument("--no-code-lines", action="store_true", help="Don't wrap code lines in spans")
    parser.add_argument("--razor", action="store_true", help="Pass '@' statements and '@' code blocks through raw")
    parser.add_argument(
        "--highlight",
        choices=("none", "pygments"),
        default="pygments",
        help="Syntax highlighter for fenced code with a language",
    )
    parser.add_argument(
        "--highlight-cmd",
        type=str,
        help="Command of an external highlighter process; overrides --highlight",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def build_highlighter(args: argparse.Namespace) -> Highlighter | None:
    if args.highlight_cmd:
        return SubprocessHighlighter(shlex.split(args.highlight_cmd))
    if args.highlight == "pygments":
        return PygmentsHighlighter()
    return None


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    input_path = Path(args.input).expanduser()
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")
    output_path = resolve_output_path(input_path, args.output, args.ext)

    highlighter = None
    try:
        highlighter = build_highlighter(args)
        options = RenderOptions(
            close_all_tags=args.close_all_tags,
            wrap_sections=args.wrap_sections,
            wrap_document=args.wrap_tags,
            heading_level=args.heading_level,
            add_header_ids=not args.no_ids,
            no_code_lines=args.no_code_lines,
            razor=args.razor,
            highlighter=highlighter,
        )

        logging.info("Reading %s", input_path)
        markdown_text = read_markdown(input_path)
        logging.debug("Markdown length: %d chars", len(markdown_text))

        logging.info("Parsing markdown...")
        document = markdown_parser.parse_markdown(markdown_text)

        started = time.perf_counter()
        if output_path is None:
            _, metadata = HTMLRenderer(options, sys.stdout).render(document)
        else:
            logging.info("Rendering HTML to %s", output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with output_path.open("w", encoding="utf-8") as out:
                written, metadata = HTMLRenderer(options, out).render(document)
            logging.debug("Wrote %d bytes", written)
        logging.debug("Render took %.1f ms", (time.perf_counter() - started) * 1000)

        if args.metadata:
            write_metadata(metadata, Path(args.metadata))
            logging.info("Metadata written to %s", args.metadata)
    except MdNyaError as exc:
        logging.error("%s", exc)
        return 1
    finally:
        if isinstance(highlighter, SubprocessHighlighter):
            highlighter.close()

    logging.info("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
