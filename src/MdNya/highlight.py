"""Syntax highlighting backends for fenced code blocks."""

from __future__ import annotations

import logging
import subprocess
import threading
from typing import Mapping, Optional, Protocol, Sequence

from pygments import highlight as _pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from .errors import HighlightError

logger = logging.getLogger(__name__)

LANGUAGE_ALIASES: dict[str, str] = {
    "c++": "cpp",
    "c#": "csharp",
    "f#": "fsharp",
    "js": "javascript",
    "md": "markdown",
    "py": "python",
    "rb": "ruby",
    "sh": "bash",
    "ts": "typescript",
}

END_OF_BLOCK = "\x04"


class Highlighter(Protocol):
    def highlight(self, lang: str, code: str) -> str:
        """Return ``code`` as HTML, or raise HighlightError."""
        ...


def resolve_language(lang: str, extra: Optional[Mapping[str, str]] = None) -> str:
    key = lang.strip().lower()
    if extra and key in extra:
        return extra[key]
    return LANGUAGE_ALIASES.get(key, key)


class PygmentsHighlighter:
    """In-process highlighter backed by Pygments.

    Languages Pygments does not know are emitted as escaped plain text.
    """

    def __init__(self, aliases: Optional[Mapping[str, str]] = None):
        self.aliases = dict(aliases or {})
        self._formatter = HtmlFormatter(nowrap=True)

    def highlight(self, lang: str, code: str) -> str:
        name = resolve_language(lang, self.aliases)
        try:
            lexer = get_lexer_by_name(name)
        except ClassNotFound:
            logger.debug("No Pygments lexer for %r, using plain text", name)
            lexer = TextLexer()
        try:
            return _pygments_highlight(code, lexer, self._formatter)
        except Exception as exc:
            raise HighlightError(f"Pygments failed on {name} code: {exc}") from exc


class SubprocessHighlighter:
    """Highlighter that talks to one long-lived child process over pipes.

    Protocol: the child prints ``ready`` once it has loaded. A request is the
    language on its own line, then each code line prefixed with a tab, then an
    empty line. The child answers with HTML lines followed by a line holding
    only ``\\x04``. Requests are serialised with a lock, so one instance can be
    shared between threads.
    """

    def __init__(self, command: Sequence[str], aliases: Optional[Mapping[str, str]] = None):
        self.command = list(command)
        self.aliases = dict(aliases or {})
        self._lock = threading.Lock()
        self._ready = False
        logger.info("Starting highlighter process: %s", " ".join(self.command))
        try:
            self._proc = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                bufsize=1,
            )
        except OSError as exc:
            raise HighlightError(f"could not start highlighter {self.command[0]!r}: {exc}") from exc

    def _wait_ready(self) -> None:
        if self._ready:
            return
        line = self._proc.stdout.readline()
        if line.rstrip("\n") != "ready":
            raise HighlightError(f"highlighter did not report ready, got {line!r}")
        logger.debug("Highlighter process ready")
        self._ready = True

    def highlight(self, lang: str, code: str) -> str:
        name = resolve_language(lang, self.aliases)
        with self._lock:
            try:
                self._wait_ready()
                request = [name] + ["\t" + line for line in code.splitlines()] + [""]
                self._proc.stdin.write("\n".join(request) + "\n")
                self._proc.stdin.flush()
                lines: list[str] = []
                while True:
                    line = self._proc.stdout.readline()
                    if not line:
                        raise HighlightError(f"highlighter exited while highlighting {name} code")
                    if line.rstrip("\n") == END_OF_BLOCK:
                        break
                    lines.append(line)
            except OSError as exc:
                raise HighlightError(f"highlighter pipe failed: {exc}") from exc
        return "".join(lines)

    def close(self) -> None:
        if self._proc.poll() is not None:
            return
        if self._proc.stdin:
            try:
                self._proc.stdin.close()
            except BrokenPipeError:
                logger.debug("Highlighter stdin already closed by the child")
        self._proc.terminate()
        try:
            self._proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            self._proc.kill()
            self._proc.wait()
        if self._proc.stdout:
            self._proc.stdout.close()

    def __enter__(self) -> "SubprocessHighlighter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
