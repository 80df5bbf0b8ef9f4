"""MdNya exception hierarchy.

Every error also derives from the closest builtin, so callers catching
``ValueError`` or ``RuntimeError`` keep working.
"""


class MdNyaError(Exception):
    """Base exception for all MdNya errors."""


class OptionsError(MdNyaError, ValueError):
    """Raised for invalid render options."""


class RenderError(MdNyaError):
    """Raised when a document cannot be rendered."""


class FrontMatterError(RenderError, ValueError):
    """Raised when the leading YAML block does not parse into a mapping."""


class UnsupportedNodeError(RenderError, TypeError):
    """Raised for a node type the renderer does not know."""

    def __init__(self, kind: str):
        super().__init__(f"unsupported node kind: {kind}")
        self.kind = kind


class MalformedNodeError(RenderError, ValueError):
    """Raised when a node breaks a structural precondition (e.g. a table without rows)."""


class WriterStateError(RenderError, RuntimeError):
    """Raised when HTMLWriter calls are unbalanced."""


class HighlightError(MdNyaError, RuntimeError):
    """Raised when a highlighter fails to produce HTML."""
