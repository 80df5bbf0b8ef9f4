from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

from .errors import OptionsError

if TYPE_CHECKING:
    from .highlight import Highlighter

_TAG_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9-]*$")


@dataclass(frozen=True)
class RenderOptions:
    """Settings for one render call."""

    close_all_tags: bool = False
    wrap_sections: Optional[str] = None
    wrap_document: Optional[Sequence[str]] = None
    heading_level: int = 1
    add_header_ids: bool = True
    no_code_lines: bool = False
    razor: bool = False
    highlighter: Optional["Highlighter"] = None

    def __post_init__(self) -> None:
        if not 1 <= self.heading_level <= 6:
            raise OptionsError(f"heading_level must be between 1 and 6, got {self.heading_level}")
        if self.wrap_sections is not None:
            _check_tag(self.wrap_sections)
        if self.wrap_document is not None:
            if isinstance(self.wrap_document, str):
                raise OptionsError("wrap_document must be a sequence of tag names, not a string")
            object.__setattr__(self, "wrap_document", tuple(self.wrap_document))
            for tag in self.wrap_document:
                _check_tag(tag)


def _check_tag(tag: str) -> None:
    if not _TAG_NAME.match(tag):
        raise OptionsError(f"invalid tag name: {tag!r}")
