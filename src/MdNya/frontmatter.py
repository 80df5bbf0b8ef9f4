from __future__ import annotations

from typing import Any

import yaml

from .errors import FrontMatterError


def parse_front_matter(text: str) -> dict[str, Any]:
    """Parse a YAML front matter block into a mapping."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"front matter is not valid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FrontMatterError("front matter root must be a mapping.")
    return data
