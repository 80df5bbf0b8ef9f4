from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from .model import DocumentMetadata

STDOUT_TARGET = "stdout"


def configure_logging(verbose: bool = False) -> None:
    """Configure a simple console logger."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(message)s",
    )


def resolve_output_path(input_path: Path, output: Optional[str], ext: str = "html") -> Optional[Path]:
    """Return the HTML target, or None when the output goes to stdout."""
    ext = ext.lstrip(".")
    if output == STDOUT_TARGET:
        return None
    if output:
        out_path = Path(output)
        if out_path.is_dir():
            out_path = out_path / f"{input_path.stem}.{ext}"
        return out_path
    return input_path.with_suffix(f".{ext}")


def read_markdown(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def write_metadata(metadata: DocumentMetadata, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(metadata.to_dict(), indent=2, ensure_ascii=False, default=str), encoding="utf-8")
