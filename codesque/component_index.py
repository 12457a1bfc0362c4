"""
Component index — maps component identifiers (``Group#method``) to the
path of the diagram that documents them.

Parsed calls whose identifier is in the index get a hyperlink on their
participant. An index is either loaded from JSON or built from a
directory of sources named after the component they describe, e.g.
``Billing#charge.code`` documents ``Billing#charge``.
"""

import json
import re
import urllib.parse
from pathlib import Path
from typing import Dict, List, Optional

IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z$_][A-Za-z0-9$_]*#[A-Za-z$_][A-Za-z0-9$_]*$')


def load_index(path: str) -> Dict[str, str]:
    """Read a ``{"Group#method": "path"}`` JSON file."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: component index must be a JSON object")
    return {str(k): str(v) for k, v in data.items()}


def save_index(index: Dict[str, str], path: str) -> None:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, 'w', encoding='utf-8') as f:
        json.dump(index, f, indent=2, sort_keys=True)


def source_identifier(source: Path, suffix: str = ".code") -> Optional[str]:
    """Component identifier a source file documents, or None if unnamed."""
    if source.suffix != suffix:
        return None
    stem = source.name[:-len(suffix)]
    return stem if IDENTIFIER_PATTERN.match(stem) else None


def find_sources(directory: Path, suffix: str = ".code") -> List[Path]:
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == suffix)


def image_link(source: Path, fmt: str, suffix: str = ".code") -> str:
    """Relative, URL-safe link to the image rendered for a source file."""
    stem = source.name[:-len(suffix)] if source.name.endswith(suffix) else source.stem
    return urllib.parse.quote(f"{stem}.{fmt}")


def build_index(directory: Path, fmt: str = "svg", suffix: str = ".code") -> Dict[str, str]:
    """Index every component that has its own source file in ``directory``."""
    index: Dict[str, str] = {}
    for source in find_sources(directory, suffix):
        identifier = source_identifier(source, suffix)
        if identifier:
            index[identifier] = image_link(source, fmt, suffix)
    return index
