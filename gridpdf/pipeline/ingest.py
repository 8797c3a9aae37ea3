from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ..storage import slug_from_name


@dataclass(frozen=True)
class FileSpec:
    name: str
    data: Dict[str, Any] = field(default_factory=dict)


def load_files(data_path: Path) -> List[FileSpec]:
    """
    Read a YAML data file of the form::

        files:
          - name: invoice-001
            data: {...}
    """
    if not data_path.exists():
        raise FileNotFoundError(f"Data file not found: {data_path}")
    with data_path.open("r", encoding="utf-8") as handle:
        document = yaml.safe_load(handle)

    if not isinstance(document, dict) or not isinstance(document.get("files"), list):
        raise ValueError("Data file must contain a 'files' list")
    entries = document["files"]
    if not entries:
        raise ValueError("Data file has no files")

    seen = set()
    slugs: Dict[str, str] = {}
    files: List[FileSpec] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"files[{index}] must be a mapping")
        name = str(entry.get("name") or "").strip()
        if not name:
            raise ValueError(f"files[{index}] is missing a name")
        if name in seen:
            raise ValueError(f"Duplicate file name: {name}")
        seen.add(name)
        slug = slug_from_name(name)
        if slug in slugs:
            raise ValueError(f"File names {slugs[slug]!r} and {name!r} both map to {slug}.pdf")
        slugs[slug] = name
        data = entry.get("data") or {}
        if not isinstance(data, dict):
            raise ValueError(f"files[{index}].data must be a mapping")
        files.append(FileSpec(name=name, data=data))
    return files
