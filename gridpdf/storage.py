from __future__ import annotations

import hashlib
import re
from pathlib import Path

from slugify import slugify

from . import config
from .models import Generation, GenerationStatus, get_session
from .pipeline.structure import GenerationResult


def slug_from_name(name: str) -> str:
    slug = slugify(name)
    slug = re.sub(r"[^a-z0-9-]+", "-", slug.lower()).strip("-")
    if not slug:
        slug = hashlib.md5(name.encode("utf-8")).hexdigest()[:12]
    if ".." in slug or "/" in slug or "\\" in slug:
        raise ValueError("Invalid slug generated from name")
    return slug


def output_dir(base_dir: Path | None = None) -> Path:
    path = base_dir or config.OUT_DIR
    path.mkdir(parents=True, exist_ok=True)
    return path


def pdf_output_path(name: str, base_dir: Path | None = None) -> Path:
    return output_dir(base_dir) / f"{slug_from_name(name)}.pdf"


def preview_output_path(name: str, base_dir: Path | None = None) -> Path:
    return output_dir(base_dir) / f"{slug_from_name(name)}.png"


def record_generation(name: str, template: str, result: GenerationResult) -> Generation:
    record = Generation(
        name=name,
        template=template,
        output_path=str(result.output_path) if result.output_path else None,
        status=GenerationStatus.SUCCESS if result.success else GenerationStatus.FAILED,
        error=result.error,
    )
    with get_session() as session:
        session.add(record)
        session.commit()
        session.refresh(record)
    return record
