from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .. import config
from ..models import init_db
from ..storage import pdf_output_path, preview_output_path, record_generation, slug_from_name
from .generate import generate_pdf_from_template
from .helpers import TemplateHelpers
from .ingest import FileSpec
from .render_preview import render_preview
from .structure import GenerationOptions, GenerationResult


logger = logging.getLogger(__name__)


def process_file(
    spec: FileSpec,
    template: str,
    out_dir: Path,
    options: Optional[GenerationOptions] = None,
    helpers: Optional[TemplateHelpers] = None,
    previews: bool = False,
) -> GenerationResult:
    output_path = pdf_output_path(spec.name, base_dir=out_dir)
    result = generate_pdf_from_template(template, spec.data, output_path, options, helpers=helpers)
    if result.success and previews:
        render_preview(output_path, preview_output_path(spec.name, base_dir=out_dir))
    return result


def run_batch(
    files: Iterable[FileSpec],
    template_key: str,
    out_dir: Optional[Path] = None,
    options: Optional[GenerationOptions] = None,
    previews: bool = False,
) -> Dict[str, List[str]]:
    """
    Generate one PDF per file spec from the named template.

    Each file is an independent generation: a failure is recorded and the
    batch moves on. Returns output paths under SUCCESS and names under FAILED.
    """
    out_dir = out_dir or config.OUT_DIR
    template = config.load_template(template_key)
    helpers = TemplateHelpers()
    init_db()

    results: Dict[str, List[str]] = {"SUCCESS": [], "FAILED": []}
    claimed: Dict[str, str] = {}
    for spec in files:
        logger.info("Generating %s from template %s", spec.name, template_key)
        try:
            slug = slug_from_name(spec.name)
            if slug in claimed:
                raise ValueError(f"{slug}.pdf is already written for {claimed[slug]}")
            claimed[slug] = spec.name
            result = process_file(spec, template, out_dir, options, helpers=helpers, previews=previews)
        except Exception as exc:
            logger.exception("Pipeline error for %s", spec.name)
            result = GenerationResult(success=False, error=str(exc))

        record_generation(spec.name, template_key, result)
        if result.success:
            results["SUCCESS"].append(str(result.output_path))
        else:
            logger.error("Generation failed for %s: %s", spec.name, result.error)
            results["FAILED"].append(spec.name)
    return results
