from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from .helpers import TemplateHelpers
from .render_pdf import generate_pdf_from_structure
from .structure import GenerationOptions, GenerationResult
from .template import generate_pdf_structure

logger = logging.getLogger(__name__)


def generate_pdf_from_template(
    template: str,
    data: Mapping[str, Any],
    output_path: Union[str, Path],
    options: Optional[GenerationOptions] = None,
    helpers: Optional[TemplateHelpers] = None,
) -> GenerationResult:
    """
    Template -> document structure -> PDF file.

    A template that does not produce a valid structure fails before the
    output file is created. Never raises.
    """
    try:
        structure_result = generate_pdf_structure(template, data, helpers=helpers)
        if not structure_result.success or structure_result.structure is None:
            error = structure_result.error or "Failed to generate PDF structure"
            return GenerationResult(success=False, error=f"Template processing: {error}")

        result = generate_pdf_from_structure(structure_result.structure, output_path, options)
    except Exception as exc:
        logger.exception("PDF generation from template failed")
        return GenerationResult(success=False, error=f"PDF generation: {exc}")

    if not result.success:
        return result
    return GenerationResult(
        success=True,
        output_path=result.output_path,
        generated_json=structure_result.structure,
        page=result.page,
    )
