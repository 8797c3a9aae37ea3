from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from .helpers import DEFAULT_HELPERS, TemplateHelpers
from .structure import StructureResult, parse_document

logger = logging.getLogger(__name__)


def compile_and_render(template: str, data: Mapping[str, Any], helpers: Optional[TemplateHelpers] = None) -> str:
    helpers = helpers or DEFAULT_HELPERS
    return helpers.render(template, data)


def generate_pdf_structure(
    template: str,
    data: Mapping[str, Any],
    helpers: Optional[TemplateHelpers] = None,
    include_rendered_json: bool = False,
) -> StructureResult:
    """
    Render ``template`` against ``data`` and parse the output into a document.

    Never raises. Output that is not JSON, or JSON that is not a document,
    is reported as a failed result; ``include_rendered_json`` attaches the
    raw rendered text to help debug the template.
    """
    try:
        rendered_json = compile_and_render(template, data, helpers)
    except Exception as exc:
        return StructureResult(success=False, error=f"Structure generation failed: {exc}")

    try:
        raw = json.loads(rendered_json)
    except json.JSONDecodeError as exc:
        logger.debug("Template output is not JSON:\n%s", rendered_json)
        return StructureResult(
            success=False,
            error=f"Failed to parse template output as JSON: {exc}",
            rendered_json=rendered_json if include_rendered_json else None,
        )

    try:
        structure = parse_document(raw)
    except ValidationError as exc:
        return StructureResult(
            success=False,
            error=f"Template output is not a valid PDF document: {exc}",
            rendered_json=rendered_json if include_rendered_json else None,
        )

    return StructureResult(
        success=True,
        structure=structure,
        rendered_json=rendered_json if include_rendered_json else None,
    )
