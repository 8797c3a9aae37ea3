from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

from ..errors import RenderError
from .blocks import (
    draw_multi_column_text_block,
    draw_multiline_text_block,
    draw_table_block,
    draw_text_block,
)
from .page import PdfPage, create_pdf_page
from .structure import GenerationOptions, GenerationResult, PdfDocument, parse_block, parse_document

logger = logging.getLogger(__name__)


BLOCK_RENDERERS: Dict[str, Callable[[PdfPage, Any], PdfPage]] = {
    "textBlock": draw_text_block,
    "multilineTextBlock": draw_multiline_text_block,
    "multiColumnTextBlock": draw_multi_column_text_block,
    "tableBlock": draw_table_block,
}


def render_block(page: PdfPage, block: Any) -> None:
    block_type = getattr(block, "type", None) or (block.get("type") if isinstance(block, dict) else None)
    block_type = block_type or "unknown"
    fn = BLOCK_RENDERERS.get(str(block_type))
    if fn is None:
        logger.warning("Unknown block type: %s", block_type)
        return
    try:
        if isinstance(block, dict):
            block = parse_block(block)
        fn(page, block)
    except Exception as exc:
        raise RenderError(f"Failed to render {block_type} block: {exc}") from exc


def render_blocks(page: PdfPage, blocks: Iterable[Any]) -> None:
    # drawing mutates page.y, so order matters and nothing runs concurrently
    for index, block in enumerate(blocks):
        try:
            render_block(page, block)
        except Exception as exc:
            raise RenderError(f"Failed to render block {index}: {exc}") from exc


def generate_pdf_from_structure(
    structure: Union[PdfDocument, Mapping[str, Any]],
    output_path: Union[str, Path],
    options: Optional[GenerationOptions] = None,
) -> GenerationResult:
    """
    Draw every block of ``structure`` onto a new page and write it to ``output_path``.

    Never raises: any failure (bad column reference, draw error, I/O) comes
    back as ``GenerationResult(success=False)``. A failure after the file was
    opened leaves a partial file behind which must be treated as invalid.

    With ``options.auto_end`` false the page is not finalized; the open page
    is returned on the result and the caller must call ``page.end()``.
    A plain ``{type, blocks}`` mapping is validated before the file is opened.
    """
    options = options or GenerationOptions()
    path = Path(output_path)
    try:
        if not isinstance(structure, PdfDocument):
            structure = parse_document(structure)
        path.parent.mkdir(parents=True, exist_ok=True)
        handle = path.open("wb")
        try:
            page = create_pdf_page(handle, options)
            render_blocks(page, structure.blocks)
        except Exception:
            handle.close()
            raise

        if not options.auto_end:
            return GenerationResult(success=True, output_path=str(path), page=page)

        page.end()
        page.finished.result()
    except Exception as exc:
        logger.exception("Error generating PDF %s", path)
        return GenerationResult(success=False, error=f"PDF generation failed: {exc}")

    return GenerationResult(success=True, output_path=str(path))
