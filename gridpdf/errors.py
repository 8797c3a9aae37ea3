from __future__ import annotations


class GridPdfError(Exception):
    """Base error for PDF generation."""


class LayoutError(GridPdfError):
    """Invalid grid column reference."""


class RenderError(GridPdfError):
    """A block could not be drawn onto the page."""


class TemplateCompileError(GridPdfError):
    """A template helper failed while expanding nested text."""


class StructureParseError(GridPdfError):
    """Rendered template output is not a valid document structure."""


class TemplateNotFound(GridPdfError):
    pass
