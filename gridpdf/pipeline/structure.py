from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter, ValidationError, field_validator

from ..config import DEFAULT_COLUMN_GAP, DEFAULT_PAGE_MARGIN, DEFAULT_PAGE_SIZE, DEFAULT_Y
from ..errors import StructureParseError

if TYPE_CHECKING:
    from .page import PdfPage


class _Model(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


def _as_text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _as_lines(value: Any) -> Any:
    if isinstance(value, list):
        return [_as_text(line) for line in value]
    return value


class ColumnContent(_Model):
    lines: List[str]
    start_line: int = Field(1, alias="startLine", ge=1)
    line_spacing: Optional[float] = Field(None, alias="lineSpacing")

    @field_validator("lines", mode="before")
    @classmethod
    def lines_as_text(cls, value: Any) -> Any:
        return _as_lines(value)


class TextBlock(_Model):
    type: Literal["textBlock"] = "textBlock"
    text: str
    start_column: int = Field(1, alias="startColumn")
    columns: int = 1
    y: float = DEFAULT_Y

    @field_validator("text", mode="before")
    @classmethod
    def text_as_text(cls, value: Any) -> Any:
        return _as_text(value)


class MultilineTextBlock(_Model):
    type: Literal["multilineTextBlock"] = "multilineTextBlock"
    lines: List[str]
    start_column: int = Field(1, alias="startColumn")
    columns: int = 1
    y: float = DEFAULT_Y
    line_spacing: Optional[float] = Field(None, alias="lineSpacing")

    @field_validator("lines", mode="before")
    @classmethod
    def lines_as_text(cls, value: Any) -> Any:
        return _as_lines(value)


class MultiColumnTextBlock(_Model):
    type: Literal["multiColumnTextBlock"] = "multiColumnTextBlock"
    columns: List[ColumnContent]
    start_column: int = Field(1, alias="startColumn")
    column_span: int = Field(12, alias="columnSpan")
    y: float = DEFAULT_Y
    column_gap: float = Field(DEFAULT_COLUMN_GAP, alias="columnGap")


class TableBlock(_Model):
    type: Literal["tableBlock"] = "tableBlock"
    headers: List[str]
    rows: List[List[str]]
    start_column: int = Field(1, alias="startColumn")
    y: float = DEFAULT_Y

    @field_validator("headers", mode="before")
    @classmethod
    def stringify_headers(cls, value: Any) -> Any:
        if isinstance(value, list):
            return ["" if cell is None else str(cell) for cell in value]
        return value

    @field_validator("rows", mode="before")
    @classmethod
    def stringify_rows(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [
                ["" if cell is None else str(cell) for cell in row] if isinstance(row, list) else row
                for row in value
            ]
        return value


class UnknownBlock(_Model):
    """Any block whose ``type`` has no renderer. Extra fields are kept as-is."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str = "unknown"


BLOCK_TYPES = {
    "textBlock": TextBlock,
    "multilineTextBlock": MultilineTextBlock,
    "multiColumnTextBlock": MultiColumnTextBlock,
    "tableBlock": TableBlock,
}


def _block_tag(value: Any) -> str:
    if isinstance(value, dict):
        block_type = value.get("type")
    else:
        block_type = getattr(value, "type", None)
    return block_type if block_type in BLOCK_TYPES else "unknown"


Block = Annotated[
    Union[
        Annotated[TextBlock, Tag("textBlock")],
        Annotated[MultilineTextBlock, Tag("multilineTextBlock")],
        Annotated[MultiColumnTextBlock, Tag("multiColumnTextBlock")],
        Annotated[TableBlock, Tag("tableBlock")],
        Annotated[UnknownBlock, Tag("unknown")],
    ],
    Discriminator(_block_tag),
]

_BLOCK_ADAPTER: TypeAdapter = TypeAdapter(Block)


def parse_block(raw: Any) -> Any:
    return _BLOCK_ADAPTER.validate_python(raw)


class PdfDocument(_Model):
    type: Literal["pdfDocument"] = "pdfDocument"
    blocks: List[Block]

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def parse_document(raw: Any) -> PdfDocument:
    return PdfDocument.model_validate(raw)


def load_document(text: str) -> PdfDocument:
    """Parse a JSON document structure, raising StructureParseError on bad input."""
    try:
        return parse_document(json.loads(text))
    except json.JSONDecodeError as exc:
        raise StructureParseError(f"Document is not valid JSON: {exc}") from exc
    except ValidationError as exc:
        raise StructureParseError(f"Document is not a valid PDF document: {exc}") from exc


class Margins(_Model):
    top: float = DEFAULT_PAGE_MARGIN
    bottom: float = DEFAULT_PAGE_MARGIN
    left: float = DEFAULT_PAGE_MARGIN
    right: float = DEFAULT_PAGE_MARGIN


class GenerationOptions(_Model):
    page_size: Literal["A4", "letter", "legal"] = Field(DEFAULT_PAGE_SIZE, alias="pageSize")
    margins: Margins = Field(default_factory=Margins)
    auto_end: bool = Field(True, alias="autoEnd")


@dataclass(frozen=True)
class StructureResult:
    success: bool
    structure: Optional[PdfDocument] = None
    error: Optional[str] = None
    rendered_json: Optional[str] = None


@dataclass(frozen=True)
class GenerationResult:
    success: bool
    output_path: Optional[str] = None
    error: Optional[str] = None
    generated_json: Optional[PdfDocument] = None
    # Only set when auto_end is false: the caller finishes the page itself.
    page: Optional["PdfPage"] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict:
        out: dict = {"success": self.success}
        if self.output_path is not None:
            out["outputPath"] = self.output_path
        if self.error is not None:
            out["error"] = self.error
        if self.generated_json is not None:
            out["generatedJson"] = self.generated_json.to_dict()
        return out
