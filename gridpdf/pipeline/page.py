from __future__ import annotations

from concurrent.futures import Future
from typing import BinaryIO, Dict, List, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, LEGAL, LETTER
from reportlab.pdfbase.pdfmetrics import getAscentDescent
from reportlab.pdfgen import canvas
from reportlab.platypus import Table, TableStyle

from ..config import FONT_NAME, FONT_SIZE
from .structure import GenerationOptions, Margins


PAGE_SIZES: Dict[str, Tuple[float, float]] = {
    "A4": A4,
    "letter": LETTER,
    "legal": LEGAL,
}

GRID_COLOR = "#D1D5DB"
HEADER_FILL = "#F3F6FA"


def _wrap_words(canv: canvas.Canvas, text: str, font_name: str, font_size: float, max_width: float) -> List[str]:
    """
    Word wrap for one paragraph. A single word wider than the box is kept on
    its own line rather than split.
    """
    words = (text or "").split()
    if not words:
        return [""]

    lines: List[str] = []
    cur: List[str] = []

    for w in words:
        test = " ".join(cur + [w])
        if canv.stringWidth(test, font_name, font_size) <= max_width:
            cur.append(w)
            continue

        if cur:
            lines.append(" ".join(cur))
            cur = [w]
        else:
            lines.append(w)

    if cur:
        lines.append(" ".join(cur))

    return lines


class PdfPage:
    """
    One page drawn onto ``stream`` through a reportlab canvas.

    Coordinates are top-left based with ``y`` growing downward, the same
    system the block schema uses. The canvas is bottom-left based, so every
    draw call flips ``y`` against the page height.
    """

    def __init__(
        self,
        stream: BinaryIO,
        page_size: Tuple[float, float] = A4,
        margins: Optional[Margins] = None,
        font_name: str = FONT_NAME,
        font_size: float = FONT_SIZE,
    ) -> None:
        self.stream = stream
        self.margins = margins or Margins()
        self.canvas = canvas.Canvas(stream, pagesize=page_size)
        self.width, self.height = page_size
        self.font_name = font_name
        self.font_size = float(font_size)
        self.x = self.margins.left
        self.y = self.margins.top
        self.finished: Future = Future()

    def set_font(self, font_name: str, font_size: float) -> None:
        self.font_name = font_name
        self.font_size = float(font_size)

    def current_line_height(self) -> float:
        ascent, descent = getAscentDescent(self.font_name, self.font_size)
        return ascent - descent

    def move_down(self, lines: float = 1) -> None:
        self.y += lines * self.current_line_height()

    def text(
        self,
        text: str,
        x: Optional[float] = None,
        y: Optional[float] = None,
        width: Optional[float] = None,
    ) -> None:
        if x is not None:
            self.x = x
        if y is not None:
            self.y = y
        if width is None:
            width = self.width - self.margins.right - self.x
        width = max(float(width), 1.0)

        lines: List[str] = []
        for paragraph in str(text).split("\n"):
            lines.extend(_wrap_words(self.canvas, paragraph, self.font_name, self.font_size, width))

        ascent, _ = getAscentDescent(self.font_name, self.font_size)
        line_height = self.current_line_height()
        self.canvas.setFont(self.font_name, self.font_size)
        self.canvas.setFillColor(colors.black)
        for line in lines:
            self.canvas.drawString(self.x, self.height - self.y - ascent, line)
            self.y += line_height

    def table(
        self,
        data: Sequence[Sequence[str]],
        x: Optional[float] = None,
        y: Optional[float] = None,
    ) -> None:
        """Draw ``data`` as a grid table sized from its content; the first row is the header."""
        if x is not None:
            self.x = x
        if y is not None:
            self.y = y

        cols = max((len(row) for row in data), default=0)
        if cols == 0:
            return
        # reportlab needs rectangular data
        rows = [list(row) + [""] * (cols - len(row)) for row in data]

        table = Table(rows)
        table.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (-1, -1), self.font_name),
            ("FONTSIZE", (0, 0), (-1, -1), self.font_size),
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(HEADER_FILL)),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor(GRID_COLOR)),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]))
        available = self.width - self.margins.right - self.x
        _, h = table.wrapOn(self.canvas, available, self.height)
        table.drawOn(self.canvas, self.x, self.height - self.y - h)
        self.y += h

    def end(self) -> None:
        """Finalize the PDF and close the stream; the outcome lands in ``finished``."""
        if self.finished.done():
            return
        try:
            self.canvas.showPage()
            self.canvas.save()
            self.stream.flush()
        except Exception as exc:
            self.finished.set_exception(exc)
            return
        finally:
            self.stream.close()
        self.finished.set_result(getattr(self.stream, "name", None))


def create_pdf_page(stream: BinaryIO, options: Optional[GenerationOptions] = None) -> PdfPage:
    options = options or GenerationOptions()
    return PdfPage(stream, page_size=PAGE_SIZES[options.page_size], margins=options.margins)
