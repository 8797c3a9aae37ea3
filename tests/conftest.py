from __future__ import annotations

from typing import List, Optional, Tuple

import pytest


class RecordingPage:
    """Stands in for PdfPage: records draw calls instead of drawing."""

    def __init__(self, width: float = 612.0, font_size: float = 12.0, line_height: float = 14.0) -> None:
        self.width = width
        self.height = 792.0
        self.font_size = font_size
        self.line_height = line_height
        self.x = 50.0
        self.y = 50.0
        self.calls: List[Tuple] = []

    def current_line_height(self) -> float:
        return self.line_height

    def move_down(self, lines: float = 1) -> None:
        self.calls.append(("move_down",))
        self.y += lines * self.line_height

    def text(self, text: str, x: Optional[float] = None, y: Optional[float] = None, width: Optional[float] = None) -> None:
        if x is not None:
            self.x = x
        if y is not None:
            self.y = y
        self.calls.append(("text", text, self.x, self.y, width))
        self.y += self.line_height

    def table(self, data, x: Optional[float] = None, y: Optional[float] = None) -> None:
        if x is not None:
            self.x = x
        if y is not None:
            self.y = y
        self.calls.append(("table", [list(row) for row in data], self.x, self.y))
        self.y += self.line_height * len(data)

    def texts(self) -> List[Tuple]:
        return [call for call in self.calls if call[0] == "text"]


@pytest.fixture
def page() -> RecordingPage:
    return RecordingPage()
