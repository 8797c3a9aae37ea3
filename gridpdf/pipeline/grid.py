from __future__ import annotations

from typing import List, NamedTuple, Tuple

from ..errors import LayoutError


COLUMNS = 12
DEFAULT_MARGIN = 36.0  # 0.5 inch on each side
DEFAULT_LINE_HEIGHT_MULTIPLIER = 1.2


class ColumnCalculation(NamedTuple):
    x: float
    width: float
    usable_width: float
    column_width: float


def calculate_columns(
    page_width: float,
    start_column: int = 1,
    span: int = 1,
    margin: float = DEFAULT_MARGIN,
) -> ColumnCalculation:
    """
    Map a grid reference to page coordinates.

    The usable width between the two margins is split into 12 equal columns;
    ``x`` is the left edge of ``start_column`` and ``width`` covers ``span``
    columns. Call ``validate_columns`` first, this function does not check.
    """
    usable_width = page_width - 2 * margin
    column_width = usable_width / COLUMNS
    x = margin + (start_column - 1) * column_width
    width = span * column_width
    return ColumnCalculation(x=x, width=width, usable_width=usable_width, column_width=column_width)


def validate_columns(start_column: int, span: int) -> None:
    if start_column < 1 or start_column > COLUMNS:
        raise LayoutError(f"startColumn must be between 1 and {COLUMNS}, got {start_column}")
    if span < 1:
        raise LayoutError(f"columns must be at least 1, got {span}")
    if start_column + span - 1 > COLUMNS:
        raise LayoutError(
            f"startColumn ({start_column}) + columns ({span}) exceeds maximum columns ({COLUMNS})"
        )


def calculate_line_height(font_size: float, multiplier: float = DEFAULT_LINE_HEIGHT_MULTIPLIER) -> float:
    return font_size * multiplier


def calculate_line_position(start_y: float, line_index: int, line_height: float) -> float:
    # line_index is 0-based
    return start_y + line_index * line_height


def split_columns(x: float, total_width: float, count: int, gap: float) -> List[Tuple[float, float]]:
    """Split a span into ``count`` equal sub-columns separated by ``gap``."""
    if count <= 0:
        return []
    sub_width = (total_width - (count - 1) * gap) / count
    return [(x + index * (sub_width + gap), sub_width) for index in range(count)]
