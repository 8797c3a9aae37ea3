from __future__ import annotations

from .grid import (
    calculate_columns,
    calculate_line_height,
    calculate_line_position,
    split_columns,
    validate_columns,
)
from .page import PdfPage
from .structure import MultiColumnTextBlock, MultilineTextBlock, TableBlock, TextBlock


def draw_text_block(page: PdfPage, block: TextBlock) -> PdfPage:
    validate_columns(block.start_column, block.columns)
    x, width, _, _ = calculate_columns(page.width, block.start_column, block.columns)

    page.text(block.text, x, block.y, width=width)
    page.move_down()
    return page


def draw_multiline_text_block(page: PdfPage, block: MultilineTextBlock) -> PdfPage:
    """
    Draw ``block.lines`` top to bottom from ``block.y``.

    With ``line_spacing`` every line after the first sits exactly
    ``line_spacing`` below the previous one. Without it the page's own line
    flow places them (``move_down`` then draw at the cursor).
    """
    validate_columns(block.start_column, block.columns)
    x, width, _, _ = calculate_columns(page.width, block.start_column, block.columns)

    current_y = block.y
    for index, line in enumerate(block.lines):
        if index == 0:
            page.text(line, x, current_y, width=width)
        elif block.line_spacing is not None:
            current_y += block.line_spacing
            page.text(line, x, current_y, width=width)
        else:
            page.move_down()
            page.text(line, width=width)

    page.move_down()
    return page


def draw_multi_column_text_block(page: PdfPage, block: MultiColumnTextBlock) -> PdfPage:
    """
    Draw independent columns side by side inside one grid span.

    The span is split into ``len(block.columns)`` equal sub-columns separated
    by ``column_gap``. Each column may start lower (``start_line``) and use
    its own ``line_spacing``; the block height is taken from the tallest
    column measured in default line heights.
    """
    validate_columns(block.start_column, block.column_span)
    start_x, total_width, _, _ = calculate_columns(page.width, block.start_column, block.column_span)

    default_line_height = calculate_line_height(page.font_size)
    slots = split_columns(start_x, total_width, len(block.columns), block.column_gap)

    max_lines = 0
    for column in block.columns:
        max_lines = max(max_lines, column.start_line + len(column.lines) - 1)

    for column, (column_x, column_width) in zip(block.columns, slots):
        spacing = column.line_spacing if column.line_spacing is not None else default_line_height
        column_start_y = calculate_line_position(block.y, column.start_line - 1, spacing)
        for line_index, line in enumerate(column.lines):
            line_y = calculate_line_position(column_start_y, line_index, spacing)
            page.text(line, column_x, line_y, width=column_width)

    page.y = block.y + max_lines * default_line_height + default_line_height
    return page


def draw_table_block(page: PdfPage, block: TableBlock) -> PdfPage:
    # tables size themselves from content; only the start column comes from the grid
    validate_columns(block.start_column, 1)
    x = calculate_columns(page.width, block.start_column, 1).x

    page.table([list(block.headers)] + [list(row) for row in block.rows], x=x, y=block.y)
    page.move_down()
    return page
