from __future__ import annotations

import io
import logging
import tempfile
import unittest
from pathlib import Path

import fitz
import pytest

from gridpdf.errors import RenderError, StructureParseError
from gridpdf.pipeline.page import create_pdf_page
from gridpdf.pipeline.render_pdf import generate_pdf_from_structure, render_block, render_blocks
from gridpdf.pipeline.structure import GenerationOptions, TextBlock, UnknownBlock, load_document, parse_document

from conftest import RecordingPage


def _document(*blocks: dict):
    return parse_document({"type": "pdfDocument", "blocks": list(blocks)})


class DispatchTests(unittest.TestCase):
    def test_failure_reports_index_and_stops(self) -> None:
        page = RecordingPage()
        blocks = [
            TextBlock(text="first", y=100),
            TextBlock(text="bad", start_column=13),
            TextBlock(text="third", y=300),
        ]
        with self.assertRaises(RenderError) as ctx:
            render_blocks(page, blocks)
        self.assertIn("Failed to render block 1", str(ctx.exception))
        self.assertIn("textBlock", str(ctx.exception))
        drawn = [call[1] for call in page.texts()]
        self.assertEqual(drawn, ["first"])

    def test_render_block_wraps_with_type(self) -> None:
        page = RecordingPage()
        with self.assertRaises(RenderError) as ctx:
            render_block(page, TextBlock(text="x", start_column=5, columns=9))
        self.assertTrue(str(ctx.exception).startswith("Failed to render textBlock block:"))

    def test_render_block_accepts_raw_dicts(self) -> None:
        page = RecordingPage()
        render_block(page, {"type": "textBlock", "text": "raw", "y": 90})
        self.assertEqual(page.texts()[0][1], "raw")

    def test_blocks_render_in_order(self) -> None:
        page = RecordingPage()
        render_blocks(page, [TextBlock(text=str(i), y=100 + i) for i in range(5)])
        self.assertEqual([call[1] for call in page.texts()], ["0", "1", "2", "3", "4"])


def test_unknown_block_is_skipped(caplog) -> None:
    page = RecordingPage()
    document = _document(
        {"type": "imageBlock", "src": "logo.png"},
        {"type": "textBlock", "text": "after"},
    )
    assert isinstance(document.blocks[0], UnknownBlock)
    with caplog.at_level(logging.WARNING):
        render_blocks(page, document.blocks)
    assert "Unknown block type: imageBlock" in caplog.text
    assert [call[1] for call in page.texts()] == ["after"]


class GenerateFromStructureTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_writes_pdf_into_new_directory(self) -> None:
        out = self.root / "nested" / "dir" / "doc.pdf"
        document = _document(
            {"type": "textBlock", "text": "Hello grid", "startColumn": 2, "columns": 6, "y": 100},
            {"type": "multilineTextBlock", "lines": ["one", "two"], "y": 150, "lineSpacing": 18},
            {"type": "multiColumnTextBlock", "columns": [{"lines": ["left"]}, {"lines": ["right"], "startLine": 2}], "y": 220},
            {"type": "tableBlock", "headers": ["Name", "Age"], "rows": [["Ada", "36"]], "y": 300},
        )
        result = generate_pdf_from_structure(document, out)
        self.assertTrue(result.success, result.error)
        self.assertEqual(result.output_path, str(out))
        self.assertTrue(out.read_bytes().startswith(b"%PDF"))
        with fitz.open(out) as doc:
            text = doc[0].get_text()
        for expected in ("Hello grid", "one", "two", "left", "right", "Ada"):
            self.assertIn(expected, text)

    def test_page_size_option(self) -> None:
        out = self.root / "legal.pdf"
        result = generate_pdf_from_structure(_document(), out, GenerationOptions(page_size="legal"))
        self.assertTrue(result.success, result.error)
        with fitz.open(out) as doc:
            self.assertAlmostEqual(doc[0].rect.width, 612, places=0)
            self.assertAlmostEqual(doc[0].rect.height, 1008, places=0)

    def test_render_failure_becomes_result(self) -> None:
        out = self.root / "bad.pdf"
        document = _document({"type": "textBlock", "text": "x", "startColumn": 12, "columns": 2})
        result = generate_pdf_from_structure(document, out)
        self.assertFalse(result.success)
        self.assertTrue(result.error.startswith("PDF generation failed:"))
        self.assertIn("block 0", result.error)
        self.assertIsNone(result.output_path)

    def test_auto_end_disabled_leaves_page_open(self) -> None:
        out = self.root / "open.pdf"
        options = GenerationOptions(auto_end=False)
        result = generate_pdf_from_structure(_document({"type": "textBlock", "text": "first"}), out, options)
        self.assertTrue(result.success)
        self.assertIsNotNone(result.page)
        self.assertFalse(result.page.finished.done())

        render_block(result.page, TextBlock(text="added later", columns=6, y=200))
        result.page.end()
        self.assertEqual(result.page.finished.result(), str(out))
        with fitz.open(out) as doc:
            self.assertIn("added later", doc[0].get_text())


def test_options_accept_camel_case() -> None:
    options = GenerationOptions.model_validate({"pageSize": "letter", "autoEnd": False, "margins": {"top": 20}})
    assert options.page_size == "letter"
    assert options.auto_end is False
    assert options.margins.top == 20
    assert options.margins.left == 50


def test_unsupported_page_size_rejected() -> None:
    with pytest.raises(ValueError):
        GenerationOptions(page_size="A3")


def test_load_document_reports_bad_input() -> None:
    document = load_document('{"blocks": [{"type": "textBlock", "text": "hi"}]}')
    assert isinstance(document.blocks[0], TextBlock)

    with pytest.raises(StructureParseError, match="not valid JSON"):
        load_document('{"blocks": [')
    with pytest.raises(StructureParseError, match="not a valid PDF document"):
        load_document('{"blocks": [{"type": "textBlock", "text": "hi", "startColumn": "left"}]}')


def test_structure_may_be_a_plain_mapping(tmp_path: Path) -> None:
    out = tmp_path / "mapping.pdf"
    structure = {"type": "pdfDocument", "blocks": [{"type": "textBlock", "text": "hi", "columns": 4}]}
    result = generate_pdf_from_structure(structure, out)
    assert result.success, result.error
    with fitz.open(out) as doc:
        assert "hi" in doc[0].get_text()


def test_invalid_mapping_creates_no_file(tmp_path: Path) -> None:
    out = tmp_path / "missing" / "bad.pdf"
    result = generate_pdf_from_structure({"type": "pdfDocument"}, out)
    assert result.success is False
    assert result.error.startswith("PDF generation failed:")
    assert not out.parent.exists()


def test_end_closes_stream_when_save_fails(monkeypatch) -> None:
    stream = io.BytesIO()
    page = create_pdf_page(stream)

    def broken_save() -> None:
        raise OSError("disk full")

    monkeypatch.setattr(page.canvas, "save", broken_save)
    page.end()
    assert stream.closed
    assert isinstance(page.finished.exception(), OSError)
