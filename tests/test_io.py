"""
Tests for token loading, JSON helpers and progress tracking.
"""

import json
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from pdfxml.exceptions import ExtractionError
from pdfxml.utils.io import (
    ProcessingProgress,
    load_pdf_tokens,
    load_token_pages,
    load_json,
    save_json,
    detect_input_type
)
from pdfxml.utils.layout import Token


PAGE_DATA = {
    "number": 3,
    "width": 612,
    "height": 792,
    "tokens": [
        {"text": "Hello", "x": 72, "y": 700},
        {"text": "world", "x": 110, "y": 700},
    ]
}


class TestLoadTokenPages:
    """Test loading token dumps."""

    def test_pages_key(self, tmp_path):
        path = tmp_path / "tokens.json"
        path.write_text(json.dumps({"pages": [PAGE_DATA]}), encoding="utf-8")

        pages = load_token_pages(path)

        assert len(pages) == 1
        assert pages[0].number == 3
        assert pages[0].bbox.width == 612
        assert pages[0].tokens == [Token("Hello", 72, 700), Token("world", 110, 700)]

    def test_bare_list_numbers_default(self, tmp_path):
        """Pages without a number are numbered by position."""
        path = tmp_path / "tokens.json"
        path.write_text(json.dumps([{"tokens": []}, {"tokens": []}]), encoding="utf-8")

        pages = load_token_pages(path)

        assert [p.number for p in pages] == [1, 2]

    def test_malformed_token(self, tmp_path):
        path = tmp_path / "tokens.json"
        path.write_text(json.dumps([{"tokens": [{"text": "x"}]}]), encoding="utf-8")

        with pytest.raises(ExtractionError):
            load_token_pages(path)

    def test_pages_not_a_list(self, tmp_path):
        path = tmp_path / "tokens.json"
        path.write_text(json.dumps({"pages": "nope"}), encoding="utf-8")

        with pytest.raises(ExtractionError):
            load_token_pages(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "tokens.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ExtractionError) as exc_info:
            load_token_pages(path)

        assert exc_info.value.source == str(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_token_pages(tmp_path / "missing.json")


class TestJson:
    """Test JSON helpers."""

    def test_save_and_load(self, tmp_path):
        import numpy as np

        path = save_json({"value": np.int64(3), "ratio": np.float32(0.5)}, tmp_path / "a" / "b.json")

        assert load_json(path) == {"value": 3, "ratio": 0.5}

    def test_save_dataclass(self, tmp_path):
        path = save_json(Token("x", 1.0, 2.0), tmp_path / "token.json")

        assert load_json(path) == {"text": "x", "x": 1.0, "y": 2.0}


class TestLoadPdfTokens:
    """Test PDF text layer extraction."""

    def test_missing_pdf(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_pdf_tokens(tmp_path / "missing.pdf")

    def test_extract_words(self, tmp_path):
        fitz = pytest.importorskip("fitz")

        pdf_path = tmp_path / "sample.pdf"
        doc = fitz.open()
        page = doc.new_page(width=612, height=792)
        page.insert_text((72, 72), "Hello world")
        doc.save(str(pdf_path))
        doc.close()

        progress = ProcessingProgress()
        pages = load_pdf_tokens(pdf_path, progress=progress)

        assert len(pages) == 1
        assert pages[0].number == 1
        assert [t.text for t in pages[0].tokens] == ["Hello", "world"]
        # Text near the top of the page has a large y after flipping
        assert all(t.y > 792 / 2 for t in pages[0].tokens)
        assert progress.fraction == pytest.approx(0.2)

    def test_page_range(self, tmp_path):
        fitz = pytest.importorskip("fitz")

        pdf_path = tmp_path / "three.pdf"
        doc = fitz.open()
        for i in range(3):
            doc.new_page().insert_text((72, 72), f"Page {i + 1}")
        doc.save(str(pdf_path))
        doc.close()

        pages = load_pdf_tokens(pdf_path, first_page=2, last_page=3)

        assert [p.number for p in pages] == [2, 3]

    def test_not_a_pdf(self, tmp_path):
        pytest.importorskip("fitz")

        path = tmp_path / "broken.pdf"
        path.write_bytes(b"this is not a pdf")

        with pytest.raises(ExtractionError):
            load_pdf_tokens(path)


class TestProcessingProgress:
    """Test the progress channel."""

    def test_loading_share(self):
        seen = []
        progress = ProcessingProgress(observers=[seen.append])

        progress.loading(0.5)
        progress.start(2)
        progress.complete_page()
        progress.complete_page()
        progress.finish()

        assert seen == pytest.approx([0.1, 0.2, 0.6, 1.0])
        assert progress.percent_complete == pytest.approx(100.0)

    def test_never_decreases(self):
        seen = []
        progress = ProcessingProgress(observers=[seen.append])

        progress.start(4)
        progress.complete_page()
        progress.loading(0.1)

        assert seen == pytest.approx([0.2, 0.4])
        assert progress.fraction == pytest.approx(0.4)

    def test_errors(self):
        progress = ProcessingProgress()

        progress.add_error("Page 2 failed")

        assert progress.errors == ["Page 2 failed"]


class TestDetectInputType:
    """Test input type detection."""

    def test_types(self, tmp_path):
        pdf = tmp_path / "a.pdf"
        pdf.write_bytes(b"%PDF-1.4")
        tokens = tmp_path / "a.json"
        tokens.write_text("[]", encoding="utf-8")
        other = tmp_path / "a.txt"
        other.write_text("x", encoding="utf-8")

        assert detect_input_type(pdf) == "pdf"
        assert detect_input_type(tokens) == "tokens"
        assert detect_input_type(other) == "unknown"
        assert detect_input_type(tmp_path / "missing.pdf") == "unknown"
