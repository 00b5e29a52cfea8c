"""
End-to-end integration tests for the PDF structure reconstruction pipeline.
"""

import pytest
import json
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from lxml import etree


def page_tokens(number):
    """Token dump for one page: paragraph, table, list."""
    tokens = [
        {"text": f"Report page {number}.", "x": 72, "y": 720},
        {"text": "Item", "x": 72, "y": 680},
        {"text": "Qty", "x": 172, "y": 680},
        {"text": "Price", "x": 272, "y": 680},
        {"text": "Apple", "x": 72, "y": 660},
        {"text": "3", "x": 172, "y": 660},
        {"text": "1.20", "x": 272, "y": 660},
        {"text": "Pear", "x": 72, "y": 640},
        {"text": "5", "x": 172, "y": 640},
        {"text": "0.80", "x": 272, "y": 640},
        {"text": "Notes follow below.", "x": 100, "y": 580},
        {"text": "- keep cool", "x": 100, "y": 540},
        {"text": "- eat soon", "x": 100, "y": 520},
    ]
    return {"number": number, "width": 612, "height": 792, "tokens": tokens}


class TestEndToEnd:
    """End-to-end integration tests."""

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary working directory."""
        with tempfile.TemporaryDirectory(prefix="pdfxml_test_") as tmp_dir:
            yield Path(tmp_dir)

    @pytest.fixture
    def token_dump(self, temp_dir):
        """Write a three page token dump."""
        path = temp_dir / "report.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"pages": [page_tokens(i) for i in range(1, 4)]}, f)
        return path

    def run(self, argv):
        from pdfxml.cli import setup_argparser, run_pipeline

        args = setup_argparser().parse_args(argv)
        return run_pipeline(args)

    def test_full_pipeline(self, token_dump, temp_dir):
        """Token dump in, XML out."""
        output_dir = temp_dir / "out"

        exit_code = self.run(["--input", str(token_dump), "--output", str(output_dir), "--quiet"])

        assert exit_code == 0
        xml_path = output_dir / "report.xml"
        assert xml_path.exists()

        root = etree.parse(str(xml_path)).getroot()
        assert root.get("name") == "report"
        assert root.findtext("metadata/pages") == "3"

        content = root.find("pages/page/content")
        assert [child.tag for child in content] == ["paragraph", "table", "paragraph", "list"]
        assert content.find("table").get("rows") == "2"
        assert content.find("list").get("type") == "unordered"

    def test_all_formats(self, token_dump, temp_dir):
        output_dir = temp_dir / "out"

        exit_code = self.run([
            "--input", str(token_dump),
            "--output", str(output_dir),
            "--format", "all",
            "--name", "Quarterly",
            "--workers", "2",
            "--quiet",
        ])

        assert exit_code == 0
        assert (output_dir / "report.xml").exists()
        assert (output_dir / "report.md").exists()

        with open(output_dir / "report.json", encoding="utf-8") as f:
            data = json.load(f)
        assert data["name"] == "Quarterly"
        assert data["metrics"]["tables"]["total"] == 3
        assert data["metrics"]["lists"]["items"] == 6

    def test_page_selection(self, token_dump, temp_dir):
        output_dir = temp_dir / "out"

        exit_code = self.run([
            "--input", str(token_dump),
            "--output", str(output_dir),
            "--pages", "2-3",
            "--quiet",
        ])

        assert exit_code == 0
        root = etree.parse(str(output_dir / "report.xml")).getroot()
        assert [p.get("number") for p in root.findall("pages/page")] == ["2", "3"]

    def test_fixed_timestamp_is_reproducible(self, token_dump, temp_dir):
        """Two runs with the same --created-at write identical XML."""
        outputs = []
        for run_dir in ("first", "second"):
            exit_code = self.run([
                "--input", str(token_dump),
                "--output", str(temp_dir / run_dir),
                "--created-at", "2024-03-01T12:00:00Z",
                "--quiet",
            ])
            assert exit_code == 0
            outputs.append((temp_dir / run_dir / "report.xml").read_bytes())

        assert outputs[0] == outputs[1]
        root = etree.fromstring(outputs[0])
        assert root.findtext("metadata/createdAt") == "2024-03-01T12:00:00Z"

    def test_empty_dump_fails(self, temp_dir):
        path = temp_dir / "empty.json"
        path.write_text(json.dumps({"pages": []}), encoding="utf-8")

        assert self.run(["--input", str(path), "--output", str(temp_dir / "out"), "--quiet"]) == 1

    def test_unsupported_input(self, temp_dir):
        path = temp_dir / "notes.txt"
        path.write_text("hello", encoding="utf-8")

        assert self.run(["--input", str(path), "--output", str(temp_dir / "out"), "--quiet"]) == 1

    def test_pdf_input(self, temp_dir):
        """A real PDF text layer goes through the same pipeline."""
        fitz = pytest.importorskip("fitz")

        pdf_path = temp_dir / "letter.pdf"
        doc = fitz.open()
        page = doc.new_page(width=612, height=792)
        page.insert_text((72, 72), "Dear reader.")
        page.insert_text((72, 100), "Thanks for reading.")
        doc.save(str(pdf_path))
        doc.close()

        exit_code = self.run(["--input", str(pdf_path), "--output", str(temp_dir / "out"), "--quiet"])

        assert exit_code == 0
        root = etree.parse(str(temp_dir / "out" / "letter.xml")).getroot()
        paragraphs = [p.text for p in root.iter("paragraph")]
        assert paragraphs == ["Dear reader.", "Thanks for reading."]


class TestPageRange:
    """Test page range parsing."""

    def test_ranges(self):
        from pdfxml.cli import parse_page_range

        assert parse_page_range("1-3", 10) == [1, 2, 3]
        assert parse_page_range("1,3,5", 10) == [1, 3, 5]
        assert parse_page_range("4-20", 6) == [4, 5, 6]
        assert parse_page_range("2, 2, 9", 5) == [2]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
