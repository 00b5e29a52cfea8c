"""
Tests for layout module (tokens, lines, line grouping).
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pdfxml.utils.layout import Token, Line, TokenPage, BoundingBox, LineGrouper, group_lines


class TestToken:
    """Test Token class."""

    def test_token_is_immutable(self):
        """Tokens cannot be modified after creation."""
        token = Token("Hello", 10.0, 700.0)

        with pytest.raises(Exception):
            token.text = "Changed"

    def test_token_from_dict(self):
        """Test creation from a JSON-style mapping."""
        token = Token.from_dict({"text": "Hi", "x": 5, "y": "12.5"})

        assert token == Token("Hi", 5.0, 12.5)
        assert token.to_dict() == {"text": "Hi", "x": 5.0, "y": 12.5}


class TestLine:
    """Test Line class."""

    def test_tokens_sorted_by_x(self):
        """Tokens within a line are ordered left to right."""
        line = Line([Token("world", 60, 100), Token("Hello", 0, 100)])

        assert [t.text for t in line.tokens] == ["Hello", "world"]
        assert line.text == "Hello world"
        assert line.leading_x == 0

    def test_empty_line(self):
        """Lines of blank tokens have empty text."""
        line = Line([Token("  ", 0, 100)])

        assert line.text == ""
        assert line.is_empty()

    def test_line_reference_y(self):
        """Line y is the topmost token's y."""
        line = Line([Token("a", 0, 100), Token("b", 10, 99)])

        assert line.y == 100
        assert Line().y is None


class TestTokenPage:
    """Test TokenPage class."""

    def test_from_dict(self):
        """Page bounding box and tokens are read from a mapping."""
        page = TokenPage.from_dict({
            "number": 3,
            "width": 612,
            "height": 792,
            "tokens": [{"text": "A", "x": 1, "y": 2}]
        })

        assert page.number == 3
        assert page.bbox == BoundingBox(612.0, 792.0)
        assert page.tokens == [Token("A", 1.0, 2.0)]

    def test_default_number(self):
        """Missing page number falls back to the given default."""
        page = TokenPage.from_dict({"tokens": []}, default_number=7)

        assert page.number == 7
        assert page.bbox == BoundingBox(0.0, 0.0)


class TestLineGrouper:
    """Test line grouping."""

    def test_groups_by_vertical_position(self):
        """Tokens on the same baseline share a line; lines go top to bottom."""
        tokens = [
            Token("Next", 0, 80),
            Token("world", 50, 100),
            Token("Hello", 0, 100),
        ]

        lines = group_lines(tokens)

        assert [line.text for line in lines] == ["Hello world", "Next"]

    def test_tolerance_is_pairwise(self):
        """Drift through intermediate tokens keeps them on one line."""
        tokens = [
            Token("a", 0, 100.0),
            Token("b", 10, 98.5),
            Token("c", 20, 97.0),
        ]

        lines = group_lines(tokens)

        assert len(lines) == 1
        assert lines[0].text == "a b c"

    def test_tolerance_boundary_splits(self):
        """Tokens exactly two units apart are never merged."""
        lines = group_lines([Token("top", 0, 100), Token("bottom", 0, 98)])

        assert [line.text for line in lines] == ["top", "bottom"]

    def test_just_inside_tolerance_merges(self):
        """Tokens less than two units apart are merged."""
        lines = group_lines([Token("left", 0, 100), Token("right", 50, 98.1)])

        assert len(lines) == 1

    def test_line_sorted_by_x_despite_y_jitter(self):
        """A slightly lower token on the left still comes first in its line."""
        lines = group_lines([Token("A", 50, 100), Token("B", 0, 99)])

        assert lines[0].text == "B A"

    def test_input_order_irrelevant(self):
        """Grouping does not depend on the input order of tokens."""
        tokens = [Token("c", 20, 50), Token("a", 0, 90), Token("b", 10, 50)]

        forward = [line.text for line in group_lines(tokens)]
        backward = [line.text for line in group_lines(list(reversed(tokens)))]

        assert forward == backward == ["a", "b c"]

    def test_empty_input(self):
        """No tokens, no lines."""
        assert group_lines([]) == []

    def test_custom_tolerance(self):
        """A wider tolerance merges lines further apart."""
        grouper = LineGrouper(vertical_tolerance=5.0)

        lines = grouper.group([Token("a", 0, 100), Token("b", 10, 96)])

        assert len(lines) == 1
