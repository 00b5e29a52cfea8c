"""
Layout module for document reconstruction.

Provides:
- Positioned token and line data classes
- Block type identifiers
- Line grouping (tokens -> top-to-bottom lines)

Coordinates follow PDF user space: x grows to the right, y grows upwards,
so the top of the page has the largest y.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Iterable
from enum import Enum

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes and Enums
# ============================================================================

class BlockType(Enum):
    """Types of document blocks."""
    PARAGRAPH = "paragraph"
    TABLE = "table"
    LIST = "list"


@dataclass(frozen=True)
class Token:
    """A piece of text placed at (x, y) on a page."""
    text: str
    x: float
    y: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Token':
        return cls(str(data["text"]), float(data["x"]), float(data["y"]))

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "x": self.x, "y": self.y}


@dataclass
class BoundingBox:
    """Page bounding box. Accepted for future heuristics, unused by detectors."""
    width: float = 0.0
    height: float = 0.0


@dataclass
class Line:
    """Tokens sharing a vertical band, ordered left to right."""
    tokens: List[Token] = field(default_factory=list)

    def __post_init__(self):
        self.tokens = sorted(self.tokens, key=lambda t: t.x)

    def __len__(self) -> int:
        return len(self.tokens)

    @property
    def text(self) -> str:
        return " ".join(t.text for t in self.tokens).strip()

    @property
    def x_positions(self) -> List[float]:
        return [t.x for t in self.tokens]

    @property
    def leading_x(self) -> float:
        return self.tokens[0].x if self.tokens else 0.0

    @property
    def y(self) -> Optional[float]:
        """Reference y of the line (its first token in sweep order)."""
        if not self.tokens:
            return None
        return max(t.y for t in self.tokens)

    def is_empty(self) -> bool:
        return not self.text


@dataclass
class TokenPage:
    """Input for one page as handed over by the extraction collaborator."""
    number: int
    tokens: List[Token] = field(default_factory=list)
    bbox: BoundingBox = field(default_factory=BoundingBox)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_number: int = 1) -> 'TokenPage':
        return cls(
            number=int(data.get("number", default_number)),
            tokens=[Token.from_dict(t) for t in data.get("tokens", [])],
            bbox=BoundingBox(
                width=float(data.get("width", 0.0)),
                height=float(data.get("height", 0.0))
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "width": self.bbox.width,
            "height": self.bbox.height,
            "tokens": [t.to_dict() for t in self.tokens]
        }


# ============================================================================
# Line Grouper
# ============================================================================

class LineGrouper:
    """
    Groups a page's tokens into lines by vertical proximity.

    Tokens are swept top to bottom (descending y, then ascending x). A new
    line starts whenever a token's y differs from the previous token's y by
    at least ``vertical_tolerance``. The comparison is pairwise, so a line
    whose baseline drifts slowly keeps growing.
    """

    def __init__(self, vertical_tolerance: float = 2.0):
        self.vertical_tolerance = vertical_tolerance

    def group(self, tokens: Iterable[Token]) -> List[Line]:
        ordered = sorted(tokens, key=lambda t: (-t.y, t.x))

        lines: List[Line] = []
        current: List[Token] = []
        previous_y: Optional[float] = None

        for token in ordered:
            if previous_y is not None and abs(token.y - previous_y) >= self.vertical_tolerance:
                lines.append(Line(current))
                current = []
            current.append(token)
            previous_y = token.y

        if current:
            lines.append(Line(current))

        logger.debug(f"Grouped {len(ordered)} tokens into {len(lines)} lines")
        return lines


def group_lines(tokens: Iterable[Token], vertical_tolerance: float = 2.0) -> List[Line]:
    """Group tokens into top-to-bottom lines, each ordered by x."""
    return LineGrouper(vertical_tolerance).group(tokens)
