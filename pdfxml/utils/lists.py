"""
List detection module for document reconstruction.

Recognizes runs of marker-prefixed lines (``1.``, ``a.``, ``-``, ``*``, ``•``)
and folds indented continuation lines into the preceding item.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Sequence

from .layout import Line

logger = logging.getLogger(__name__)

NUMERIC_MARKER = re.compile(r"^\d+\.")
BULLET_MARKER = re.compile(r"^[•\-*]")
LETTER_MARKER = re.compile(r"^[a-z]\.")

MARKER_PREFIX = re.compile(r"^(?:\d+|[a-z]|[•\-*])[.:]?\s*")


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class ListBlock:
    """An ordered or unordered list of item texts."""
    ordered: bool
    items: List[str] = field(default_factory=list)

    @property
    def list_type(self) -> str:
        return "ordered" if self.ordered else "unordered"

    def to_markdown(self) -> str:
        if self.ordered:
            return "\n".join(f"{i}. {item}" for i, item in enumerate(self.items, 1))
        return "\n".join(f"- {item}" for item in self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.list_type, "items": list(self.items)}


@dataclass
class ListExtraction:
    """Outcome of an extraction attempt. ``list_block`` is None on rejection."""
    list_block: Optional[ListBlock]
    next_index: int


def is_potential_list_item(text: str) -> bool:
    """Check whether text starts with a numeric, bullet or lettered marker."""
    return bool(
        NUMERIC_MARKER.match(text)
        or BULLET_MARKER.match(text)
        or LETTER_MARKER.match(text)
    )


def strip_marker(text: str) -> str:
    """Remove the list marker prefix from an item's text."""
    return MARKER_PREFIX.sub("", text, count=1)


# ============================================================================
# List Detector
# ============================================================================

class ListDetector:
    """
    Extracts lists starting at a marker line.

    The first line decides the list type: a numeric marker makes an ordered
    list, anything else an unordered one.
    """

    def __init__(self, indent_tolerance: float = 10.0, min_items: int = 2):
        self.indent_tolerance = indent_tolerance
        self.min_items = min_items

    @classmethod
    def from_config(cls, config) -> 'ListDetector':
        return cls(indent_tolerance=config.indent_tolerance, min_items=config.min_items)

    def is_potential_list_item(self, line: Line) -> bool:
        return is_potential_list_item(line.text)

    def extract(self, lines: Sequence[Line], start: int) -> ListExtraction:
        """
        Extract a list whose first item is ``lines[start]``.

        Returns:
            ListExtraction with the list and the index of the first line after
            it, or no list and ``start + 1`` when fewer than ``min_items``
            items were found
        """
        ordered = bool(NUMERIC_MARKER.match(lines[start].text))
        items: List[str] = []

        index = start
        while index < len(lines):
            line = lines[index]
            text = line.text

            if is_potential_list_item(text):
                items.append(strip_marker(text))
            else:
                previous_x = lines[index - 1].leading_x if index > 0 else 0.0
                if items and abs(line.leading_x - previous_x) < self.indent_tolerance:
                    items[-1] = f"{items[-1]} {text}" if text else items[-1]
                else:
                    break

            index += 1

        if len(items) < self.min_items:
            logger.debug(f"Rejected list candidate at line {start}: {len(items)} item(s)")
            return ListExtraction(list_block=None, next_index=start + 1)

        list_block = ListBlock(ordered=ordered, items=items)
        logger.debug(f"Extracted {list_block.list_type} list at line {start}: {len(items)} items")
        return ListExtraction(list_block=list_block, next_index=index)
