"""
Table detection module for document reconstruction.

Provides:
- Table candidacy test (near-uniform horizontal spacing)
- Row extraction against header column anchors
- Cell assignment
- Multiple output formats (Markdown, dict)
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Sequence

import numpy as np

from .layout import Line

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class Table:
    """
    A table block: header cells plus data rows, one cell per column.

    ``filler_rows`` holds indices into ``rows`` of lines that did not align
    with the columns but sat between two aligned rows. They keep their text
    in the table and are left out of ``row_count``.
    """
    header: List[str]
    rows: List[List[str]] = field(default_factory=list)
    filler_rows: List[int] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows) - len(self.filler_rows)

    def is_filler(self, index: int) -> bool:
        return index in self.filler_rows

    @property
    def column_count(self) -> int:
        return len(self.header)

    @property
    def cells(self) -> List[str]:
        """All cell texts, header first, row by row."""
        result = list(self.header)
        for row in self.rows:
            result.extend(row)
        return result

    def to_markdown(self) -> str:
        """Build Markdown table representation."""
        if self.column_count == 0:
            return ""

        lines = [
            "| " + " | ".join(self._escape_markdown(c) for c in self.header) + " |",
            "| " + " | ".join("---" for _ in self.header) + " |",
        ]
        for row in self.rows:
            lines.append("| " + " | ".join(self._escape_markdown(c) for c in row) + " |")

        return "\n".join(lines)

    def _escape_markdown(self, text: str) -> str:
        return text.replace("|", "\\|")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": self.row_count,
            "columns": self.column_count,
            "header": list(self.header),
            "data": [list(r) for r in self.rows],
            "filler_rows": list(self.filler_rows),
        }


@dataclass
class TableExtraction:
    """Outcome of an extraction attempt. ``table`` is None on rejection."""
    table: Optional[Table]
    next_index: int


# ============================================================================
# Table Detector
# ============================================================================

class TableDetector:
    """
    Detects column-aligned runs of lines.

    A line is a table candidate when it has at least ``min_columns`` tokens
    spaced near-uniformly. The candidate becomes the header, its token x
    positions the column anchors, and following lines are accepted as rows
    while enough of their tokens sit on an anchor.
    """

    def __init__(
        self,
        min_columns: int = 3,
        gap_tolerance_ratio: float = 0.5,
        anchor_tolerance: float = 10.0,
        cell_tolerance: float = 5.0,
        min_rows: int = 2,
        max_consecutive_misses: int = 2
    ):
        self.min_columns = min_columns
        self.gap_tolerance_ratio = gap_tolerance_ratio
        self.anchor_tolerance = anchor_tolerance
        self.cell_tolerance = cell_tolerance
        self.min_rows = min_rows
        self.max_consecutive_misses = max_consecutive_misses

    @classmethod
    def from_config(cls, config) -> 'TableDetector':
        return cls(
            min_columns=config.min_columns,
            gap_tolerance_ratio=config.gap_tolerance_ratio,
            anchor_tolerance=config.anchor_tolerance,
            cell_tolerance=config.cell_tolerance,
            min_rows=config.min_rows,
            max_consecutive_misses=config.max_consecutive_misses
        )

    def is_potential_table(self, line: Line) -> bool:
        """Check whether a line's tokens are spaced like table columns."""
        if len(line) < self.min_columns:
            return False

        gaps = np.diff(np.asarray(line.x_positions, dtype=float))
        mean_gap = gaps.mean()
        if mean_gap <= 0:
            return False

        return bool(np.all(np.abs(gaps - mean_gap) < mean_gap * self.gap_tolerance_ratio))

    def is_table_row(self, line: Line, anchors: Sequence[float]) -> bool:
        """Check whether at least half of a line's tokens sit on column anchors."""
        if len(line) == 0 or line.is_empty():
            return False

        xs = np.asarray(line.x_positions, dtype=float)
        anchor_array = np.asarray(anchors, dtype=float)

        distances = np.abs(xs[:, None] - anchor_array[None, :])
        aligned = int(np.any(distances < self.anchor_tolerance, axis=1).sum())

        return aligned >= min(len(xs), len(anchor_array)) / 2

    def assign_cells(self, line: Line, anchors: Sequence[float]) -> List[str]:
        """Distribute a line's tokens over the columns, one string per column."""
        anchor_array = np.asarray(anchors, dtype=float)
        cells = ["" for _ in range(len(anchor_array))]

        for token in line.tokens:
            # Rightmost anchor at or left of the token (with slack)
            column = int(np.searchsorted(anchor_array, token.x + self.cell_tolerance, side="right")) - 1
            column = max(column, 0)
            cells[column] = f"{cells[column]} {token.text}" if cells[column] else token.text

        return [c.strip() for c in cells]

    def extract(self, lines: Sequence[Line], start: int) -> TableExtraction:
        """
        Extract a table whose header is ``lines[start]``.

        Args:
            lines: All lines of the page, top to bottom
            start: Index of the candidate header line

        Returns:
            TableExtraction with the table and the index of the first line
            after it, or no table and ``start + 1`` when too few rows match
        """
        header_line = lines[start]
        anchors = header_line.x_positions
        header = [t.text.strip() for t in header_line.tokens]

        rows: List[List[str]] = []
        filler_rows: List[int] = []
        qualifying = 0
        misses = 0
        pending: List[Line] = []
        last_row_index = start

        index = start + 1
        while index < len(lines):
            line = lines[index]

            if self.is_table_row(line, anchors):
                # A lone miss between two rows stays inside the table
                for skipped in pending:
                    if not skipped.is_empty():
                        filler_rows.append(len(rows))
                        rows.append(self.assign_cells(skipped, anchors))
                pending = []

                rows.append(self.assign_cells(line, anchors))
                qualifying += 1
                misses = 0
                last_row_index = index
            else:
                misses += 1
                if misses >= self.max_consecutive_misses:
                    break
                pending.append(line)

            index += 1

        if qualifying < self.min_rows:
            logger.debug(
                f"Rejected table candidate at line {start}: "
                f"{qualifying} matching row(s), need {self.min_rows}"
            )
            return TableExtraction(table=None, next_index=start + 1)

        table = Table(header=header, rows=rows, filler_rows=filler_rows)
        logger.debug(
            f"Extracted table at line {start}: "
            f"{table.row_count} rows x {table.column_count} columns"
        )
        return TableExtraction(table=table, next_index=last_row_index + 1)


# ============================================================================
# Convenience Functions
# ============================================================================

def is_potential_table(line: Line) -> bool:
    """Check a line against the default table candidacy test."""
    return TableDetector().is_potential_table(line)


def extract_table(lines: Sequence[Line], start: int) -> TableExtraction:
    """Extract a table with default thresholds."""
    return TableDetector().extract(lines, start)
