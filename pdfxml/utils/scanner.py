"""
Page scanner: classifies a page's lines into paragraph, table and list blocks.

Single greedy pass over the lines. At each line the table detector is tried
first, then the list detector, and the line falls through to the paragraph
aggregator when both reject it. A line that could start either a table or a
list therefore becomes a table.
"""

import logging
from typing import List, Union, Iterable, Optional

from .layout import BlockType, Line, Token, LineGrouper
from .tables import Table, TableDetector
from .lists import ListBlock, ListDetector
from .paragraphs import Paragraph, ParagraphAggregator

logger = logging.getLogger(__name__)

Block = Union[Paragraph, Table, ListBlock]


def block_type_of(block: Block) -> Optional[BlockType]:
    """Map a block instance to its BlockType, None for unknown objects."""
    if isinstance(block, Paragraph):
        return BlockType.PARAGRAPH
    if isinstance(block, Table):
        return BlockType.TABLE
    if isinstance(block, ListBlock):
        return BlockType.LIST
    return None


class PageScanner:
    """Runs the detectors over one page and returns its blocks in reading order."""

    def __init__(
        self,
        line_grouper: Optional[LineGrouper] = None,
        table_detector: Optional[TableDetector] = None,
        list_detector: Optional[ListDetector] = None
    ):
        self.line_grouper = line_grouper or LineGrouper()
        self.table_detector = table_detector or TableDetector()
        self.list_detector = list_detector or ListDetector()

    @classmethod
    def from_config(cls, config) -> 'PageScanner':
        return cls(
            line_grouper=LineGrouper(config.line.vertical_tolerance),
            table_detector=TableDetector.from_config(config.table),
            list_detector=ListDetector.from_config(config.lists)
        )

    def scan_tokens(self, tokens: Iterable[Token]) -> List[Block]:
        return self.scan(self.line_grouper.group(tokens))

    def scan(self, lines: List[Line]) -> List[Block]:
        blocks: List[Block] = []
        paragraphs = ParagraphAggregator()

        def flush_paragraph():
            paragraph = paragraphs.flush()
            if paragraph is not None:
                blocks.append(paragraph)

        index = 0
        while index < len(lines):
            line = lines[index]
            text = line.text

            if not text:
                index += 1
                continue

            if self.table_detector.is_potential_table(line):
                result = self.table_detector.extract(lines, index)
                if result.table is not None:
                    flush_paragraph()
                    blocks.append(result.table)
                    index = result.next_index
                    continue

            if self.list_detector.is_potential_list_item(line):
                result = self.list_detector.extract(lines, index)
                if result.list_block is not None:
                    flush_paragraph()
                    blocks.append(result.list_block)
                    index = result.next_index
                    continue

            completed = paragraphs.feed(text)
            if completed is not None:
                blocks.append(completed)
            index += 1

        flush_paragraph()
        return blocks
