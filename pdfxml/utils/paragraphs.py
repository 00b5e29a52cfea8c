"""
Paragraph aggregation for lines not claimed by the table or list detectors.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)

SENTENCE_TERMINATORS = (".", "!", "?")


@dataclass
class Paragraph:
    """A run of line texts folded into one paragraph."""
    text: str

    def to_markdown(self) -> str:
        return self.text

    def to_dict(self):
        return {"text": self.text}


def is_sentence_end(text: str) -> bool:
    return text.strip().endswith(SENTENCE_TERMINATORS)


class ParagraphAggregator:
    """
    Keeps a running paragraph buffer.

    A line starts a new paragraph when the buffer already ends a sentence;
    otherwise it is appended to the buffer.
    """

    def __init__(self):
        self._buffer = ""

    @property
    def pending(self) -> bool:
        return bool(self._buffer)

    def feed(self, text: str) -> Optional[Paragraph]:
        """Add a line's text. Returns the paragraph completed by this line, if any."""
        if self._buffer and is_sentence_end(self._buffer):
            completed = Paragraph(self._buffer)
            self._buffer = text
            return completed

        self._buffer = f"{self._buffer} {text}" if self._buffer else text
        return None

    def flush(self) -> Optional[Paragraph]:
        """Emit the buffered paragraph, if any, and reset."""
        if not self._buffer:
            return None
        completed = Paragraph(self._buffer)
        self._buffer = ""
        return completed


def aggregate_paragraphs(texts: List[str]) -> List[Paragraph]:
    """Fold a sequence of line texts into paragraphs."""
    aggregator = ParagraphAggregator()
    paragraphs = [p for p in (aggregator.feed(t) for t in texts) if p is not None]
    last = aggregator.flush()
    if last is not None:
        paragraphs.append(last)
    return paragraphs
