"""
PDF Structure Reconstruction
============================

Infers document structure from positioned text tokens and serializes it
as XML.

Main components:
- Line grouping (tokens -> lines by vertical proximity)
- Table detection (column-aligned line runs)
- List detection (marker-prefixed line runs)
- Paragraph aggregation (sentence-boundary heuristics)
- Page scanning and document assembly
- XML / Markdown / JSON export
"""

__version__ = "1.0.0"
__author__ = "Document Reconstruction Team"

import threading
from typing import Optional, Sequence

from .config import PipelineConfig
from .utils.assembler import DocumentAssembler, Document
from .utils.export import to_xml
from .utils.layout import TokenPage


def convert(
    pages: Sequence[TokenPage],
    progress=None,
    config: Optional[PipelineConfig] = None,
    cancel_event: Optional[threading.Event] = None
) -> Document:
    """Convert token pages into a Document. See DocumentAssembler.convert."""
    return DocumentAssembler(config).convert(pages, progress=progress, cancel_event=cancel_event)


__all__ = ["convert", "to_xml", "Document", "TokenPage", "PipelineConfig"]
