"""
Utility modules for the structure reconstruction pipeline.
"""

from .io import load_pdf_tokens, load_token_pages, save_json, load_json, ensure_dir, ProcessingProgress
from .layout import Token, Line, TokenPage, BoundingBox, BlockType, LineGrouper, group_lines
from .tables import TableDetector, Table, is_potential_table, extract_table
from .lists import ListDetector, ListBlock, is_potential_list_item
from .paragraphs import ParagraphAggregator, Paragraph
from .scanner import PageScanner
from .assembler import DocumentAssembler, Document, Page
from .export import XmlSerializer, MarkdownExporter, DocumentExporter, to_xml

__all__ = [
    # IO
    "load_pdf_tokens", "load_token_pages", "save_json", "load_json", "ensure_dir",
    "ProcessingProgress",
    # Layout
    "Token", "Line", "TokenPage", "BoundingBox", "BlockType", "LineGrouper", "group_lines",
    # Detectors
    "TableDetector", "Table", "is_potential_table", "extract_table",
    "ListDetector", "ListBlock", "is_potential_list_item",
    "ParagraphAggregator", "Paragraph",
    "PageScanner",
    # Assembly
    "DocumentAssembler", "Document", "Page",
    # Export
    "XmlSerializer", "MarkdownExporter", "DocumentExporter", "to_xml",
]
