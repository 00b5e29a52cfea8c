"""
Configuration and constants for the structure reconstruction pipeline.

This module provides:
- Detector thresholds (line grouping, tables, lists)
- Token extraction settings
- Pipeline settings (workers, failure policy, document metadata)
"""

import os
from dataclasses import dataclass, field
from typing import Optional
import logging

logger = logging.getLogger("pdfxml")


# ============================================================================
# Detector Configuration
# ============================================================================

@dataclass
class LineConfig:
    """Line grouping configuration."""
    # Tokens whose y differs from the previous token by less than this share a line
    vertical_tolerance: float = 2.0


@dataclass
class TableConfig:
    """Table detection configuration."""
    min_columns: int = 3
    # Every gap must lie within this fraction of the mean gap
    gap_tolerance_ratio: float = 0.5
    # Row token must be this close to a column anchor to count as aligned
    anchor_tolerance: float = 10.0
    # Slack when assigning a token to the rightmost column anchor
    cell_tolerance: float = 5.0
    min_rows: int = 2
    max_consecutive_misses: int = 2


@dataclass
class ListConfig:
    """List detection configuration."""
    # Continuation lines must start this close to the previous line
    indent_tolerance: float = 10.0
    min_items: int = 2


@dataclass
class ExtractionConfig:
    """
    Settings handed to the token extraction adapter.

    Passed explicitly to the loaders instead of being set globally.
    """
    # PyMuPDF reports top-left origin; flip to PDF user space (y grows upwards)
    flip_y: bool = True
    # Use the word's baseline (bottom edge) as its y coordinate
    use_baseline: bool = True
    sort_words: bool = False


# ============================================================================
# Pipeline Configuration
# ============================================================================

@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    line: LineConfig = field(default_factory=LineConfig)
    table: TableConfig = field(default_factory=TableConfig)
    lists: ListConfig = field(default_factory=ListConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)

    # Document metadata
    document_name: str = "PDF Document"
    created_at: Optional[str] = None  # None = UTC timestamp at conversion time

    # Global settings
    max_workers: int = 1  # > 1 processes pages in a thread pool
    isolate_page_failures: bool = False
    debug_mode: bool = False
    max_pages: Optional[int] = None  # None = process all pages


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    workers = os.environ.get("PDFXML_WORKERS")
    if workers:
        try:
            config.max_workers = max(1, int(workers))
        except ValueError:
            logger.warning(f"Ignoring invalid PDFXML_WORKERS value: {workers!r}")

    if os.environ.get("PDFXML_DEBUG", "").lower() == "true":
        config.debug_mode = True

    if os.environ.get("PDFXML_ISOLATE_PAGES", "").lower() == "true":
        config.isolate_page_failures = True

    name = os.environ.get("PDFXML_DOCUMENT_NAME")
    if name:
        config.document_name = name

    created_at = os.environ.get("PDFXML_CREATED_AT")
    if created_at:
        config.created_at = created_at

    return config


# ============================================================================
# Output Format
# ============================================================================

XML_ENCODING = "UTF-8"
JSON_SCHEMA_VERSION = "1.0"
