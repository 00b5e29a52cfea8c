"""
I/O utilities for the structure reconstruction pipeline.

Handles:
- Token extraction from PDF text layers (PyMuPDF)
- Token page loading from JSON dumps
- JSON serialization
- Directory management
- Progress tracking
"""

import json
import logging
import threading
from pathlib import Path
from typing import List, Union, Optional, Any, Callable
from dataclasses import asdict

import numpy as np

from ..config import ExtractionConfig
from ..exceptions import ExtractionError
from .layout import Token, TokenPage, BoundingBox

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


# ============================================================================
# Progress Tracking
# ============================================================================

class ProcessingProgress:
    """
    Progress channel for a conversion run.

    The first 20% belongs to document loading, the remaining 80% is split
    evenly over pages. Completed pages are counted in aggregate, so pages
    finishing out of order on worker threads still produce a monotonically
    non-decreasing fraction.
    """

    LOADING_SHARE = 0.2

    def __init__(
        self,
        total_pages: int = 0,
        observers: Optional[List[ProgressCallback]] = None
    ):
        self.total_pages = total_pages
        self.processed_pages = 0
        self.errors: List[str] = []
        self._observers: List[ProgressCallback] = list(observers or [])
        self._fraction = 0.0
        self._lock = threading.Lock()

    @property
    def fraction(self) -> float:
        return self._fraction

    @property
    def percent_complete(self) -> float:
        return self._fraction * 100

    def subscribe(self, observer: ProgressCallback) -> None:
        self._observers.append(observer)

    def start(self, total_pages: int) -> None:
        with self._lock:
            self.total_pages = total_pages
            self.processed_pages = 0
        self._report(self.LOADING_SHARE)

    def loading(self, fraction: float) -> None:
        """Report document loading progress (0..1 of the loading share)."""
        fraction = min(max(fraction, 0.0), 1.0)
        self._report(fraction * self.LOADING_SHARE)

    def complete_page(self) -> None:
        with self._lock:
            self.processed_pages += 1
            done = self.processed_pages
            total = self.total_pages
        if total > 0:
            self._report(self.LOADING_SHARE + (1 - self.LOADING_SHARE) * done / total)

    def finish(self) -> None:
        self._report(1.0)

    def add_error(self, error: str) -> None:
        with self._lock:
            self.errors.append(error)
        logger.error(error)

    def _report(self, fraction: float) -> None:
        with self._lock:
            if fraction <= self._fraction:
                return
            self._fraction = fraction
            observers = list(self._observers)
        for observer in observers:
            observer(fraction)


# ============================================================================
# Token Extraction
# ============================================================================

def load_pdf_tokens(
    pdf_path: Union[str, Path],
    config: Optional[ExtractionConfig] = None,
    first_page: Optional[int] = None,
    last_page: Optional[int] = None,
    progress: Optional[ProcessingProgress] = None
) -> List[TokenPage]:
    """
    Extract positioned word tokens from a PDF text layer using PyMuPDF.

    Args:
        pdf_path: Path to the PDF file
        config: Extraction settings (coordinate flipping, word sorting)
        first_page: First page to extract (1-indexed, None = first)
        last_page: Last page to extract (1-indexed, None = last)
        progress: Optional progress channel; receives the loading share

    Returns:
        One TokenPage per extracted page

    Raises:
        FileNotFoundError: If the PDF file doesn't exist
        ExtractionError: If the PDF cannot be opened or read
    """
    config = config or ExtractionConfig()
    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF file not found: {pdf_path}")

    import fitz

    try:
        doc = fitz.open(str(pdf_path))
    except Exception as e:
        raise ExtractionError(f"Failed to open PDF: {e}", source=str(pdf_path), original_error=e)

    try:
        start = (first_page or 1) - 1
        stop = min(last_page or doc.page_count, doc.page_count)
        count = max(stop - start, 0)
        logger.info(f"Extracting tokens from {count} page(s) of {pdf_path}")

        pages = []
        for i, page_index in enumerate(range(start, stop), 1):
            page = doc[page_index]
            height = page.rect.height
            tokens = []
            for word in page.get_text("words", sort=config.sort_words):
                x0, y0, x1, y1, text = word[:5]
                y = y1 if config.use_baseline else y0
                if config.flip_y:
                    y = height - y
                tokens.append(Token(text=text, x=float(x0), y=float(y)))

            pages.append(TokenPage(
                number=page_index + 1,
                tokens=tokens,
                bbox=BoundingBox(width=float(page.rect.width), height=float(height))
            ))
            if progress is not None:
                progress.loading(i / count)

        return pages
    except Exception as e:
        raise ExtractionError(f"Failed to extract tokens: {e}", source=str(pdf_path), original_error=e)
    finally:
        doc.close()


def load_token_pages(json_path: Union[str, Path]) -> List[TokenPage]:
    """
    Load token pages from a JSON dump.

    Accepts either ``{"pages": [...]}`` or a bare list of pages, each page
    being ``{"number", "width", "height", "tokens": [{"text", "x", "y"}]}``.
    """
    data = load_json(json_path)
    raw_pages = data.get("pages", []) if isinstance(data, dict) else data

    if not isinstance(raw_pages, list):
        raise ExtractionError("Token dump must contain a list of pages", source=str(json_path))

    try:
        pages = [TokenPage.from_dict(p, default_number=i) for i, p in enumerate(raw_pages, 1)]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ExtractionError(f"Malformed token dump: {e}", source=str(json_path), original_error=e)

    logger.info(f"Loaded {len(pages)} page(s) of tokens from {json_path}")
    return pages


# ============================================================================
# JSON Serialization
# ============================================================================

class EnhancedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy values and dataclasses."""

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if hasattr(obj, '__dataclass_fields__'):
            return asdict(obj)
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(
    data: Any,
    output_path: Union[str, Path],
    indent: int = 2,
    ensure_ascii: bool = False
) -> Path:
    """
    Save data to a JSON file.

    Args:
        data: Data to serialize (dict, list, dataclass, etc.)
        output_path: Path to save the JSON file
        indent: Indentation level for pretty printing
        ensure_ascii: If True, escape non-ASCII characters

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8', errors='replace') as f:
        json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii, cls=EnhancedJSONEncoder)

    logger.debug(f"Saved JSON: {output_path}")
    return output_path


def load_json(json_path: Union[str, Path]) -> Any:
    """Load data from a JSON file."""
    json_path = Path(json_path)
    if not json_path.exists():
        raise FileNotFoundError(f"JSON file not found: {json_path}")

    try:
        with open(json_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Invalid JSON: {e}", source=str(json_path), original_error=e)


# ============================================================================
# Directory Management
# ============================================================================

def ensure_dir(path: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


# ============================================================================
# File Type Detection
# ============================================================================

def detect_input_type(input_path: Union[str, Path]) -> str:
    """
    Detect the type of an input file.

    Returns:
        One of: 'pdf', 'tokens', 'unknown'
    """
    input_path = Path(input_path)

    if not input_path.is_file():
        return 'unknown'

    suffix = input_path.suffix.lower()
    if suffix == '.pdf':
        return 'pdf'
    elif suffix == '.json':
        return 'tokens'

    return 'unknown'
