"""
Document assembler module for document reconstruction.

Provides:
- Document data model (Document, Page)
- Pipeline orchestration over token pages (serial or thread pool)
- Progress reporting, cancellation and page failure policy
- Metrics calculation
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any, Sequence, Union

from ..config import PipelineConfig, get_config, JSON_SCHEMA_VERSION
from ..exceptions import NoPagesError, ConversionCancelled, PageProcessingError
from .io import ProcessingProgress, ProgressCallback
from .layout import TokenPage
from .lists import ListBlock
from .paragraphs import Paragraph
from .scanner import Block, PageScanner, block_type_of
from .tables import Table

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class Page:
    """A document page with its blocks in reading order."""
    page_number: int
    blocks: List[Block] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0
    status: str = "success"  # success, failed
    error: Optional[str] = None

    @property
    def paragraphs(self) -> List[str]:
        return [b.text for b in self.blocks if isinstance(b, Paragraph)]

    @property
    def tables(self) -> List[Table]:
        return [b for b in self.blocks if isinstance(b, Table)]

    @property
    def lists(self) -> List[ListBlock]:
        return [b for b in self.blocks if isinstance(b, ListBlock)]

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    def to_dict(self) -> Dict[str, Any]:
        blocks = []
        for block in self.blocks:
            block_type = block_type_of(block)
            entry = {"type": block_type.value if block_type else "unknown"}
            entry.update(block.to_dict())
            blocks.append(entry)

        result = {
            "number": self.page_number,
            "width": self.width,
            "height": self.height,
            "status": self.status,
            "blocks": blocks
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class DocumentMetrics:
    """Counts gathered after assembly."""
    paragraphs_total: int = 0
    tables_total: int = 0
    table_rows_total: int = 0
    lists_total: int = 0
    list_items_total: int = 0
    pages_processed: int = 0
    pages_failed: int = 0
    processing_time_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paragraphs": self.paragraphs_total,
            "tables": {
                "total": self.tables_total,
                "rows": self.table_rows_total
            },
            "lists": {
                "total": self.lists_total,
                "items": self.list_items_total
            },
            "pages_processed": self.pages_processed,
            "pages_failed": self.pages_failed,
            "processing_time_seconds": round(self.processing_time_seconds, 2)
        }


@dataclass
class Document:
    """Complete reconstructed document."""
    name: str
    pages: List[Page] = field(default_factory=list)
    created_at: str = ""
    metrics: Optional[DocumentMetrics] = None
    schema_version: str = JSON_SCHEMA_VERSION

    def __post_init__(self):
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "name": self.name,
            "created_at": self.created_at,
            "page_count": self.page_count,
            "pages": [p.to_dict() for p in self.pages],
            "metrics": self.metrics.to_dict() if self.metrics else {}
        }


# ============================================================================
# Document Assembler
# ============================================================================

class DocumentAssembler:
    """
    Orchestrates structure reconstruction over a document's pages.

    Pages share no state, so with ``max_workers > 1`` they are scanned in a
    thread pool and reassembled in input order. Any page failure aborts the
    whole conversion unless ``isolate_page_failures`` is set, in which case
    the page is kept with ``status="failed"`` and no blocks.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or get_config()
        self._scanner = None

    @property
    def scanner(self) -> PageScanner:
        if self._scanner is None:
            self._scanner = PageScanner.from_config(self.config)
        return self._scanner

    def process_page(self, token_page: TokenPage) -> Page:
        """
        Process a single page of tokens.

        Args:
            token_page: Tokens and bounding box of the page

        Returns:
            Page object with its blocks in reading order
        """
        start_time = time.time()

        blocks = self.scanner.scan_tokens(token_page.tokens)
        page = Page(
            page_number=token_page.number,
            blocks=blocks,
            width=token_page.bbox.width,
            height=token_page.bbox.height
        )

        elapsed = time.time() - start_time
        logger.info(
            f"Page {token_page.number}: {len(token_page.tokens)} tokens -> "
            f"{len(page.paragraphs)} paragraphs, {len(page.tables)} tables, "
            f"{len(page.lists)} lists ({elapsed:.3f}s)"
        )
        return page

    def _process_with_policy(self, token_page: TokenPage, progress: ProcessingProgress) -> Page:
        try:
            return self.process_page(token_page)
        except Exception as e:
            if not self.config.isolate_page_failures:
                raise PageProcessingError(
                    f"Page {token_page.number} failed: {e}",
                    page_number=token_page.number,
                    original_error=e
                ) from e
            progress.add_error(f"Page {token_page.number} failed: {e}")
            logger.warning(f"Marking page {token_page.number} as failed and continuing")
            return Page(
                page_number=token_page.number,
                width=token_page.bbox.width,
                height=token_page.bbox.height,
                status="failed",
                error=str(e)
            )

    def convert(
        self,
        pages: Sequence[TokenPage],
        progress: Union[ProcessingProgress, ProgressCallback, None] = None,
        cancel_event: Optional[threading.Event] = None,
        created_at: Optional[str] = None
    ) -> Document:
        """
        Convert token pages into a document.

        Args:
            pages: Token pages in document order
            progress: Progress channel, or a callable receiving fractions
            cancel_event: Set it to abort; partial results are discarded
            created_at: Creation timestamp override (ISO-8601)

        Returns:
            Document with one Page per input page, in input order

        Raises:
            NoPagesError: If no pages remain after the ``max_pages`` cut
            ConversionCancelled: If ``cancel_event`` was set
            PageProcessingError: If a page failed and failures are not isolated
        """
        start_time = time.time()

        pages = list(pages)
        if self.config.max_pages is not None:
            pages = pages[:self.config.max_pages]
        if not pages:
            raise NoPagesError()

        if progress is None:
            progress = ProcessingProgress()
        elif not isinstance(progress, ProcessingProgress):
            progress = ProcessingProgress(observers=[progress])

        progress.start(len(pages))
        logger.info(f"Converting {len(pages)} page(s) with {self.config.max_workers} worker(s)")

        if self.config.max_workers > 1 and len(pages) > 1:
            processed = self._convert_parallel(pages, progress, cancel_event)
        else:
            processed = self._convert_serial(pages, progress, cancel_event)

        self._check_cancelled(cancel_event, progress)

        doc = Document(
            name=self.config.document_name,
            pages=processed,
            created_at=created_at or self.config.created_at or ""
        )
        doc.metrics = self._calculate_metrics(doc, time.time() - start_time)

        progress.finish()
        logger.info(f"Assembled document '{doc.name}' with {doc.page_count} page(s)")
        return doc

    def _convert_serial(
        self,
        pages: List[TokenPage],
        progress: ProcessingProgress,
        cancel_event: Optional[threading.Event]
    ) -> List[Page]:
        processed = []
        for token_page in pages:
            self._check_cancelled(cancel_event, progress)
            processed.append(self._process_with_policy(token_page, progress))
            progress.complete_page()
        return processed

    def _convert_parallel(
        self,
        pages: List[TokenPage],
        progress: ProcessingProgress,
        cancel_event: Optional[threading.Event]
    ) -> List[Page]:
        results: Dict[int, Page] = {}

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {
                executor.submit(self._process_with_policy, token_page, progress): index
                for index, token_page in enumerate(pages)
            }
            try:
                for future in as_completed(futures):
                    self._check_cancelled(cancel_event, progress)
                    results[futures[future]] = future.result()
                    progress.complete_page()
            except Exception:
                for pending in futures:
                    pending.cancel()
                raise

        return [results[index] for index in range(len(pages))]

    def _check_cancelled(
        self,
        cancel_event: Optional[threading.Event],
        progress: ProcessingProgress
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Conversion cancelled after {progress.processed_pages} page(s)")
            raise ConversionCancelled(pages_completed=progress.processed_pages)

    def _calculate_metrics(self, doc: Document, processing_time: float) -> DocumentMetrics:
        """Calculate document-wide metrics."""
        metrics = DocumentMetrics()
        metrics.processing_time_seconds = processing_time
        metrics.pages_processed = doc.page_count

        for page in doc.pages:
            if page.failed:
                metrics.pages_failed += 1
            metrics.paragraphs_total += len(page.paragraphs)
            for table in page.tables:
                metrics.tables_total += 1
                metrics.table_rows_total += table.row_count
            for list_block in page.lists:
                metrics.lists_total += 1
                metrics.list_items_total += len(list_block.items)

        return metrics
