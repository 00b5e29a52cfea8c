"""
Exceptions raised by the structure reconstruction pipeline.

Hierarchy:
- PdfXmlError (base)
  - ExtractionError (token extraction failed, whole conversion aborted)
  - NoPagesError (empty page sequence)
  - ConversionCancelled (cancellation observed, partial results discarded)
  - PageProcessingError (a single page failed)

Detector rejections (too few table rows, too few list items) are normal
control flow and never raise.
"""

from typing import Optional


class PdfXmlError(Exception):
    """Base class for all pdfxml errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ExtractionError(PdfXmlError):
    """Raised when tokens cannot be extracted from the source document."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message, original_error=original_error)
        self.source = source


class NoPagesError(PdfXmlError):
    """Raised when a conversion is requested for zero pages."""

    def __init__(self, message: str = "Cannot convert a document with no pages"):
        super().__init__(message)


class ConversionCancelled(PdfXmlError):
    """Raised when a conversion is cancelled before it completes."""

    def __init__(self, message: str = "Conversion cancelled", pages_completed: int = 0):
        super().__init__(message)
        self.pages_completed = pages_completed


class PageProcessingError(PdfXmlError):
    """Raised when a page fails and page failures are not isolated."""

    def __init__(
        self,
        message: str,
        page_number: int,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message, original_error=original_error)
        self.page_number = page_number
