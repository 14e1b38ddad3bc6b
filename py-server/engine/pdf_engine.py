"""
PDF Processing Engine - Core Coordinator

The PDFEngine owns the open document handles (pdfplumber/pdfminer for text
and rendering, pikepdf for annotations and content streams), hands out
cached page sources, and rasterizes pages for the viewer.

Usage:
    >>> from engine.pdf_engine import PDFEngine
    >>> from engine.config import EngineConfig
    >>>
    >>> config = EngineConfig(enable_caching=True)
    >>> with PDFEngine('document.pdf', config=config) as engine:
    ...     pages = engine.get_page_count()
    ...     print(f"Document has {pages} pages")
"""

import io
import logging
import os
from collections import OrderedDict
from pathlib import Path
from typing import Optional

import pdfplumber
import pikepdf
from pdfminer.pdfinterp import PDFResourceManager

from engine.config import EngineConfig
from engine.page_source import PdfPageSource
from utils.errors import ParseFailure
from utils.validation import PdfValidationError, comprehensive_pdf_validation

logger = logging.getLogger(__name__)

POINTS_PER_INCH = 72


class PDFEngine:
    """
    PDF document handle with resource management and page caching.

    Can be used as a context manager, or opened and closed explicitly by
    long-lived owners such as document sessions.

    Example:
        >>> with PDFEngine('document.pdf') as engine:
        ...     source = engine.get_page(1)
        ...     runs = source.get_text_runs()
    """

    def __init__(self, file_path: str, config: Optional[EngineConfig] = None):
        """
        Initialize PDF engine with file path and optional configuration.

        Note: Document is not opened until open() or entering the context manager.

        Args:
            file_path: Path to PDF file to process
            config: Engine configuration (uses defaults if None)

        Raises:
            FileNotFoundError: If file does not exist
            PdfValidationError: If configuration is invalid
        """
        self.file_path = file_path
        self.config = config or EngineConfig.default()

        if not os.path.exists(file_path):
            raise FileNotFoundError(f"PDF file not found: {file_path}")

        if not self.config.validate():
            raise PdfValidationError("Invalid engine configuration")

        # Resource handles (initialized in open)
        self._pdfplumber_doc = None
        self._pikepdf_doc = None
        self._resource_manager: Optional[PDFResourceManager] = None
        self._is_open = False

        # Page source caching (least recently used evicted first)
        self._page_cache: 'OrderedDict[int, PdfPageSource]' = OrderedDict()
        self._cache_enabled = self.config.enable_caching

        # Metadata
        self._page_count: Optional[int] = None
        self._file_size_mb: Optional[float] = None

        logger.debug(f"PDFEngine initialized for: {Path(file_path).name}")

    def open(self) -> 'PDFEngine':
        """
        Open the PDF and initialize resources.

        Returns:
            Self

        Raises:
            PdfValidationError: If PDF cannot be opened or is invalid
        """
        if self._is_open:
            return self

        try:
            logger.info(f"Opening PDF: {self.file_path}")

            if self.config.validate_on_open:
                self._validate_pdf_file()

            # pdfplumber wraps the pdfminer document used for text and rendering
            self._pdfplumber_doc = pdfplumber.open(self.file_path)

            # pikepdf for annotations and content stream scanning
            self._pikepdf_doc = pikepdf.open(self.file_path)

            self._resource_manager = PDFResourceManager(caching=self.config.enable_caching)

            self._page_count = len(self._pdfplumber_doc.pages)
            self._file_size_mb = os.path.getsize(self.file_path) / (1024 * 1024)

            self._is_open = True

            logger.info(
                f"PDF opened successfully: {self._page_count} pages, "
                f"{self._file_size_mb:.2f} MB"
            )

            return self

        except PdfValidationError:
            self._cleanup_resources()
            raise
        except Exception as e:
            logger.error(f"Failed to open PDF: {e}")
            self._cleanup_resources()
            raise PdfValidationError(f"Failed to open PDF: {str(e)}") from e

    def close(self) -> None:
        """Release all resources. Safe to call more than once."""
        if self._is_open:
            logger.info("Closing PDF engine")
        self._cleanup_resources()

    def __enter__(self) -> 'PDFEngine':
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        """
        Exit context manager - clean up all resources.

        Resources are cleaned up even if an exception occurred.
        """
        self.close()

        if exc_type is not None:
            logger.error(f"Exception during engine operation: {exc_val}")

        # Don't suppress exceptions
        return False

    def _validate_pdf_file(self) -> None:
        """
        Validate PDF file before processing.

        Raises:
            PdfValidationError: If validation fails
        """
        file_size_mb = os.path.getsize(self.file_path) / (1024 * 1024)
        if file_size_mb > self.config.max_file_size_mb:
            raise PdfValidationError(
                f"PDF file too large: {file_size_mb:.2f} MB "
                f"(max: {self.config.max_file_size_mb} MB)"
            )

        results = comprehensive_pdf_validation(self.file_path, self.config.max_file_size_mb)
        for warning in results['warnings']:
            logger.warning(f"PDF validation warning: {warning}")
        if not results['is_valid']:
            raise PdfValidationError(f"PDF validation failed: {'; '.join(results['errors'])}")

    def _cleanup_resources(self) -> None:
        """
        Clean up all resources (documents, cache).

        This method is idempotent and safe to call multiple times.
        """
        self._page_cache.clear()

        if self._pdfplumber_doc is not None:
            try:
                self._pdfplumber_doc.close()
            except Exception as e:
                logger.warning(f"Error closing pdfplumber document: {e}")
            finally:
                self._pdfplumber_doc = None

        if self._pikepdf_doc is not None:
            try:
                self._pikepdf_doc.close()
            except Exception as e:
                logger.warning(f"Error closing pikepdf document: {e}")
            finally:
                self._pikepdf_doc = None

        self._resource_manager = None
        self._is_open = False

    def _require_open(self) -> None:
        if not self._is_open:
            raise RuntimeError("Engine not opened - use within context manager")

    # Public API - Document Information

    def get_page_count(self) -> int:
        """
        Get total number of pages in document.

        Raises:
            RuntimeError: If engine not opened
        """
        self._require_open()
        return self._page_count

    # Public API - Resource Access (for page sources)

    @property
    def pdfplumber_document(self):
        """
        Access pdfplumber document.

        Raises:
            RuntimeError: If engine not opened
        """
        if not self._is_open or self._pdfplumber_doc is None:
            raise RuntimeError("Engine not opened - use within context manager")
        return self._pdfplumber_doc

    @property
    def pikepdf_document(self):
        """
        Access pikepdf document.

        Raises:
            RuntimeError: If engine not opened
        """
        if not self._is_open or self._pikepdf_doc is None:
            raise RuntimeError("Engine not opened - use within context manager")
        return self._pikepdf_doc

    @property
    def resource_manager(self) -> PDFResourceManager:
        """Shared pdfminer resource manager (font cache)"""
        if not self._is_open or self._resource_manager is None:
            raise RuntimeError("Engine not opened - use within context manager")
        return self._resource_manager

    # Public API - Pages

    def get_page(self, page_number: int) -> PdfPageSource:
        """
        Get the page source for a page, cached when caching is enabled.

        Args:
            page_number: 1-based page number

        Raises:
            RuntimeError: If engine not opened
            ParseFailure: If the page is out of range or cannot be resolved
        """
        self._require_open()

        if page_number < 1 or page_number > self._page_count:
            raise ParseFailure(page_number, f"Page {page_number} out of range (1-{self._page_count})")

        if self._cache_enabled and page_number in self._page_cache:
            self._page_cache.move_to_end(page_number)
            return self._page_cache[page_number]

        source = PdfPageSource(self, page_number)

        if self._cache_enabled and self.config.max_cache_pages > 0:
            if len(self._page_cache) >= self.config.max_cache_pages:
                evicted, _ = self._page_cache.popitem(last=False)
                logger.debug(f"Evicted page {evicted} from page cache")
            self._page_cache[page_number] = source

        return source

    def render_page(self, page_number: int, scale: float) -> bytes:
        """
        Rasterize a page at the given scale.

        Args:
            page_number: 1-based page number
            scale: Zoom factor (1.0 renders at 72 dpi)

        Returns:
            PNG bytes sized to the page viewport at `scale`

        Raises:
            RuntimeError: If engine not opened
            ValueError: If scale is not positive
            ParseFailure: If the page is out of range
        """
        self._require_open()

        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")
        if page_number < 1 or page_number > self._page_count:
            raise ParseFailure(page_number, f"Page {page_number} out of range (1-{self._page_count})")

        plumber_page = self._pdfplumber_doc.pages[page_number - 1]
        page_image = plumber_page.to_image(resolution=POINTS_PER_INCH * scale)

        buffer = io.BytesIO()
        page_image.original.save(buffer, format='PNG')
        png = buffer.getvalue()

        logger.debug(
            f"Rendered page {page_number} at scale {scale}: "
            f"{page_image.original.width}x{page_image.original.height}px, {len(png)} bytes"
        )
        return png

    # Status and Debugging

    def __repr__(self) -> str:
        """String representation for debugging."""
        status = "open" if self._is_open else "closed"
        pages = f"{self._page_count} pages" if self._page_count else "unknown pages"
        return f"PDFEngine({Path(self.file_path).name}, {status}, {pages})"
