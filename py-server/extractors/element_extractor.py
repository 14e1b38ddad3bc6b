"""
PDF Element Extractor

Stateless extraction API used by the HTTP endpoints: open a document,
build the interactive elements for a page range at a scale, close it.

Uses PDFEngine + ElementBuilder for all extraction operations.
"""

import logging
from typing import Dict, List, Optional

from engine.config import EngineConfig, PageRange
from engine.element_builder import ElementBuilder
from engine.pdf_engine import PDFEngine
from models.pdf_types import DocumentElement, ElementExtractionOptions
from utils.validation import PdfValidationError, ResourceManager

DEFAULT_START_PAGE = 1
DEFAULT_SCALE = 1.0

logger = logging.getLogger(__name__)


def engine_config_from_options(options: Optional[ElementExtractionOptions] = None) -> EngineConfig:
    """Map the simplified API options onto a full engine configuration"""
    options = options or ElementExtractionOptions()
    return EngineConfig(
        enable_text_processor=options.extract_text,
        enable_annotation_processor=options.extract_annotations,
        enable_image_processor=options.extract_images,
        enable_form_field_processor=options.extract_form_fields,
        text_processor_options={
            'line_tolerance': options.line_tolerance,
            'line_height_ratio': options.line_height_ratio,
        },
    )


def extract_elements(
    file_path: str,
    scale: float = DEFAULT_SCALE,
    start_page: int = DEFAULT_START_PAGE,
    end_page: Optional[int] = None,
    options: Optional[Dict] = None,
) -> List[List[DocumentElement]]:
    """
    Extract interactive document elements, one list per page.

    Pages that fail to parse yield empty lists; only document-level
    failures raise.

    Args:
        file_path: Path to the PDF file
        scale: Zoom factor for viewport geometry
        start_page: First page (1-based)
        end_page: Last page, inclusive (None for end of document)
        options: ElementExtractionOptions as a dict

    Raises:
        PdfValidationError: If the document cannot be opened or the request is invalid
        ProcessingTimeoutError: If extraction runs past the configured timeout
        MemoryLimitError: If process memory exceeds its limit
    """
    if scale <= 0:
        raise PdfValidationError(f"scale must be positive, got {scale}")

    try:
        extraction_options = ElementExtractionOptions(**(options or {}))
        page_range = PageRange(start=max(DEFAULT_START_PAGE, start_page), end=end_page)
    except ValueError as e:
        raise PdfValidationError(f"Invalid extraction request: {e}") from e

    engine_config = engine_config_from_options(extraction_options)
    if not engine_config.validate():
        raise PdfValidationError("At least one element kind must be enabled")

    builder = ElementBuilder.from_config(engine_config)
    try:
        with ResourceManager(max_time_seconds=engine_config.timeout_seconds) as resources, \
                PDFEngine(file_path, config=engine_config) as engine:
            def within_limits() -> bool:
                resources.check_limits()
                return True

            logger.info(
                f"Extracting elements: {engine.get_page_count()} total pages, "
                f"{page_range}, scale {scale}, kinds {builder.processor_names}"
            )
            pages = builder.build_document_elements(engine, scale, page_range, should_continue=within_limits)
    finally:
        builder.close()

    logger.info(f"Extraction complete: {len(pages)} pages processed")
    return pages


def render_page_image(file_path: str, page_number: int, scale: float = DEFAULT_SCALE) -> bytes:
    """
    Render a single page to PNG.

    Raises:
        PdfValidationError: If the document cannot be opened
        ParseFailure: If the page does not exist
        ValueError: If scale is not positive
    """
    with PDFEngine(file_path) as engine:
        return engine.render_page(page_number, scale)
