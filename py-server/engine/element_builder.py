"""
Element Builder - per-page and whole-document element construction.

Runs the per-kind processors over a page source in fixed order (text,
annotations, images, form fields) and concatenates their output. A failing
kind is logged and skipped; a page that cannot be parsed yields an empty
element list and the document build moves on to the next page.

Usage:
    >>> builder = ElementBuilder.from_config(EngineConfig())
    >>> with PDFEngine('book.pdf') as engine:
    ...     pages = builder.build_document_elements(engine, scale=1.5)
"""

import logging
from typing import Callable, List, Optional, TYPE_CHECKING

from engine.annotation_processor import AnnotationProcessor
from engine.base_processor import ProcessorRegistry
from engine.config import (
    AnnotationProcessorOptions,
    EngineConfig,
    FormFieldProcessorOptions,
    ImageProcessorOptions,
    PageRange,
    TextProcessorOptions,
)
from engine.form_field_processor import FormFieldProcessor
from engine.image_processor import ImageProcessor
from engine.text_processor import TextProcessor
from models.pdf_types import DocumentElement
from utils.errors import ExtractionKindFailure, ParseFailure

if TYPE_CHECKING:
    from engine.page_source import PageSource
    from engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)


class ElementBuilder:
    """
    Builds document elements from page sources.

    The builder is stateless between calls; processors are initialized once
    when the builder is created.
    """

    def __init__(self, registry: ProcessorRegistry):
        if registry.processor_count == 0:
            raise ValueError("ElementBuilder needs at least one processor")
        self._registry = registry
        self._registry.initialize_all()
        logger.debug(f"ElementBuilder ready: {registry}")

    @classmethod
    def from_config(cls, config: Optional[EngineConfig] = None) -> 'ElementBuilder':
        """
        Create a builder with the processors enabled in an EngineConfig.

        Registration order is the output order: text, annotation, image, form.
        """
        config = config or EngineConfig.default()
        registry = ProcessorRegistry()

        if config.enable_text_processor:
            options = TextProcessorOptions.from_dict(config.text_processor_options)
            registry.register('text', TextProcessor(options))

        if config.enable_annotation_processor:
            options = AnnotationProcessorOptions.from_dict(config.annotation_processor_options)
            registry.register('annotation', AnnotationProcessor(options))

        if config.enable_image_processor:
            options = ImageProcessorOptions.from_dict(config.image_processor_options)
            registry.register('image', ImageProcessor(options))

        if config.enable_form_field_processor:
            options = FormFieldProcessorOptions.from_dict(config.form_field_processor_options)
            registry.register('form', FormFieldProcessor(options))

        return cls(registry)

    @property
    def processor_names(self) -> List[str]:
        return self._registry.processor_names

    def build_page_elements(self, page: 'PageSource', scale: float) -> List[DocumentElement]:
        """
        Build the ordered element list for one page.

        Args:
            page: Page source
            scale: Zoom factor

        Returns:
            Text, annotation, image and form-field elements, in that order.
            Kinds that failed are missing from the list.
        """
        elements: List[DocumentElement] = []

        for processor in self._registry.ordered():
            if not processor.options.enabled:
                continue
            try:
                elements.extend(processor.run(page, scale))
            except ExtractionKindFailure as e:
                logger.warning(f"Skipping {e.kind} elements on page {e.page_number}: {e}")

        logger.debug(f"Page {page.page_number}: built {len(elements)} elements at scale {scale}")
        return elements

    def build_document_elements(
        self,
        engine: 'PDFEngine',
        scale: float,
        page_range: Optional[PageRange] = None,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> List[List[DocumentElement]]:
        """
        Build element lists for a page range, one page at a time.

        Args:
            engine: Open PDFEngine
            scale: Zoom factor
            page_range: Pages to build (all pages if None)
            should_continue: Checked before each page; returning False stops early

        Returns:
            One element list per page in the range. A page that failed to
            parse contributes an empty list. When stopped early the result
            covers only the pages built so far.
        """
        page_range = page_range or PageRange.all_pages()
        page_numbers = page_range.to_page_numbers(engine.get_page_count())

        pages: List[List[DocumentElement]] = []
        for page_number in page_numbers:
            if should_continue is not None and not should_continue():
                logger.debug(f"Document build stopped before page {page_number}")
                break

            try:
                source = engine.get_page(page_number)
                pages.append(self.build_page_elements(source, scale))
            except ParseFailure as e:
                logger.error(f"Failed to parse page {page_number}, no elements for this page: {e}", exc_info=True)
                pages.append([])
            except Exception as e:
                failure = ParseFailure(page_number, f"Unexpected error on page {page_number}: {e}")
                logger.error(f"{failure}", exc_info=True)
                pages.append([])

        total = sum(len(page) for page in pages)
        logger.info(f"Built {total} elements across {len(pages)} pages at scale {scale}")
        return pages

    def close(self) -> None:
        """Release processor resources"""
        self._registry.cleanup_all()
