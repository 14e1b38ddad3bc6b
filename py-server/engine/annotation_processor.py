"""Annotation Processor for PDFEngine

Every annotation on the page, widgets included, becomes an annotation
element with a minimum clickable size.
"""

import logging
from typing import List, Optional, TYPE_CHECKING

from engine.base_processor import BaseProcessor
from engine.config import AnnotationProcessorOptions
from models.pdf_types import DocumentElement, ElementType, RawAnnotation
from utils.pdf_transforms import rect_to_viewport

if TYPE_CHECKING:
    from engine.page_source import PageSource

logger = logging.getLogger(__name__)

UNKNOWN_SUBTYPE = "Unknown"


def annotation_content(annotation: RawAnnotation) -> str:
    """Display text: contents, then title, then a synthesized label"""
    if annotation.contents:
        return annotation.contents
    if annotation.title:
        return annotation.title
    return f"{annotation.subtype or UNKNOWN_SUBTYPE} annotation"


class AnnotationProcessor(BaseProcessor):
    """Annotation extraction processor. Ids are `annotation-{page}-{index}`."""

    kind = ElementType.ANNOTATION

    def __init__(self, options: Optional[AnnotationProcessorOptions] = None):
        super().__init__(options or AnnotationProcessorOptions())

    def extract(self, page: 'PageSource', scale: float) -> List[DocumentElement]:
        viewport = page.get_viewport(scale)
        annotations = page.get_annotations()

        elements = []
        for index, annotation in enumerate(annotations):
            x, y, width, height = rect_to_viewport(annotation.rect, viewport.page_height, scale)
            subtype = annotation.subtype or UNKNOWN_SUBTYPE

            elements.append(DocumentElement(
                id=f"annotation-{page.page_number}-{index}",
                type=ElementType.ANNOTATION,
                subtype=subtype,
                content=annotation_content(annotation),
                x=max(0.0, x),
                y=max(0.0, y),
                width=max(self.options.min_width, width),
                height=max(self.options.min_height, height),
                pageNumber=page.page_number,
                scale=scale,
                metadata={
                    'annotationType': subtype,
                    'hasContent': bool(annotation.contents),
                    'url': annotation.url,
                    'dest': annotation.dest,
                    'originalRect': list(annotation.rect),
                },
            ))

        logger.debug(f"Page {page.page_number}: {len(elements)} annotation elements")
        return elements
