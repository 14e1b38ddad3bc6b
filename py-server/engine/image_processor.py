"""Image Processor for PDFEngine

Image paint operators become image elements at an estimated, stacked
position. True placement would need CTM tracking through the operator
stream, which is not done: the geometry is an approximation, linear in
scale, and recomputed from scratch on every build.
"""

import logging
from typing import List, Optional, TYPE_CHECKING

from engine.base_processor import BaseProcessor
from engine.config import ImageProcessorOptions
from models.pdf_types import DocumentElement, ElementType

if TYPE_CHECKING:
    from engine.page_source import PageSource

logger = logging.getLogger(__name__)

IMAGE_SUBTYPE = "embedded"


class ImageProcessor(BaseProcessor):
    """
    Image extraction processor.

    Element i is placed at (origin_x, origin_y + i * vertical_step) with a
    square placeholder size, all multiplied by scale.
    """

    kind = ElementType.IMAGE

    def __init__(self, options: Optional[ImageProcessorOptions] = None):
        super().__init__(options or ImageProcessorOptions())

    def extract(self, page: 'PageSource', scale: float) -> List[DocumentElement]:
        opts = self.options
        image_ops = page.get_image_ops()

        elements = []
        for index, op in enumerate(image_ops):
            elements.append(DocumentElement(
                id=f"image-{page.page_number}-{index}",
                type=ElementType.IMAGE,
                subtype=IMAGE_SUBTYPE,
                content=f"Image {index + 1}",
                x=opts.origin_x * scale,
                y=opts.origin_y * scale + index * opts.vertical_step * scale,
                width=opts.placeholder_size * scale,
                height=opts.placeholder_size * scale,
                pageNumber=page.page_number,
                scale=scale,
                metadata={
                    'operatorIndex': op.operator_index,
                    'imageIndex': index,
                    'name': op.name,
                },
            ))

        logger.debug(f"Page {page.page_number}: {len(elements)} image elements (estimated placement)")
        return elements
