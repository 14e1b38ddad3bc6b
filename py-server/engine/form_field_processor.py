"""Form Field Processor for PDFEngine

Widget annotations that carry a field type become form-field elements.
The index in the id is the annotation's position among all annotations on
the page, so a widget's annotation and form-field elements share it.
"""

import logging
from typing import List, Optional, TYPE_CHECKING

from engine.base_processor import BaseProcessor
from engine.config import FormFieldProcessorOptions
from models.pdf_types import DocumentElement, ElementType
from utils.pdf_transforms import rect_to_viewport

if TYPE_CHECKING:
    from engine.page_source import PageSource

logger = logging.getLogger(__name__)

FORM_FIELD_SUBTYPE = "widget"


class FormFieldProcessor(BaseProcessor):
    """Form-field extraction processor. Ids are `form-{page}-{annotationIndex}`."""

    kind = ElementType.FORM_FIELD

    def __init__(self, options: Optional[FormFieldProcessorOptions] = None):
        super().__init__(options or FormFieldProcessorOptions())

    def extract(self, page: 'PageSource', scale: float) -> List[DocumentElement]:
        viewport = page.get_viewport(scale)

        elements = []
        for index, annotation in enumerate(page.get_annotations()):
            field = annotation.field
            if field is None or not field.field_type:
                continue

            x, y, width, height = rect_to_viewport(annotation.rect, viewport.page_height, scale)

            elements.append(DocumentElement(
                id=f"form-{page.page_number}-{index}",
                type=ElementType.FORM_FIELD,
                subtype=FORM_FIELD_SUBTYPE,
                content=field.field_name or f"{field.field_type} field",
                x=max(0.0, x),
                y=max(0.0, y),
                width=max(self.options.min_width, width),
                height=max(self.options.min_height, height),
                pageNumber=page.page_number,
                scale=scale,
                metadata={
                    'fieldType': field.field_type,
                    'fieldName': field.field_name,
                    'fieldValue': field.field_value,
                    'required': field.required,
                    'readOnly': field.read_only,
                    'originalRect': list(annotation.rect),
                },
            ))

        logger.debug(f"Page {page.page_number}: {len(elements)} form-field elements")
        return elements
