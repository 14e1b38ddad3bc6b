"""Element list queries used by the overlay consumer."""

from typing import Iterable, List, Union

from models.pdf_types import DocumentElement, ElementType


def filter_elements_by_type(
    elements: Iterable[DocumentElement], element_type: Union[ElementType, str]
) -> List[DocumentElement]:
    """Elements of one kind, in input order"""
    wanted = element_type.value if isinstance(element_type, ElementType) else element_type
    return [element for element in elements if element.type == wanted]


def filter_elements_by_page(elements: Iterable[DocumentElement], page_number: int) -> List[DocumentElement]:
    """Elements belonging to one page, in input order"""
    return [element for element in elements if element.pageNumber == page_number]


def get_elements_by_bounding_box(
    elements: Iterable[DocumentElement], x: float, y: float, width: float, height: float
) -> List[DocumentElement]:
    """
    Elements lying entirely inside a viewport-space box.

    Edges are inclusive. The box must be in the same scale as the elements.
    """
    right = x + width
    bottom = y + height
    return [
        element for element in elements
        if element.x >= x
        and element.y >= y
        and element.x + element.width <= right
        and element.y + element.height <= bottom
    ]
