"""Rescale operator.

Moves an element list from one zoom factor to another without re-parsing:
every geometric field is multiplied by new_scale / old_scale. No clamping is
re-applied, so rescaling there and back restores the original values.
"""

import logging
import math
from typing import List, Sequence

from models.pdf_types import DocumentElement

logger = logging.getLogger(__name__)

GEOMETRIC_FIELDS = ('x', 'y', 'width', 'height')


def _check_scale(name: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a finite positive number, got {value}")


def rescale_element(element: DocumentElement, factor: float, new_scale: float) -> DocumentElement:
    """Return a deep copy of `element` with geometry multiplied by `factor`"""
    update = {name: getattr(element, name) * factor for name in GEOMETRIC_FIELDS}
    if element.fontSize is not None:
        update['fontSize'] = element.fontSize * factor
    update['scale'] = new_scale
    return element.model_copy(update=update, deep=True)


def rescale_elements(
    elements: Sequence[DocumentElement],
    new_scale: float,
    old_scale: float,
) -> List[DocumentElement]:
    """
    Rescale elements computed at `old_scale` to `new_scale`.

    Args:
        elements: Elements whose geometry is in the viewport space of old_scale
        new_scale: Target zoom factor
        old_scale: Zoom factor the elements were computed at

    Returns:
        New element list; ids, types, subtypes, content and metadata are
        carried over unchanged

    Raises:
        ValueError: If either scale is not finite and positive
    """
    _check_scale('new_scale', new_scale)
    _check_scale('old_scale', old_scale)

    factor = new_scale / old_scale
    rescaled = [rescale_element(element, factor, new_scale) for element in elements]
    logger.debug(f"Rescaled {len(rescaled)} elements from {old_scale} to {new_scale} (x{factor:.4f})")
    return rescaled


def rescale_pages(
    pages: Sequence[Sequence[DocumentElement]],
    new_scale: float,
    old_scale: float,
) -> List[List[DocumentElement]]:
    """Rescale per-page element lists"""
    return [rescale_elements(page, new_scale, old_scale) for page in pages]
