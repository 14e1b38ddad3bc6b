"""Image paint operator scan.

Walks a page content stream with pikepdf and reports every `Do` that paints
an image XObject. Only the operator position is recovered; image placement
is not reconstructed (no CTM tracking through the stream), and Form XObjects
are not descended into.
"""

import logging
from typing import List

import pikepdf

from constants.pdf_keys import KEY_SUBTYPE, KEY_XOBJECT, VAL_IMAGE
from constants.pdf_operators import OP_PAINT_XOBJECT, TEXT_SHOWING_OPS
from models.pdf_types import RawImageOp

logger = logging.getLogger(__name__)


def normalize_operator(instruction) -> bytes:
    """Return a content stream instruction's operator as bytes"""
    op_name = instruction.operator
    if isinstance(op_name, bytes):
        return op_name
    return str(op_name).encode('latin-1', errors='replace')


def find_image_ops(page: pikepdf.Page, page_number: int = 0) -> List[RawImageOp]:
    """
    Find image paint operators in a page content stream.

    Args:
        page: pikepdf page
        page_number: Page number (1-indexed), used for logging only

    Returns:
        RawImageOp per image `Do`, in stream order

    Raises:
        pikepdf.PdfError: If the content stream cannot be parsed
    """
    xobjects = page.resources.get(KEY_XOBJECT)
    instructions = pikepdf.parse_content_stream(page)

    image_ops: List[RawImageOp] = []
    text_op_count = 0
    for index, instruction in enumerate(instructions):
        if isinstance(instruction, pikepdf.ContentStreamInlineImage):
            continue

        op_name = normalize_operator(instruction)
        if op_name in TEXT_SHOWING_OPS:
            text_op_count += 1
            continue
        if op_name != OP_PAINT_XOBJECT or not instruction.operands:
            continue

        name = instruction.operands[0]
        xobject = xobjects.get(name) if xobjects is not None else None
        if xobject is None:
            logger.debug(f"Page {page_number}: Do references missing XObject {name}")
            continue

        if str(xobject.get(KEY_SUBTYPE)) == VAL_IMAGE:
            image_ops.append(RawImageOp(operator_index=index, name=str(name)))

    logger.debug(
        f"Page {page_number}: {len(instructions)} operators, "
        f"{text_op_count} text operators, {len(image_ops)} image paints"
    )
    return image_ops
