"""Annotation dictionary reader.

Converts a page's /Annots array into validated RawAnnotation values. Widget
annotations also carry their form field descriptors, resolved through the
/Parent chain the way interactive forms inherit them.
"""

import logging
from decimal import Decimal
from typing import Any, List, Optional, Sequence

import pikepdf

from constants.pdf_keys import (
    FIELD_FLAG_READ_ONLY,
    FIELD_FLAG_REQUIRED,
    KEY_ACTION,
    KEY_ACTION_DEST,
    KEY_ACTION_TYPE,
    KEY_ANNOTS,
    KEY_CONTENTS,
    KEY_DEST,
    KEY_FIELD_FLAGS,
    KEY_FIELD_TYPE,
    KEY_FIELD_VALUE,
    KEY_PARENT,
    KEY_RECT,
    KEY_SUBTYPE,
    KEY_TITLE,
    KEY_URI,
    MAX_FIELD_DEPTH,
    VAL_GOTO_ACTION,
    VAL_URI_ACTION,
    VAL_WIDGET,
)
from models.pdf_types import RawAnnotation, RawFormField
from utils.pdf_transforms import normalize_rect, transform_rect

logger = logging.getLogger(__name__)


def to_python(value: Any) -> Any:
    """Convert a pikepdf object into a JSON-friendly Python value"""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return float(value)
    if isinstance(value, pikepdf.Name):
        return str(value).lstrip('/')
    if isinstance(value, pikepdf.String):
        return str(value)
    if isinstance(value, pikepdf.Array):
        return [to_python(item) for item in value]
    if isinstance(value, pikepdf.Dictionary):
        # Explicit destinations reference page objects
        if value.is_indirect:
            objnum, gen = value.objgen
            return f"{objnum} {gen} R"
        return None
    return str(value)


def _text(value: Any) -> Optional[str]:
    """PDF text string as str, None when absent or empty"""
    if value is None:
        return None
    text = str(value)
    return text or None


def _inherited(node: pikepdf.Dictionary, key: str) -> Any:
    """Look up a field attribute on the node or its /Parent ancestors"""
    depth = 0
    while node is not None and depth < MAX_FIELD_DEPTH:
        value = node.get(key)
        if value is not None:
            return value
        node = node.get(KEY_PARENT)
        depth += 1
    return None


def _qualified_field_name(node: pikepdf.Dictionary) -> Optional[str]:
    """Fully qualified field name: partial /T names joined by '.' from the root down"""
    parts: List[str] = []
    depth = 0
    while node is not None and depth < MAX_FIELD_DEPTH:
        partial = node.get(KEY_TITLE)
        if partial is not None:
            parts.append(str(partial))
        node = node.get(KEY_PARENT)
        depth += 1
    if not parts:
        return None
    return ".".join(reversed(parts))


def _read_form_field(annot: pikepdf.Dictionary) -> Optional[RawFormField]:
    """Field descriptors of a widget annotation, None when it has no field type"""
    field_type = _inherited(annot, KEY_FIELD_TYPE)
    if field_type is None:
        return None

    flags_value = _inherited(annot, KEY_FIELD_FLAGS)
    flags = int(flags_value) if flags_value is not None else 0

    return RawFormField(
        field_type=str(field_type).lstrip('/'),
        field_name=_qualified_field_name(annot),
        field_value=to_python(_inherited(annot, KEY_FIELD_VALUE)),
        required=bool(flags & FIELD_FLAG_REQUIRED),
        read_only=bool(flags & FIELD_FLAG_READ_ONLY),
    )


def read_annotation(annot: pikepdf.Dictionary, page_ctm: Sequence[float], index: int = 0) -> RawAnnotation:
    """
    Read a single annotation dictionary.

    Args:
        annot: Annotation dictionary
        page_ctm: Page matrix mapping raw coordinates into page user space
        index: Position in /Annots, used for error messages

    Raises:
        ValueError: If the annotation has no usable /Rect
    """
    raw_rect = annot.get(KEY_RECT)
    if raw_rect is None or len(raw_rect) != 4:
        raise ValueError(f"Annotation {index} has no valid {KEY_RECT}")

    rect = normalize_rect(transform_rect(normalize_rect([float(v) for v in raw_rect]), page_ctm))

    subtype_value = annot.get(KEY_SUBTYPE)
    subtype = str(subtype_value).lstrip('/') if subtype_value is not None else None
    is_widget = subtype_value is not None and str(subtype_value) == VAL_WIDGET

    url = None
    dest = to_python(annot.get(KEY_DEST))
    action = annot.get(KEY_ACTION)
    if isinstance(action, pikepdf.Dictionary):
        action_type = str(action.get(KEY_ACTION_TYPE))
        if action_type == VAL_URI_ACTION:
            url = _text(action.get(KEY_URI))
        elif action_type == VAL_GOTO_ACTION and dest is None:
            dest = to_python(action.get(KEY_ACTION_DEST))

    return RawAnnotation(
        rect=rect,
        subtype=subtype,
        contents=_text(annot.get(KEY_CONTENTS)),
        # On widgets /T is the partial field name, not a title
        title=None if is_widget else _text(annot.get(KEY_TITLE)),
        url=url,
        dest=dest,
        field=_read_form_field(annot) if is_widget else None,
    )


def read_annotations(page: pikepdf.Page, page_ctm: Sequence[float], page_number: int = 0) -> List[RawAnnotation]:
    """
    Read all annotations of a page in /Annots order.

    Raises:
        ValueError: If any annotation dictionary is malformed
    """
    annots = page.obj.get(KEY_ANNOTS)
    if annots is None:
        return []

    annotations = [
        read_annotation(annot, page_ctm, index)
        for index, annot in enumerate(annots)
    ]
    logger.debug(f"Page {page_number}: read {len(annotations)} annotations")
    return annotations
