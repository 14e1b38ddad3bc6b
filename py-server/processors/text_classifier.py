"""Semantic classification of text runs.

Classification is a pure function of (glyph height, content): it never looks
at position, page number or neighbouring runs. Rules are evaluated in
priority order and the first match wins.
"""

import re

from models.pdf_types import TextSubtype

HEADING_MIN_HEIGHT = 18     # strictly greater than
SUBHEADING_MIN_HEIGHT = 14  # strictly greater than
TITLE_MIN_LENGTH = 2        # strictly greater than
SYMBOL_MAX_LENGTH = 3       # strictly less than

LIST_ITEM_PATTERN = re.compile(r'^[0-9]+\.?\s')
TITLE_PATTERN = re.compile(r'^[A-Z\s]+$')


def classify_text(glyph_height: float, content: str) -> TextSubtype:
    """Assign a semantic subtype to a text run.

    Args:
        glyph_height: Unscaled glyph height in user space
        content: Raw run string (trimmed before the content rules)

    Returns:
        Exactly one TextSubtype
    """
    if glyph_height > HEADING_MIN_HEIGHT:
        return TextSubtype.HEADING
    if glyph_height > SUBHEADING_MIN_HEIGHT:
        return TextSubtype.SUBHEADING

    trimmed = content.strip()
    if LIST_ITEM_PATTERN.match(trimmed):
        return TextSubtype.LIST_ITEM
    if TITLE_PATTERN.match(trimmed) and len(trimmed) > TITLE_MIN_LENGTH:
        return TextSubtype.TITLE
    if len(trimmed) < SYMBOL_MAX_LENGTH:
        return TextSubtype.SYMBOL

    return TextSubtype.PARAGRAPH
