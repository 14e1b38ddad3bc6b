"""Run Collector Device for PDF Text Extraction

PDFMiner device that records one raw text run per text-showing operator
(Tj, TJ, ', ") in content-stream order. Runs are not reordered or merged:
visual line reconstruction happens later in the line grouper.

Each run carries the text-space to user-space transform of its first glyph,
scaled by font size and horizontal scaling, so transform[4:6] is the
baseline origin and the transform's vertical scale is the glyph height.
"""

import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import List, Optional, Tuple

from pdfminer.pdfdevice import PDFTextDevice
from pdfminer.pdffont import PDFUnicodeNotDefined
from pdfminer.pdfinterp import PDFResourceManager
from pdfminer.utils import apply_matrix_pt, mult_matrix

from models.pdf_types import RawTextRun
from utils.pdf_transforms import glyph_height, run_extent

logger = logging.getLogger(__name__)

SCALING_PERCENTAGE_DIVISOR = 0.01
SAME_BASELINE_TOLERANCE = 0.1
RTL_BIDI_CLASSES = {'R', 'AL'}


@dataclass
class CollectedChar:
    """Glyph recorded during a single render_string call."""
    text: str
    matrix: Tuple[float, float, float, float, float, float]
    adv: float


def _normalize_font_name(fontname: str) -> str:
    """Normalize font name by removing PDF subset prefixes.

    Removes random 6-character prefixes and subset markers (+)
    to allow fonts from different subsets to be treated as identical.
    """
    if not fontname:
        return ""

    if '+' in fontname:
        fontname = fontname.split('+', 1)[1]

    match = re.match(r'^[A-Z]{6}([A-Z].*)$', fontname)
    if match:
        fontname = match.group(1)

    return fontname


def _detect_direction(text: str, vertical: bool) -> str:
    """Classify run direction as ltr, rtl or ttb."""
    if vertical:
        return "ttb"
    letters = [ch for ch in text if not ch.isspace()]
    if not letters:
        return "ltr"
    rtl_count = sum(1 for ch in letters if unicodedata.bidirectional(ch) in RTL_BIDI_CLASSES)
    return "rtl" if rtl_count * 2 > len(letters) else "ltr"


class RunCollectorDevice(PDFTextDevice):
    """
    Text device collecting raw glyph runs in paint order.

    PDFTextDevice walks each string and calls render_char per glyph with the
    glyph's own matrix; this device accumulates those glyphs and emits one
    RawTextRun when the string is done.
    """

    def __init__(self, rsrcmgr: PDFResourceManager, page_number: int):
        """
        Initialize run collector.

        Args:
            rsrcmgr: PDF resource manager
            page_number: Page number (1-indexed), used for logging only
        """
        super().__init__(rsrcmgr)
        self.page_number = page_number
        self.runs: List[RawTextRun] = []
        self._chars: List[CollectedChar] = []
        self.render_string_count = 0

    def begin_page(self, page, ctm):
        """Reset state for a new page"""
        self.runs = []
        self._chars = []
        self.render_string_count = 0

    def end_page(self, page):
        """Mark end-of-line runs once the full stream is known"""
        self.runs = _mark_line_ends(self.runs)
        logger.debug(
            f"Page {self.page_number}: collected {len(self.runs)} runs "
            f"from {self.render_string_count} text operators"
        )

    def render_string(self, textstate, seq, ncs, graphicstate):
        """Handle text rendering (Tj/TJ operators)"""
        self.render_string_count += 1
        self._chars = []

        super().render_string(textstate, seq, ncs, graphicstate)

        if self._chars:
            run = self._build_run(textstate)
            if run is not None:
                self.runs.append(run)
        self._chars = []

    def render_char(self, matrix, font, fontsize, scaling, rise, cid, ncs, graphicstate):
        """Record one glyph and return its advance"""
        try:
            text = font.to_unichr(cid)
        except PDFUnicodeNotDefined:
            text = f"(cid:{cid})"

        adv = font.char_width(cid) * fontsize * scaling
        self._chars.append(CollectedChar(text=text, matrix=tuple(matrix), adv=adv))
        return adv

    def _build_run(self, textstate) -> Optional[RawTextRun]:
        """Convert accumulated glyphs into a RawTextRun"""
        font = textstate.font
        fontsize = textstate.fontsize
        scaling = textstate.scaling * SCALING_PERCENTAGE_DIVISOR
        rise = textstate.rise
        vertical = font.is_vertical()

        first, last = self._chars[0], self._chars[-1]

        # Font-size matrix applied in glyph space, then the glyph matrix
        transform = mult_matrix((fontsize * scaling, 0, 0, fontsize, 0, rise), first.matrix)

        start = apply_matrix_pt(first.matrix, (0, 0))
        end_offset = (0, last.adv) if vertical else (last.adv, 0)
        end = apply_matrix_pt(last.matrix, end_offset)

        text = "".join(char.text for char in self._chars)
        fontname = getattr(font, 'fontname', None) or "Unknown"

        try:
            return RawTextRun(
                text=text,
                transform=tuple(float(v) for v in transform),
                width=run_extent(start, end),
                height=glyph_height(transform),
                font_name=_normalize_font_name(fontname),
                direction=_detect_direction(text, vertical),
            )
        except ValueError as e:
            logger.warning(f"Page {self.page_number}: dropping malformed text run {text!r}: {e}")
            return None


def _mark_line_ends(runs: List[RawTextRun]) -> List[RawTextRun]:
    """Flag runs followed by a run on another baseline, and the final run."""
    marked: List[RawTextRun] = []
    for index, run in enumerate(runs):
        is_last = index == len(runs) - 1
        ends_line = is_last or abs(runs[index + 1].baseline_y - run.baseline_y) > SAME_BASELINE_TOLERANCE
        marked.append(run.model_copy(update={'end_of_line': ends_line}) if ends_line else run)
    return marked
