"""Text Processor for PDFEngine

Turns raw text runs into text elements: runs are grouped into visual lines,
each run is placed in viewport space and classified, and whitespace-only
runs are dropped after their line/run indices have been assigned.
"""

import logging
from typing import List, Optional, TYPE_CHECKING

from engine.base_processor import BaseProcessor
from engine.config import TextProcessorOptions
from models.pdf_types import DocumentElement, ElementType, PageViewport, RawTextRun
from processors.line_grouping import LineGrouper
from processors.text_classifier import classify_text
from utils.pdf_transforms import to_viewport

if TYPE_CHECKING:
    from engine.page_source import PageSource

logger = logging.getLogger(__name__)


class TextProcessor(BaseProcessor):
    """
    Text extraction processor.

    Ids are `text-{page}-{lineIndex}-{runIndex}`; indices count every run,
    including the whitespace runs that are not emitted.
    """

    kind = ElementType.TEXT

    def __init__(self, options: Optional[TextProcessorOptions] = None):
        """
        Initialize text processor.

        Args:
            options: TextProcessorOptions or None for defaults
        """
        super().__init__(options or TextProcessorOptions())
        self._grouper: Optional[LineGrouper] = None

    def initialize(self) -> None:
        """Build the line grouper from options"""
        self._grouper = LineGrouper(
            tolerance=self.options.line_tolerance,
            height_ratio=self.options.line_height_ratio,
        )
        super().initialize()

    def cleanup(self) -> None:
        self._grouper = None
        super().cleanup()

    def extract(self, page: 'PageSource', scale: float) -> List[DocumentElement]:
        viewport = page.get_viewport(scale)
        runs = page.get_text_runs()
        lines = self._grouper.group(runs)

        elements: List[DocumentElement] = []
        skipped = 0
        for line_index, line in enumerate(lines):
            for item_index, run in enumerate(line):
                if not run.text.strip():
                    skipped += 1
                    continue
                elements.append(
                    self._build_element(run, page.page_number, viewport, line_index, item_index)
                )

        logger.debug(
            f"Page {page.page_number}: {len(elements)} text elements from "
            f"{len(runs)} runs in {len(lines)} lines ({skipped} whitespace runs skipped)"
        )
        return elements

    def _build_element(
        self,
        run: RawTextRun,
        page_number: int,
        viewport: PageViewport,
        line_index: int,
        item_index: int,
    ) -> DocumentElement:
        """Place and classify a single run"""
        scale = viewport.scale
        x, y = to_viewport(run.baseline_x, run.baseline_y, viewport.page_height, scale)
        width = run.width * scale
        height = run.height * scale

        return DocumentElement(
            id=f"text-{page_number}-{line_index}-{item_index}",
            type=ElementType.TEXT,
            subtype=classify_text(run.height, run.text).value,
            content=run.text,
            x=max(0.0, x),
            y=max(0.0, y),
            width=max(self.options.min_width, width),
            height=max(self.options.min_height, height),
            fontSize=max(self.options.min_font_size, height),
            fontFamily=run.font_name,
            pageNumber=page_number,
            scale=scale,
            metadata={
                'lineIndex': line_index,
                'itemIndex': item_index,
                'hasEOL': run.end_of_line,
                'direction': run.direction,
                'originalWidth': run.width,
                'originalHeight': run.height,
                'originalX': run.baseline_x,
                'originalY': run.baseline_y,
                'transform': list(run.transform),
            },
        )
