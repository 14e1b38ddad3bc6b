"""
Page sources: raw per-page inputs for element building.

A PageSource supplies the four raw inputs the element builder needs (text
runs, annotations, image operators, viewport). Each accessor may fail on its
own; the builder isolates those failures per element kind. PdfPageSource is
the real implementation over the engine's pdfminer and pikepdf handles.
"""

import logging
from typing import List, Optional, Protocol, Tuple, TYPE_CHECKING, runtime_checkable

from pdfminer.pdfinterp import PDFPageInterpreter

from models.pdf_types import PageViewport, RawAnnotation, RawImageOp, RawTextRun
from processors.annotation_reader import read_annotations
from processors.image_ops import find_image_ops
from processors.run_collector_device import RunCollectorDevice
from utils.errors import ParseFailure
from utils.pdf_transforms import page_matrix, page_size

if TYPE_CHECKING:
    from engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)


@runtime_checkable
class PageSource(Protocol):
    """Raw inputs of a single page"""

    page_number: int

    def get_viewport(self, scale: float) -> PageViewport:
        ...

    def get_text_runs(self) -> List[RawTextRun]:
        ...

    def get_annotations(self) -> List[RawAnnotation]:
        ...

    def get_image_ops(self) -> List[RawImageOp]:
        ...


class PdfPageSource:
    """
    PageSource backed by an open PDFEngine.

    Text runs, annotations and image operators are scale independent, so
    they are read once and reused when the page is rebuilt at a new scale.

    Raises:
        ParseFailure: If the page object itself cannot be resolved
    """

    def __init__(self, engine: 'PDFEngine', page_number: int):
        self.page_number = page_number
        self._engine = engine

        try:
            plumber_page = engine.pdfplumber_document.pages[page_number - 1]
            self._page_obj = plumber_page.page_obj
            self._pike_page = engine.pikepdf_document.pages[page_number - 1]
            mediabox = [float(v) for v in self._page_obj.mediabox]
            rotate = int(self._page_obj.rotate or 0)
        except Exception as e:
            raise ParseFailure(page_number, f"Failed to resolve page {page_number}: {e}") from e

        self._matrix = page_matrix(mediabox, rotate)
        self._size: Tuple[float, float] = page_size(mediabox, rotate)

        self._text_runs: Optional[List[RawTextRun]] = None
        self._annotations: Optional[List[RawAnnotation]] = None
        self._image_ops: Optional[List[RawImageOp]] = None

    def get_viewport(self, scale: float) -> PageViewport:
        width, height = self._size
        return PageViewport(width=width * scale, height=height * scale, scale=scale)

    def get_text_runs(self) -> List[RawTextRun]:
        """Interpret the page content stream and collect one run per text operator"""
        if self._text_runs is None:
            device = RunCollectorDevice(self._engine.resource_manager, self.page_number)
            interpreter = PDFPageInterpreter(self._engine.resource_manager, device)
            interpreter.process_page(self._page_obj)
            self._text_runs = list(device.runs)
        return self._text_runs

    def get_annotations(self) -> List[RawAnnotation]:
        if self._annotations is None:
            self._annotations = read_annotations(self._pike_page, self._matrix, self.page_number)
        return self._annotations

    def get_image_ops(self) -> List[RawImageOp]:
        if self._image_ops is None:
            self._image_ops = find_image_ops(self._pike_page, self.page_number)
        return self._image_ops

    def __repr__(self) -> str:
        width, height = self._size
        return f"PdfPageSource(page {self.page_number}, {width:.0f}x{height:.0f})"
