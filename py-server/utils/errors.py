"""
Failure taxonomy for element extraction and page rendering.

Failures never propagate past their page or element-kind boundary: callers
catch these, log them, and degrade to partial element coverage.
"""

from typing import Optional


class ParseFailure(Exception):
    """A page's structural data could not be decoded"""

    def __init__(self, page_number: int, message: Optional[str] = None):
        self.page_number = page_number
        super().__init__(message or f"Failed to parse page {page_number}")


class ExtractionKindFailure(Exception):
    """One element kind (text/annotation/image/form-field) failed on a page"""

    def __init__(self, kind: str, page_number: int, message: Optional[str] = None):
        self.kind = kind
        self.page_number = page_number
        super().__init__(message or f"{kind} extraction failed on page {page_number}")


class RenderCancelled(Exception):
    """A page render was superseded by a scale change or teardown"""

    def __init__(self, page_number: int):
        self.page_number = page_number
        super().__init__(f"Rendering of page {page_number} cancelled")


class RenderFailure(Exception):
    """A page render failed for any reason other than cancellation"""

    def __init__(self, page_number: int, message: Optional[str] = None):
        self.page_number = page_number
        super().__init__(message or f"Rendering of page {page_number} failed")


__all__ = [
    'ParseFailure',
    'ExtractionKindFailure',
    'RenderCancelled',
    'RenderFailure',
]
