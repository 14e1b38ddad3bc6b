"""
Configuration system for PDF Engine.

Provides structured configuration using dataclasses with clear defaults,
type safety, and backward compatibility with dict-based configs.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any, List
import logging

logger = logging.getLogger(__name__)


@dataclass
class ProcessorOptions:
    """
    Base class for processor-specific configuration options.

    All processor option classes should inherit from this to provide
    consistent interface and common functionality.
    """
    enabled: bool = True

    def validate(self) -> bool:
        """
        Validate configuration options.

        Returns:
            True if configuration is valid, False otherwise
        """
        return True

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ProcessorOptions':
        """Create options from a dictionary, ignoring unknown keys with a warning."""
        data = data or {}
        valid_keys = set(cls.__dataclass_fields__)
        unknown = set(data) - valid_keys
        for key in sorted(unknown):
            logger.warning(f"Unknown {cls.__name__} key '{key}' will be ignored")
        return cls(**{k: v for k, v in data.items() if k in valid_keys})


@dataclass
class TextProcessorOptions(ProcessorOptions):
    """
    Configuration options for text element extraction.

    Line grouping starts a new line when the baseline gap exceeds
    max(run height * line_height_ratio, line_tolerance).
    """
    line_tolerance: float = 2.0  # User-space units
    line_height_ratio: float = 0.3
    min_width: float = 1.0
    min_height: float = 1.0
    min_font_size: float = 8.0

    def validate(self) -> bool:
        if self.line_tolerance <= 0:
            logger.error("line_tolerance must be positive")
            return False
        if self.line_height_ratio < 0:
            logger.error("line_height_ratio must be non-negative")
            return False
        return True


@dataclass
class AnnotationProcessorOptions(ProcessorOptions):
    """Configuration options for annotation element extraction."""
    min_width: float = 10.0
    min_height: float = 10.0


@dataclass
class FormFieldProcessorOptions(ProcessorOptions):
    """Configuration options for form-field element extraction."""
    min_width: float = 20.0
    min_height: float = 15.0


@dataclass
class ImageProcessorOptions(ProcessorOptions):
    """
    Configuration options for image element extraction.

    Image placement is not reconstructed: elements are stacked at an
    estimated position, origin + index * step, all in unscaled units.
    """
    origin_x: float = 50.0
    origin_y: float = 50.0
    vertical_step: float = 100.0
    placeholder_size: float = 100.0


@dataclass
class EngineConfig:
    """
    Central configuration for PDFEngine initialization and element building.

    Example:
        >>> config = EngineConfig(enable_caching=True, max_cache_pages=20)
        >>> engine = PDFEngine(file_path, config=config)
    """

    # Resource management
    enable_caching: bool = True
    max_cache_pages: int = 10

    # Element kinds
    enable_text_processor: bool = True
    enable_annotation_processor: bool = True
    enable_image_processor: bool = True
    enable_form_field_processor: bool = True

    # Processor-specific options (as dictionaries for flexibility)
    text_processor_options: Optional[Dict[str, Any]] = None
    annotation_processor_options: Optional[Dict[str, Any]] = None
    image_processor_options: Optional[Dict[str, Any]] = None
    form_field_processor_options: Optional[Dict[str, Any]] = None

    # Performance
    timeout_seconds: int = 300
    max_file_size_mb: int = 50

    # Validation
    validate_on_open: bool = True

    def validate(self) -> bool:
        """
        Validate configuration values.

        Returns:
            True if all values are valid, False otherwise
        """
        if self.max_cache_pages < 0:
            logger.error("max_cache_pages must be non-negative")
            return False

        if self.timeout_seconds < 30:
            logger.error("timeout_seconds must be at least 30 seconds")
            return False

        if self.max_file_size_mb < 1:
            logger.error("max_file_size_mb must be at least 1 MB")
            return False

        if not any([self.enable_text_processor,
                   self.enable_annotation_processor,
                   self.enable_image_processor,
                   self.enable_form_field_processor]):
            logger.error("At least one processor must be enabled")
            return False

        return True

    @classmethod
    def default(cls) -> 'EngineConfig':
        """Create configuration with default values."""
        return cls()

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"EngineConfig("
            f"caching={self.enable_caching}, "
            f"text={self.enable_text_processor}, "
            f"annotation={self.enable_annotation_processor}, "
            f"image={self.enable_image_processor}, "
            f"form={self.enable_form_field_processor}, "
            f"timeout={self.timeout_seconds}s)"
        )


@dataclass
class SessionConfig:
    """
    Configuration for interactive document sessions.

    reparse_on_scale_change selects the default zoom strategy: a full
    reparse at the new scale, or a linear rescale of the published elements.
    """
    reparse_on_scale_change: bool = True
    render_stagger_seconds: float = 0.01
    max_sessions: int = 16

    def validate(self) -> bool:
        if self.render_stagger_seconds < 0:
            logger.error("render_stagger_seconds must be non-negative")
            return False
        if self.max_sessions < 1:
            logger.error("max_sessions must be at least 1")
            return False
        return True


@dataclass
class PageRange:
    """
    Represents a range of pages to process in a PDF document.

    Provides validation, normalization, and conversion to explicit page lists.
    Uses 1-based page numbering consistent with PDF specification.

    Example:
        >>> # Process from page 5 to end of document
        >>> page_range = PageRange(start=5, end=None)
    """

    start: int  # 1-based page number
    end: Optional[int] = None  # None means "to end of document"

    def __post_init__(self):
        """Validate page range on construction."""
        if self.start < 1:
            raise ValueError(f"start page must be >= 1, got {self.start}")

        if self.end is not None:
            if self.end < 1:
                raise ValueError(f"end page must be >= 1, got {self.end}")
            if self.end < self.start:
                raise ValueError(
                    f"end page ({self.end}) must be >= start page ({self.start})"
                )

    def to_page_numbers(self, total_pages: int) -> List[int]:
        """
        Convert range to explicit list of page numbers.

        Args:
            total_pages: Total number of pages in document

        Returns:
            List of 1-based page numbers to process, empty when the range
            starts past the last page

        Example:
            >>> page_range = PageRange(start=2, end=5)
            >>> page_range.to_page_numbers(10)
            [2, 3, 4, 5]
        """
        if total_pages < 1 or self.start > total_pages:
            return []

        end = total_pages if self.end is None else min(self.end, total_pages)
        return list(range(self.start, end + 1))

    @classmethod
    def all_pages(cls) -> 'PageRange':
        """Create range representing all pages in document."""
        return cls(start=1, end=None)

    def __repr__(self) -> str:
        """String representation for debugging."""
        if self.end is None:
            return f"PageRange({self.start}→end)"
        elif self.start == self.end:
            return f"PageRange(page {self.start})"
        else:
            return f"PageRange({self.start}→{self.end})"
