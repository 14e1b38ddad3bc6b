"""
Base processor and registry for element-kind processors.

Each processor extracts one element kind (text, annotation, image,
form-field) from a page source. Failures inside a processor are wrapped in
ExtractionKindFailure so the builder can skip that kind and keep going.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, TYPE_CHECKING
import logging

from engine.config import ProcessorOptions
from models.pdf_types import DocumentElement, ElementType
from utils.errors import ExtractionKindFailure

if TYPE_CHECKING:
    from engine.page_source import PageSource

logger = logging.getLogger(__name__)


class BaseProcessor(ABC):
    """
    Abstract base class for all element-kind processors.

    Processors are stateless across pages: extract() receives the page
    source and scale, and returns a fresh element list.
    """

    kind: ElementType

    def __init__(self, options: Optional[ProcessorOptions] = None):
        """
        Initialize processor with options.

        Args:
            options: Kind-specific options (defaults if None)
        """
        self.options = options or ProcessorOptions()
        self._initialized = False
        logger.debug(f"{self.__class__.__name__} created")

    def initialize(self) -> None:
        """
        Initialize processor-specific resources.

        Called by the registry before use. Override to build helpers that
        depend on options.
        """
        if self._initialized:
            logger.warning(f"{self.__class__.__name__} already initialized")
            return

        self._initialized = True
        logger.debug(f"{self.__class__.__name__} initialized")

    def cleanup(self) -> None:
        """
        Clean up processor-specific resources.

        This method should be idempotent (safe to call multiple times).
        """
        if not self._initialized:
            return

        self._initialized = False
        logger.debug(f"{self.__class__.__name__} cleaned up")

    def validate_state(self) -> bool:
        """
        Validate that processor is in a valid state for operations.

        Returns:
            True if processor is ready, False otherwise
        """
        if not self._initialized:
            logger.error(f"{self.__class__.__name__} not initialized")
            return False

        if not self.options.validate():
            logger.error(f"{self.__class__.__name__} has invalid options")
            return False

        return True

    @abstractmethod
    def extract(self, page: 'PageSource', scale: float) -> List[DocumentElement]:
        """
        Extract this processor's element kind from a page.

        Args:
            page: Page source
            scale: Zoom factor for viewport geometry

        Returns:
            Elements of this kind in emission order
        """

    def run(self, page: 'PageSource', scale: float) -> List[DocumentElement]:
        """
        Extract with failure isolation.

        Raises:
            ExtractionKindFailure: If anything goes wrong for this kind
        """
        if not self.validate_state():
            raise ExtractionKindFailure(self.kind.value, page.page_number, f"{self.__class__.__name__} not ready")

        try:
            return self.extract(page, scale)
        except ExtractionKindFailure:
            raise
        except Exception as e:
            raise ExtractionKindFailure(self.kind.value, page.page_number, f"{self.kind.value} extraction failed on page {page.page_number}: {e}") from e

    def __repr__(self) -> str:
        """String representation for debugging."""
        status = "initialized" if self._initialized else "not initialized"
        return f"{self.__class__.__name__}({status})"


class ProcessorRegistry:
    """
    Registry for managing processor instances.

    Registration order is emission order: the builder runs processors in
    the order they were registered.
    """

    def __init__(self):
        """Initialize empty registry."""
        self._processors: dict[str, BaseProcessor] = {}
        self._initialization_order: list[str] = []

    def register(self, name: str, processor: BaseProcessor) -> None:
        """
        Register a processor.

        Args:
            name: Unique name for the processor (e.g., "text", "image")
            processor: Processor instance to register
        """
        if name in self._processors:
            logger.warning(f"Processor '{name}' already registered, replacing")

        self._processors[name] = processor
        if name not in self._initialization_order:
            self._initialization_order.append(name)

        logger.debug(f"Registered processor: {name}")

    def ordered(self) -> List[BaseProcessor]:
        """Processors in registration order."""
        return [self._processors[name] for name in self._initialization_order]

    def initialize_all(self) -> None:
        """Initialize all registered processors in registration order."""
        for name in self._initialization_order:
            processor = self._processors.get(name)
            if processor:
                try:
                    processor.initialize()
                except Exception as e:
                    logger.error(f"Failed to initialize processor '{name}': {e}")
                    raise

    def cleanup_all(self) -> None:
        """Clean up all processors in reverse registration order."""
        for name in reversed(self._initialization_order):
            processor = self._processors.get(name)
            if processor:
                try:
                    processor.cleanup()
                except Exception as e:
                    logger.warning(f"Error cleaning up processor '{name}': {e}")

    @property
    def processor_count(self) -> int:
        """Get number of registered processors."""
        return len(self._processors)

    @property
    def processor_names(self) -> list[str]:
        """Get list of registered processor names."""
        return list(self._initialization_order)

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"ProcessorRegistry({self.processor_count} processors: {self.processor_names})"
