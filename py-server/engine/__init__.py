"""
PDF Element Engine

Core engine module: the PDFEngine document handle, page sources, the
per-kind element processors, the element builder and interactive document
sessions.
"""

__version__ = "1.0.0"

from engine.pdf_engine import PDFEngine
from engine.config import (
    EngineConfig,
    ProcessorOptions,
    TextProcessorOptions,
    AnnotationProcessorOptions,
    ImageProcessorOptions,
    FormFieldProcessorOptions,
    SessionConfig,
    PageRange,
)
from engine.page_source import PageSource, PdfPageSource
from engine.base_processor import BaseProcessor, ProcessorRegistry
from engine.text_processor import TextProcessor
from engine.annotation_processor import AnnotationProcessor
from engine.image_processor import ImageProcessor
from engine.form_field_processor import FormFieldProcessor
from engine.element_builder import ElementBuilder
from engine.document_session import CancellationToken, DocumentSession, SessionStore, ViewState

__all__ = [
    'PDFEngine',
    'EngineConfig',
    'ProcessorOptions',
    'TextProcessorOptions',
    'AnnotationProcessorOptions',
    'ImageProcessorOptions',
    'FormFieldProcessorOptions',
    'SessionConfig',
    'PageRange',
    'PageSource',
    'PdfPageSource',
    'BaseProcessor',
    'ProcessorRegistry',
    'TextProcessor',
    'AnnotationProcessor',
    'ImageProcessor',
    'FormFieldProcessor',
    'ElementBuilder',
    'CancellationToken',
    'DocumentSession',
    'SessionStore',
    'ViewState',
]
