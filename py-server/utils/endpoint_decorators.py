"""
Decorators for FastAPI endpoint error handling and resource management.

Upload endpoints share one decorator that validates the uploaded PDF, manages
its temporary file, enforces the processing timeout and maps failures onto
HTTP status codes.
"""

import os
import tempfile
import logging
import asyncio
from functools import wraps
from typing import Callable, Optional, Tuple, Type
from fastapi import UploadFile, HTTPException, Request

from utils.validation import (
    validate_file_content,
    PdfValidationError,
    ProcessingTimeoutError,
    MemoryLimitError,
    VALIDATION_CONSTANTS
)
from utils.errors import ParseFailure

logger = logging.getLogger(__name__)

# Exception -> (status code, detail prefix, log level), first match wins
ERROR_STATUS_MAP: Tuple[Tuple[Type[Exception], int, str, int], ...] = (
    (ParseFailure, 404, "Page not available", logging.WARNING),
    (PdfValidationError, 400, "PDF validation failed", logging.WARNING),
    (ProcessingTimeoutError, 408, "Processing timeout", logging.ERROR),
    (MemoryLimitError, 507, "Memory limit exceeded", logging.ERROR),
)


def to_http_exception(error: Exception, filename: str) -> HTTPException:
    """Map a processing failure to the HTTPException returned to the client"""
    for error_type, status_code, prefix, level in ERROR_STATUS_MAP:
        if isinstance(error, error_type):
            logger.log(level, f"{prefix} for {filename}: {error}")
            return HTTPException(status_code=status_code, detail=f"{prefix}: {str(error)}")

    logger.error(f"Unexpected error processing {filename}: {error}", exc_info=error)
    return HTTPException(
        status_code=500,
        detail=f"Internal server error during PDF processing: {str(error)}"
    )


async def read_pdf_upload(file: Optional[UploadFile]) -> bytes:
    """
    Read and validate an uploaded PDF.

    Raises:
        HTTPException: 400 if the upload is missing, unreadable, too large
            or not a PDF
    """
    if not file:
        raise HTTPException(status_code=400, detail="File parameter is required")

    if not file.filename or not file.filename.lower().endswith('.pdf'):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")

    try:
        content = await file.read()
    except Exception as e:
        logger.error(f"Error reading uploaded file: {e}")
        raise HTTPException(status_code=400, detail=f"Error reading uploaded file: {str(e)}") from e

    is_valid_content, content_error = validate_file_content(
        content,
        max_size_mb=VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB']
    )
    if not is_valid_content:
        logger.warning(f"File content validation failed for {file.filename}: {content_error}")
        raise HTTPException(status_code=400, detail=content_error)

    return content


def handle_pdf_processing(func: Callable) -> Callable:
    """
    Decorator for endpoints that take an uploaded PDF:
    - Upload validation (name, size, %PDF signature)
    - Temporary file creation and cleanup
    - Processing timeout (`processing_timeout` kwarg)
    - Error mapping: missing page -> 404, invalid PDF -> 400,
      timeout -> 408, memory -> 507, anything else -> 500

    The decorated function must accept `request: Request` and `file` as
    keyword arguments. The decorator stores in `request.state`:
    - `request.state.temp_file_path`: Path to the temporary PDF file
    - `request.state.file_content`: Raw bytes of the uploaded file
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        request: Request = kwargs.get('request')
        if not request:
            raise HTTPException(
                status_code=500,
                detail="Endpoint decorated with handle_pdf_processing must accept 'request: Request'"
            )

        file: UploadFile = kwargs.get('file')
        content = await read_pdf_upload(file)

        processing_timeout: Optional[int] = kwargs.get('processing_timeout')
        timeout_seconds = processing_timeout or VALIDATION_CONSTANTS['MAX_PROCESSING_TIME_SECONDS']

        temp_file = tempfile.NamedTemporaryFile(delete=False, suffix='.pdf')
        try:
            temp_file.write(content)
            temp_file.close()  # Close handle to allow processing on Windows

            request.state.temp_file_path = temp_file.name
            request.state.file_content = content

            try:
                return await asyncio.wait_for(func(*args, **kwargs), timeout=timeout_seconds)
            except asyncio.TimeoutError:
                logger.error(f"Processing timed out after {timeout_seconds}s for {file.filename}")
                raise HTTPException(
                    status_code=408,
                    detail=f"PDF processing timed out after {timeout_seconds} seconds."
                )
            except HTTPException:
                raise
            except Exception as e:
                raise to_http_exception(e, file.filename) from e

        finally:
            if not temp_file.closed:
                temp_file.close()
            if os.path.exists(temp_file.name):
                try:
                    os.unlink(temp_file.name)
                    logger.debug(f"Cleaned up temporary file: {temp_file.name}")
                except OSError as e:
                    logger.warning(f"Failed to clean up temporary file {temp_file.name}: {e}")

    return wrapper
