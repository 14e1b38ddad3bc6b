"""
PDF File Validation and Resource Limits
Upload and file validation, system resource checks, and time/memory limits
for document processing.
"""

import os
import tempfile
import time
import psutil
from typing import Optional, Tuple, Dict, Any
import logging

logger = logging.getLogger(__name__)

# Validation constants
VALIDATION_CONSTANTS = {
    'PDF_SIGNATURE': b'%PDF',
    'MAX_FILE_SIZE_MB': 50,
    'MAX_PROCESSING_TIME_SECONDS': 300,  # 5 minutes
    'MAX_MEMORY_USAGE_MB': 1000,  # 1GB
    'MIN_AVAILABLE_MB': 100,
    'SUPPORTED_PDF_VERSIONS': ['1.0', '1.1', '1.2', '1.3', '1.4', '1.5', '1.6', '1.7', '2.0'],
}

BYTES_PER_MB = 1024 * 1024


class PdfValidationError(Exception):
    """The PDF or the request to process it is invalid"""
    pass


class ProcessingTimeoutError(Exception):
    """Processing exceeded its time budget"""
    pass


class MemoryLimitError(Exception):
    """Process memory exceeded its limit"""
    pass


def validate_pdf_signature(file_path: str) -> Tuple[bool, Optional[str]]:
    """
    Validate PDF file signature (magic bytes) and version

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        with open(file_path, 'rb') as f:
            header = f.read(8)
    except FileNotFoundError:
        return False, f"File not found: {file_path}"
    except PermissionError:
        return False, f"Permission denied accessing file: {file_path}"
    except OSError as e:
        return False, f"Error validating PDF signature: {str(e)}"

    if len(header) < 4:
        return False, "File too small to be a valid PDF"

    if not header.startswith(VALIDATION_CONSTANTS['PDF_SIGNATURE']):
        return False, f"Invalid PDF signature. Expected {VALIDATION_CONSTANTS['PDF_SIGNATURE']}, got {header[:4]}"

    # Unsupported versions are only logged: most of them parse fine
    if len(header) >= 8:
        try:
            version_str = header[5:8].decode('ascii')
            if version_str not in VALIDATION_CONSTANTS['SUPPORTED_PDF_VERSIONS']:
                logger.warning(f"Unsupported PDF version: {version_str}")
        except UnicodeDecodeError:
            logger.warning("Could not decode PDF version")

    return True, None


def validate_file_size(file_path: str, max_size_mb: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate file size limits

    Returns:
        Tuple of (is_valid, error_message)
    """
    if max_size_mb is None:
        max_size_mb = VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB']

    try:
        size_mb = os.path.getsize(file_path) / BYTES_PER_MB
    except FileNotFoundError:
        return False, f"File not found: {file_path}"
    except OSError as e:
        return False, f"Error checking file size: {str(e)}"

    if size_mb > max_size_mb:
        return False, f"File too large: {size_mb:.1f}MB (max: {max_size_mb}MB)"

    logger.debug(f"File size validation passed: {size_mb:.1f}MB")
    return True, None


def validate_file_content(content: bytes, max_size_mb: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate uploaded file content before saving to disk

    Returns:
        Tuple of (is_valid, error_message)
    """
    if max_size_mb is None:
        max_size_mb = VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB']

    size_mb = len(content) / BYTES_PER_MB
    if size_mb > max_size_mb:
        return False, f"File too large: {size_mb:.1f}MB (max: {max_size_mb}MB)"

    if len(content) < 4:
        return False, "File too small to be a valid PDF"

    if not content.startswith(VALIDATION_CONSTANTS['PDF_SIGNATURE']):
        return False, "Invalid PDF signature in uploaded content"

    return True, None


def validate_processing_environment() -> Tuple[bool, Optional[str]]:
    """
    Check that the system has enough free memory and temp disk space

    Returns:
        Tuple of (is_valid, error_message)
    """
    min_mb = VALIDATION_CONSTANTS['MIN_AVAILABLE_MB']

    available_mb = psutil.virtual_memory().available / BYTES_PER_MB
    if available_mb < min_mb:
        return False, f"Insufficient memory available: {available_mb:.1f}MB (need at least {min_mb}MB)"

    temp_dir = tempfile.gettempdir()
    free_mb = psutil.disk_usage(temp_dir).free / BYTES_PER_MB
    if free_mb < min_mb:
        return False, f"Insufficient disk space in {temp_dir}: {free_mb:.1f}MB (need at least {min_mb}MB)"

    logger.debug(f"Environment validation passed: {available_mb:.1f}MB memory, {free_mb:.1f}MB disk")
    return True, None


class ResourceManager:
    """
    Context manager tracking elapsed time and memory during document processing

    Example:
        >>> with ResourceManager(max_time_seconds=60) as resources:
        ...     for page in pages:
        ...         resources.check_limits()
    """

    def __init__(self, max_memory_mb: Optional[int] = None, max_time_seconds: Optional[int] = None):
        self.max_memory_mb = max_memory_mb or VALIDATION_CONSTANTS['MAX_MEMORY_USAGE_MB']
        self.max_time_seconds = max_time_seconds or VALIDATION_CONSTANTS['MAX_PROCESSING_TIME_SECONDS']
        self.start_time = None
        self.start_memory = None

    def __enter__(self):
        self.start_time = time.time()
        self.start_memory = _process_memory_mb()
        logger.debug(f"ResourceManager: Starting processing with {self.start_memory:.1f}MB memory")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        processing_time = time.time() - self.start_time
        memory_delta = _process_memory_mb() - self.start_memory
        logger.info(f"ResourceManager: Processing completed in {processing_time:.2f}s, "
                    f"memory usage: {memory_delta:+.1f}MB")
        return False

    def check_limits(self) -> None:
        """
        Raises:
            ProcessingTimeoutError: If the time budget is spent
            MemoryLimitError: If process memory is above the limit
        """
        elapsed = time.time() - self.start_time
        if elapsed > self.max_time_seconds:
            raise ProcessingTimeoutError(
                f"Processing timeout: {elapsed:.1f}s (max: {self.max_time_seconds}s)"
            )

        current_memory = _process_memory_mb()
        if current_memory > self.max_memory_mb:
            raise MemoryLimitError(
                f"Memory limit exceeded: {current_memory:.1f}MB (max: {self.max_memory_mb}MB)"
            )


def _process_memory_mb() -> float:
    return psutil.Process().memory_info().rss / BYTES_PER_MB


def comprehensive_pdf_validation(file_path: str, max_size_mb: Optional[int] = None) -> Dict[str, Any]:
    """
    Run all file and environment checks

    Returns:
        Dictionary with `is_valid`, `errors`, `warnings` and `file_info`
    """
    results = {
        'is_valid': True,
        'errors': [],
        'warnings': [],
        'file_info': {}
    }

    if not os.path.exists(file_path):
        results['is_valid'] = False
        results['errors'].append(f"File not found: {file_path}")
        return results

    size_valid, size_error = validate_file_size(file_path, max_size_mb)
    if size_valid:
        results['file_info']['size_mb'] = round(os.path.getsize(file_path) / BYTES_PER_MB, 2)
    else:
        results['is_valid'] = False
        results['errors'].append(size_error)

    sig_valid, sig_error = validate_pdf_signature(file_path)
    if not sig_valid:
        results['is_valid'] = False
        results['errors'].append(sig_error)

    try:
        env_valid, env_error = validate_processing_environment()
    except (OSError, psutil.Error) as e:
        results['warnings'].append(f"Could not check system resources: {e}")
    else:
        if not env_valid:
            results['is_valid'] = False
            results['errors'].append(env_error)

    return results


__all__ = [
    'validate_pdf_signature',
    'validate_file_size',
    'validate_file_content',
    'validate_processing_environment',
    'comprehensive_pdf_validation',
    'ResourceManager',
    'PdfValidationError',
    'ProcessingTimeoutError',
    'MemoryLimitError',
    'VALIDATION_CONSTANTS'
]
