"""
Helper Utility Module

This module provides the retry and best-effort wrappers used around remote
calls, error classification for failures that never reached the remote
adapter, and small text helpers.
"""

import re
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import requests

from utils.exceptions import (
    ErrorKind, NON_RETRYABLE_KINDS, RemoteServiceError, RetryExhaustedError
)
from utils.logger import get_logger

logger = get_logger(__name__)

# Checked in order; the first matching pattern wins
_MESSAGE_PATTERNS = [
    (ErrorKind.EXTENSION_NOT_ALLOWED, re.compile(r"extension not allowed|extension.*not supported", re.I)),
    (ErrorKind.UNAUTHORIZED, re.compile(r"unauthori[sz]ed|session.*expired", re.I)),
    (ErrorKind.PERMISSION_DENIED, re.compile(r"permission|forbidden", re.I)),
    (ErrorKind.NETWORK, re.compile(r"network|timeout|timed out|connection", re.I)),
    (ErrorKind.FILE_TOO_LARGE, re.compile(r"too large|file size|invalid.*size", re.I)),
    (ErrorKind.UNSUPPORTED_FORMAT, re.compile(r"format|file type|mime", re.I)),
    (ErrorKind.QUOTA_EXCEEDED, re.compile(r"quota|limit", re.I)),
]


def classify_message(message: str) -> ErrorKind:
    """
    Classify an error message into an ErrorKind.

    Args:
        message: The error text.

    Returns:
        ErrorKind: The first matching kind, or ErrorKind.UNKNOWN.
    """
    for kind, pattern in _MESSAGE_PATTERNS:
        if message and pattern.search(message):
            return kind
    return ErrorKind.UNKNOWN


def classify_error(error: BaseException) -> ErrorKind:
    """
    Determine the ErrorKind of any exception.

    Errors raised by the remote adapter already carry their kind. Transport
    errors from requests map to NETWORK. Anything else falls back to
    message matching.

    Args:
        error: The exception to classify.

    Returns:
        ErrorKind: The classification.
    """
    if isinstance(error, RetryExhaustedError):
        return classify_error(error.last_error)
    if isinstance(error, RemoteServiceError):
        return error.kind
    if isinstance(error, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
        return ErrorKind.NETWORK
    return classify_message(str(error))


def is_retryable_error(error: BaseException) -> bool:
    """Return True unless the error is a permission, authorization or extension rejection."""
    if isinstance(error, RemoteServiceError):
        return error.retryable
    return classify_error(error) not in NON_RETRYABLE_KINDS


def execute_with_retry(operation: Callable[[], Any], max_attempts: int = 3, base_delay: float = 1.0,
                       is_retryable: Optional[Callable[[BaseException], bool]] = None,
                       sleep: Callable[[float], None] = time.sleep) -> Any:
    """
    Call an operation, retrying failures with exponential backoff.

    Args:
        operation: Zero-argument callable performing the remote call.
        max_attempts: Maximum number of attempts.
        base_delay: Delay in seconds before the second attempt; doubles after each failure.
        is_retryable: Predicate deciding whether an error may be retried.
            Defaults to is_retryable_error.
        sleep: Function used to wait between attempts.

    Returns:
        The result of the first successful call.

    Raises:
        The original error if it is not retryable.
        RetryExhaustedError: If all attempts failed; the last error is chained.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    is_retryable = is_retryable or is_retryable_error

    for attempt in range(1, max_attempts + 1):
        try:
            logger.info(f"Attempt {attempt}/{max_attempts}")
            result = operation()
            if attempt > 1:
                logger.info(f"Succeeded on attempt {attempt}")
            return result
        except Exception as e:
            logger.warning(f"Attempt {attempt} failed: {e}")

            if not is_retryable(e):
                logger.error(f"Non-retryable error, giving up: {e}")
                raise

            if attempt == max_attempts:
                logger.error(f"All {max_attempts} attempts failed")
                raise RetryExhaustedError(max_attempts, e) from e

            wait_time = base_delay * (2 ** (attempt - 1))
            logger.info(f"Waiting {wait_time}s before retry...")
            sleep(wait_time)


def best_effort(func: Callable[..., Any], *args, description: str = "side effect", **kwargs) -> Any:
    """
    Run a secondary operation whose failure must not affect the caller.

    Every Exception raised by ``func`` is logged and discarded. Use this for
    notification fan-out, counters and other denormalized writes that follow
    a successful primary action.

    Args:
        func: The callable to run.
        *args: Positional arguments for func.
        description: Short label used in the log message.
        **kwargs: Keyword arguments for func.

    Returns:
        The result of func, or None if it raised.
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        logger.warning(f"Best-effort {description} failed: {e}", exc_info=True)
        return None


def truncate_text(text: str, max_length: int = 100, add_ellipsis: bool = True) -> str:
    """
    Truncate text to a maximum length.

    When an ellipsis is added it counts towards max_length.

    Args:
        text: The text to truncate
        max_length: Maximum length of the result
        add_ellipsis: Whether to add an ellipsis if text is truncated

    Returns:
        str: Truncated text
    """
    if not text or len(text) <= max_length:
        return text

    if add_ellipsis:
        return text[:max_length - 3] + "..."
    return text[:max_length]


def extract_file_id(url: str) -> Optional[str]:
    """
    Extract a storage file id from a ``.../files/<id>/...`` URL.

    Args:
        url: The URL to inspect.

    Returns:
        Optional[str]: The file id, or None if the URL has no files segment.
    """
    if not url:
        return None
    match = re.search(r"/files/([^/?]+)", url)
    return match.group(1) if match else None


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()
