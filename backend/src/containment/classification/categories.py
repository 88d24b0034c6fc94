"""Category indicators used to tag reports."""
import asyncio
import socket

from ..types import ErrorCategory

# Checked in order; the first category with a matching type or keyword wins.
CATEGORY_INDICATORS: list[tuple[ErrorCategory, tuple[type, ...], tuple[str, ...]]] = [
    (
        ErrorCategory.TIMEOUT,
        (TimeoutError, asyncio.TimeoutError, socket.timeout),
        ('timeout', 'timed out'),
    ),
    (
        ErrorCategory.NETWORK,
        (ConnectionError, socket.gaierror),
        ('connection', 'network', 'socket', 'dns', 'resolve', 'refused',
         'unreachable', 'fetch', 'graphql'),
    ),
    (
        ErrorCategory.PERMISSION,
        (PermissionError,),
        ('permission', 'denied', 'forbidden', '403', 'unauthorized', '401'),
    ),
    (
        ErrorCategory.VALIDATION,
        (ValueError, TypeError, KeyError),
        ('validation', 'invalid', 'malformed', 'schema', 'format'),
    ),
    (
        ErrorCategory.RESOURCE,
        (MemoryError, RecursionError),
        ('memory', 'disk', 'space', 'quota', 'limit', 'exhausted'),
    ),
]


def categorize(error: BaseException) -> ErrorCategory:
    """Classify a fault into a coarse category."""
    error_str = str(error).lower()
    error_type = type(error).__name__.lower()

    for category, exception_types, keywords in CATEGORY_INDICATORS:
        if isinstance(error, exception_types):
            return category
        if any(k in error_str or k in error_type for k in keywords):
            return category

    return ErrorCategory.UNKNOWN
