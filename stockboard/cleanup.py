"""
Async resource cleanup utilities.

Centralized shutdown for async resources (the relay fetcher's httpx client,
the extractor service) so they are closed exactly once at exit instead of
leaking open connections.

Usage:
    from stockboard.cleanup import cleanup_async_resources

    async def main():
        try:
            # ... application logic ...
        finally:
            await cleanup_async_resources()
"""

from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)

# Registry of cleanup functions
_cleanup_functions: list[Callable[[], Awaitable[None]]] = []


def register_cleanup(cleanup_fn: Callable[[], Awaitable[None]]) -> None:
    """Register an async cleanup function to be called at shutdown."""
    if cleanup_fn not in _cleanup_functions:
        _cleanup_functions.append(cleanup_fn)


def registered_cleanups() -> list[Callable[[], Awaitable[None]]]:
    return list(_cleanup_functions)


async def cleanup_async_resources() -> None:
    """
    Run and then forget every registered cleanup function.

    A failing cleanup is logged and does not stop the others.
    """
    errors = []

    while _cleanup_functions:
        cleanup_fn = _cleanup_functions.pop(0)
        name = getattr(cleanup_fn, "__qualname__", repr(cleanup_fn))
        try:
            await cleanup_fn()
            logger.debug("cleanup_closed", resource=name)
        except Exception as e:
            errors.append((name, str(e)))

    if errors:
        for name, error in errors:
            logger.debug("cleanup_error", function=name, error=error)
