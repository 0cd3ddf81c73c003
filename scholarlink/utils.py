"""Shared helpers for remote calls"""
import asyncio
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Awaitable, TypeVar

from scholarlink.errors import ScholarLinkError, RemoteOperationError

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def remote_operation(logger: logging.Logger, action: str, user_message: str):
    """
    Convert backend failures inside the block into RemoteOperationError.

    The original exception is logged with its traceback and chained; the
    caller only sees ``user_message``. ScholarLinkErrors pass through.

    Usage:
        with remote_operation(logger, "accept session", "Failed to accept session. Please try again."):
            await store.update(session_id, {"status": "accepted"})
    """
    try:
        yield
    except ScholarLinkError:
        raise
    except Exception as e:
        logger.error(f"Failed to {action}: {e}", exc_info=True)
        raise RemoteOperationError(user_message) from e


async def with_timeout(seconds: float, awaitable: Awaitable[T]) -> T:
    """
    Bound an awaitable by a timer.

    Raises:
        RemoteOperationError: If the awaitable does not finish in time
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as e:
        raise RemoteOperationError("The request timed out. Please try again.") from e
