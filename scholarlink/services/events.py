"""
Session Domain Events

The session lifecycle manager publishes an event after every successful
transition. Subscribers (notification fan-out, reminder resync) run as
background tasks on the event loop, so a failing subscriber never undoes the
transition that triggered it.
"""
import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Awaitable, Callable, DefaultDict, List, Set, Tuple, Type

from scholarlink.schemas.session import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionEvent:
    session: Session


@dataclass(frozen=True)
class SessionRequested(SessionEvent):
    """A student booked a session; the tutor should hear about it"""


@dataclass(frozen=True)
class SessionAccepted(SessionEvent):
    pass


@dataclass(frozen=True)
class SessionRejected(SessionEvent):
    pass


@dataclass(frozen=True)
class SessionCompleted(SessionEvent):
    pass


@dataclass(frozen=True)
class SessionRated(SessionEvent):
    pass


@dataclass(frozen=True)
class SessionsChanged:
    """The cached session list was replaced or one of its entries changed"""
    sessions: Tuple[Session, ...]


Handler = Callable[[object], Awaitable[None]]


class EventBus:
    """In-process publish/subscribe with fire-and-forget delivery."""

    def __init__(self):
        self._handlers: DefaultDict[Type, List[Handler]] = defaultdict(list)
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, event_type: Type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def publish(self, event) -> None:
        """
        Schedule every handler registered for the event's type.

        Must be called from within the running event loop. Returns immediately.
        """
        handlers = self._handlers.get(type(event), [])
        if not handlers:
            return

        loop = asyncio.get_running_loop()
        for handler in handlers:
            task = loop.create_task(self._run(handler, event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _run(self, handler: Handler, event) -> None:
        try:
            await handler(event)
        except Exception as e:
            logger.error(
                f"Handler {getattr(handler, '__qualname__', handler)} failed for {type(event).__name__}: {e}",
                exc_info=True,
            )

    async def drain(self) -> None:
        """Wait until all scheduled handlers (and any they publish) have finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
