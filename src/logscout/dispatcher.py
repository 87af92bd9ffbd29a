"""Deferred commands whose results come back as messages on a single inbox.

Slow work (backend queries, project discovery, external processes) runs off the
event loop; its outcome is wrapped in ``Ok`` or ``Err`` and handed to one serial
handler, which is the only place session state is mutated.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from logscout.errors import FetchError, LogScoutError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ok[T]:
    """A task that completed with a value."""

    value: T


@dataclass(frozen=True)
class Err:
    """A task that failed."""

    error: LogScoutError


type Result[T] = Ok[T] | Err


@dataclass(frozen=True)
class Command[T]:
    """A unit of deferred work.

    ``run`` computes a value without touching shared state; ``reply`` turns its
    tagged result into the message delivered to the handler. Exceptions other
    than LogScoutError are wrapped in ``error_type``. ``offload`` runs the work
    in a worker thread; set it to False for work that must stay on the loop
    thread (e.g. suspending the terminal for an editor).
    """

    name: str
    run: Callable[[], T]
    reply: Callable[[Result[T]], Any]
    error_type: type[LogScoutError] = FetchError
    offload: bool = True


@dataclass
class CommandDispatcher:
    """Runs commands concurrently and serialises their completion messages."""

    _inbox: asyncio.Queue[Any] = field(default_factory=asyncio.Queue)
    _pending: set[asyncio.Task[None]] = field(default_factory=set)

    @property
    def pending(self) -> int:
        """Number of commands still running."""
        return len(self._pending)

    def dispatch(self, command: Command[Any]) -> None:
        """Schedule a command. Must be called from the event loop."""
        logger.debug("Dispatching %s", command.name)
        task = asyncio.get_running_loop().create_task(self._execute(command), name=command.name)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _execute(self, command: Command[Any]) -> None:
        result: Result[Any]
        try:
            if command.offload:
                value = await asyncio.to_thread(command.run)
            else:
                value = command.run()
        except LogScoutError as exc:
            result = Err(exc)
        except Exception as exc:  # noqa: BLE001 - errors never cross the async boundary as exceptions
            logger.debug("Command %s raised", command.name, exc_info=True)
            result = Err(command.error_type(str(exc) or type(exc).__name__))
        else:
            result = Ok(value)
        await self._inbox.put(command.reply(result))

    async def run(self, handler: Callable[[Any], None]) -> None:
        """Deliver completion messages to the handler, one at a time, forever."""
        while True:
            message = await self._inbox.get()
            handler(message)

    async def drain(self, handler: Callable[[Any], None]) -> None:
        """Deliver messages until no command is pending and the inbox is empty."""
        while True:
            while not self._inbox.empty():
                handler(self._inbox.get_nowait())
            if not self._pending:
                return
            await asyncio.wait(set(self._pending))
