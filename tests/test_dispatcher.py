"""Tests for the command dispatcher."""

from __future__ import annotations

import threading
from typing import Any

import pytest

from logscout.dispatcher import Command, CommandDispatcher, Err, Ok
from logscout.errors import ExternalProcessError, FetchError, ValidationError


def _fail(exc: Exception) -> Any:
    def run() -> Any:
        raise exc

    return run


class TestCommandDispatcher:
    @pytest.mark.asyncio
    async def test_ok_result(self) -> None:
        dispatcher = CommandDispatcher()
        received: list[Any] = []
        dispatcher.dispatch(Command("answer", lambda: 42, lambda result: ("answer", result)))
        await dispatcher.drain(received.append)
        assert received == [("answer", Ok(42))]

    @pytest.mark.asyncio
    async def test_logscout_error_is_kept(self) -> None:
        dispatcher = CommandDispatcher()
        received: list[Any] = []
        error = ValidationError("bad filter")
        dispatcher.dispatch(Command("bad", _fail(error), lambda result: result))
        await dispatcher.drain(received.append)
        assert received == [Err(error)]

    @pytest.mark.asyncio
    async def test_other_exceptions_are_wrapped(self) -> None:
        dispatcher = CommandDispatcher()
        received: list[Any] = []
        dispatcher.dispatch(Command("fetch", _fail(RuntimeError("socket closed")), lambda result: result))
        dispatcher.dispatch(
            Command("editor", _fail(KeyError()), lambda result: result, error_type=ExternalProcessError)
        )
        await dispatcher.drain(received.append)

        errors = {type(r.error): str(r.error) for r in received}
        assert errors == {FetchError: "socket closed", ExternalProcessError: "KeyError"}

    @pytest.mark.asyncio
    async def test_offload_runs_in_worker_thread(self) -> None:
        dispatcher = CommandDispatcher()
        received: list[Any] = []
        dispatcher.dispatch(Command("threaded", threading.get_ident, lambda result: ("threaded", result)))
        dispatcher.dispatch(
            Command("inline", threading.get_ident, lambda result: ("inline", result), offload=False)
        )
        await dispatcher.drain(received.append)

        idents = {name: result.value for name, result in received}
        assert idents["inline"] == threading.get_ident()
        assert idents["threaded"] != threading.get_ident()

    @pytest.mark.asyncio
    async def test_drain_delivers_follow_up_commands(self) -> None:
        dispatcher = CommandDispatcher()
        received: list[Any] = []

        def handler(message: Any) -> None:
            received.append(message)
            if message == "first":
                dispatcher.dispatch(Command("second", lambda: None, lambda _: "second"))

        dispatcher.dispatch(Command("first", lambda: None, lambda _: "first"))
        assert dispatcher.pending == 1
        await dispatcher.drain(handler)

        assert received == ["first", "second"]
        assert dispatcher.pending == 0

    def test_dispatch_requires_running_loop(self) -> None:
        dispatcher = CommandDispatcher()
        with pytest.raises(RuntimeError):
            dispatcher.dispatch(Command("orphan", lambda: None, lambda _: None))
