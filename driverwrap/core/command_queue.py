"""Per-session serialization of browser commands.

Every operation against a session is submitted to its `CommandQueue` and runs
strictly in submission order, one at a time. A command that submits further
commands while it runs gets a child frame: those commands run in order as well
and the parent only completes once its frame has drained, so nested
continuations always finish before the next top-level command starts.

Failures nobody awaited are not swallowed. Commands queued behind one in the
same frame fail with its error instead of running, and the failure itself
fails the enclosing command or, at the top level, is raised by
`CommandQueue.drain()`. A visibility wait that times out therefore stops the
action queued after it.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from contextvars import ContextVar
from typing import Any, Callable, Generator, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_current_frame: ContextVar["_Frame | None"] = ContextVar("driverwrap_current_frame", default=None)


class Command(Generic[T]):
    """Single-assignment awaitable result of a queued task."""

    def __init__(self, fn: Callable[..., Any], args: tuple[Any, ...], description: str,
                 loop: asyncio.AbstractEventLoop) -> None:
        self.description = description
        self.observed = False
        self._fn = fn
        self._args = args
        self._future: asyncio.Future = loop.create_future()
        # command whose unobserved failure this one inherited
        self._cause: Command | None = None

    def __await__(self) -> Generator[Any, None, T]:
        self._observe()
        return self._future.__await__()

    def _observe(self) -> None:
        self.observed = True
        if self._cause is not None:
            self._cause.observed = True

    def __repr__(self) -> str:
        if not self._future.done():
            state = "pending"
        elif self._future.cancelled():
            state = "discarded"
        elif self._future.exception() is not None:
            state = "failed"
        else:
            state = "done"
        return f"<Command {self.description!r} {state}>"

    def done(self) -> bool:
        return self._future.done()

    def failed(self) -> bool:
        return self._future.done() and not self._future.cancelled() and self._future.exception() is not None

    def result(self) -> T:
        self._observe()
        return self._future.result()

    def exception(self) -> BaseException | None:
        self._observe()
        return self._future.exception()

    def add_done_callback(self, fn: Callable[["Command[T]"], Any]) -> None:
        self._future.add_done_callback(lambda _: fn(self))

    def _discard(self) -> None:
        self.observed = True
        if not self._future.done():
            self._future.cancel()

    def _fail_from(self, cause: "Command") -> None:
        """Fail without running, with the error of `cause`."""
        self._cause = cause
        if self.observed:
            cause.observed = True
        if not self._future.done():
            self._future.set_exception(cause._future.exception())

    async def _execute(self, queue: "CommandQueue") -> None:
        if self._future.done():
            return

        frame = _Frame(queue, self.description)
        token = _current_frame.set(frame)
        try:
            logger.debug(f"Executing command: {self.description}")
            value = self._fn(*self._args)
            if inspect.isawaitable(value):
                value = await value
            await frame.drain()
        except asyncio.CancelledError:
            await frame.abort()
            self._discard()
            raise
        except Exception as exc:
            await frame.abort()
            if not self._future.done():
                self._future.set_exception(exc)
        else:
            if not self._future.done():
                self._future.set_result(value)
        finally:
            _current_frame.reset(token)


class _Frame:
    """Ordered list of commands plus the task currently working through it.

    Once a command fails without anyone observing it, the frame is broken:
    queued and later submitted commands fail with the same error instead of
    running, until the failure is observed or the frame is drained.
    """

    def __init__(self, queue: "CommandQueue", label: str) -> None:
        self.queue = queue
        self.label = label
        self.current: Command | None = None
        self._pending: deque[Command] = deque()
        self._failures: list[Command] = []
        self._broken_by: Command | None = None
        self._runner: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._pending) + (1 if self.current is not None else 0)

    def _broken(self) -> Command | None:
        if self._broken_by is not None and self._broken_by.observed:
            self._broken_by = None
        return self._broken_by

    def schedule(self, command: Command) -> None:
        cause = self._broken()
        if cause is not None:
            logger.debug(f"Not running {command.description}: {cause.description} failed")
            command._fail_from(cause)
            return
        self._pending.append(command)
        if self._runner is None or self._runner.done():
            self._runner = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while self._pending:
            command = self._pending.popleft()
            self.current = command
            try:
                await command._execute(self.queue)
            finally:
                self.current = None
            if command.failed():
                self._failures.append(command)
                if not command.observed:
                    self._break(command)

    def _break(self, cause: Command) -> None:
        self._broken_by = cause
        if self._pending:
            logger.debug(f"Failing {len(self._pending)} queued commands after {cause.description} failed")
        while self._pending:
            self._pending.popleft()._fail_from(cause)

    async def wait_idle(self) -> None:
        while self._runner is not None and not self._runner.done():
            await asyncio.shield(self._runner)

    async def drain(self) -> None:
        """Wait until idle and raise the first failure no one has observed."""
        await self.wait_idle()
        failures, self._failures = self._failures, []
        self._broken_by = None
        unobserved = [c for c in failures if not c.observed]
        if not unobserved:
            return

        first, *rest = unobserved
        for command in rest:
            logger.warning(f"Unobserved failure in {command.description}: {command._future.exception()!r}")
        raise first.exception()

    async def abort(self) -> None:
        """Discard commands that have not started and wait for the in-flight one."""
        while self._pending:
            self._pending.popleft()._discard()
        await self.wait_idle()
        for command in self._failures:
            if not command.observed:
                logger.debug(f"Dropping failure of {command.description} after {self.label} failed: "
                             f"{command.exception()!r}")
        self._failures.clear()
        self._broken_by = None


class CommandQueue:
    """FIFO serialization point for all operations issued against one session."""

    def __init__(self, name: str = "session") -> None:
        self.name = name
        self._root = _Frame(self, name)

    def __len__(self) -> int:
        return len(self._root)

    @property
    def is_idle(self) -> bool:
        return len(self._root) == 0

    def submit(self, fn: Callable[..., Any], *args: Any, description: str | None = None) -> Command:
        """Append `fn(*args)` to the queue and return its eventual result.

        `fn` may be a plain function or return an awaitable. When called from
        inside a running command, the new command joins that command's frame.
        """
        loop = asyncio.get_running_loop()
        command: Command = Command(fn, args, description or getattr(fn, "__qualname__", repr(fn)), loop)

        frame = _current_frame.get()
        if frame is None or frame.queue is not self:
            frame = self._root
        logger.debug(f"Scheduling command: {command.description} (frame: {frame.label})")
        frame.schedule(command)
        return command

    async def drain(self) -> None:
        """Wait for every queued command to finish.

        Raises the first failure among commands whose result was never
        observed; further unobserved failures are logged.
        """
        await self._root.drain()

    def reset(self) -> None:
        """Discard every command that has not started yet."""
        discarded = len(self._root._pending)
        while self._root._pending:
            self._root._pending.popleft()._discard()
        self._root._failures.clear()
        self._root._broken_by = None
        if discarded:
            logger.info(f"Discarded {discarded} pending commands from {self.name}")


async def fully_resolved(value: Any) -> Any:
    """Await `value` and everything nested inside lists, tuples and dicts.

    Items are resolved one after the other so the output keeps the input
    order and at most one command is awaited at a time.
    """
    while inspect.isawaitable(value):
        value = await value

    if isinstance(value, list):
        return [await fully_resolved(item) for item in value]
    if isinstance(value, tuple):
        return tuple([await fully_resolved(item) for item in value])
    if isinstance(value, dict):
        return {key: await fully_resolved(item) for key, item in value.items()}
    return value
