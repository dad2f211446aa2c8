"""Test hooks that run inside the command queue.

Each registered step runs as a queued command and is reported done only when
every command it enqueued has finished. The runner must share the browser's
queue, otherwise steps do not wait for browser commands::

    runner = Runner(browser.queue, suite)

Step functions may be plain functions that just queue work::

    def opens_form():
        browser.get("/form")
        browser.id("submit").click()

    runner.it("opens the form", opens_form)

or coroutine functions that await results::

    async def reads_title():
        assert await browser.css("h1").get_text() == "Welcome"

    runner.it("reads the title", reads_title)
"""
from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Callable

from driverwrap.core.command_queue import CommandQueue
from driverwrap.core.protocols.suite_protocol import StepFn, SuiteProtocol

logger = logging.getLogger(__name__)

# Waits carry their own deadlines, the framework's step timeout is switched off
NO_TIMEOUT = 0


class Runner:
    def __init__(self, queue: CommandQueue, suite: SuiteProtocol) -> None:
        self.queue = queue
        self.suite = suite

    def wrap(self, fn: Callable[[], Any], name: str | None = None) -> StepFn:
        """Return a coroutine function running `fn` in the queue and draining it."""
        queue = self.queue
        label = name or getattr(fn, "__name__", "step")

        @functools.wraps(fn)
        async def step() -> None:
            logger.debug(f"Running step: {label}")
            await queue.submit(fn, description=label)
            await queue.drain()

        return step

    def _wrap_optional(self, fn: Callable[[], Any] | None, name: str) -> StepFn | None:
        return None if fn is None else self.wrap(fn, name)

    def describe(self, name: str, fn: Callable[[], Any] | None = None) -> None:
        self.suite.describe(name, fn)

    def describe_only(self, name: str, fn: Callable[[], Any] | None = None) -> None:
        self.suite.describe_only(name, fn)

    def xdescribe(self, name: str, fn: Callable[[], Any] | None = None) -> None:
        self.suite.xdescribe(name, fn)

    def it(self, name: str, fn: Callable[[], Any] | None = None) -> None:
        self.suite.it(name, self._wrap_optional(fn, name), timeout=NO_TIMEOUT)

    def it_only(self, name: str, fn: Callable[[], Any] | None = None) -> None:
        self.suite.it_only(name, self._wrap_optional(fn, name), timeout=NO_TIMEOUT)

    iit = it_only

    def xit(self, name: str, fn: Callable[[], Any] | None = None) -> None:
        self.suite.xit(name, self._wrap_optional(fn, name), timeout=NO_TIMEOUT)

    def before(self, fn: Callable[[], Any]) -> None:
        self.suite.before(self.wrap(fn, "before"), timeout=NO_TIMEOUT)

    def after(self, fn: Callable[[], Any]) -> None:
        self.suite.after(self.wrap(fn, "after"), timeout=NO_TIMEOUT)

    def before_each(self, fn: Callable[[], Any]) -> None:
        self.suite.before_each(self.wrap(fn, "before_each"), timeout=NO_TIMEOUT)

    def after_each(self, fn: Callable[[], Any]) -> None:
        self.suite.after_each(self.wrap(fn, "after_each"), timeout=NO_TIMEOUT)

    def ignore(self, predicate: Callable[[], bool]) -> "Ignore":
        """Register the chained `describe`/`it` as suppressed when `predicate()` is true.

        The predicate is evaluated at registration time and must be synchronous.
        """
        return Ignore(self, predicate)


class Ignore:
    def __init__(self, runner: Runner, predicate: Callable[[], bool]) -> None:
        self._runner = runner
        self._predicate = predicate

    def _pick(self, on_skip: Callable[..., None], on_run: Callable[..., None]) -> Callable[..., None]:
        if self._predicate():
            return on_skip
        return on_run

    def describe(self, name: str, fn: Callable[[], Any] | None = None) -> None:
        self._pick(self._runner.xdescribe, self._runner.describe)(name, fn)

    def describe_only(self, name: str, fn: Callable[[], Any] | None = None) -> None:
        self._pick(self._runner.xdescribe, self._runner.describe_only)(name, fn)

    def it(self, name: str, fn: Callable[[], Any] | None = None) -> None:
        self._pick(self._runner.xit, self._runner.it)(name, fn)

    def it_only(self, name: str, fn: Callable[[], Any] | None = None) -> None:
        self._pick(self._runner.xit, self._runner.it_only)(name, fn)


def run_blocking(step: StepFn) -> None:
    """Run a wrapped step to completion for frameworks that only call plain functions."""
    asyncio.run(step())
