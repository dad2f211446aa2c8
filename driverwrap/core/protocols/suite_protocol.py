from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

StepFn = Callable[[], Awaitable[None]]


class SuiteProtocol(Protocol):
    """Registration surface of the test framework the hooks are adapted onto.

    Step functions handed to the framework are coroutine functions taking no
    arguments; the framework reports the step as done when the coroutine
    returns and as failed when it raises. ``timeout=0`` asks the framework not
    to apply its own step timeout.
    """

    def describe(self, name: str, fn: Callable[[], Any] | None = None) -> None:
        """Register a suite."""

    def xdescribe(self, name: str, fn: Callable[[], Any] | None = None) -> None:
        """Register a suppressed suite."""

    def it(self, name: str, fn: StepFn | None = None, timeout: float | None = None) -> None:
        """Register a test case."""

    def describe_only(self, name: str, fn: Callable[[], Any] | None = None) -> None:
        """Register a suite and run only the suites flagged this way."""

    def xit(self, name: str, fn: StepFn | None = None, timeout: float | None = None) -> None:
        """Register a suppressed test case."""

    def it_only(self, name: str, fn: StepFn | None = None, timeout: float | None = None) -> None:
        """Register a test case and run only the tests flagged this way."""

    def before(self, fn: StepFn, timeout: float | None = None) -> None:
        """Register a hook run once before the suite."""

    def after(self, fn: StepFn, timeout: float | None = None) -> None:
        """Register a hook run once after the suite."""

    def before_each(self, fn: StepFn, timeout: float | None = None) -> None:
        """Register a hook run before every test."""

    def after_each(self, fn: StepFn, timeout: float | None = None) -> None:
        """Register a hook run after every test."""
