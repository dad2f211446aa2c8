from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

from driverwrap.core.errors import NotFoundError, WaitTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 100

DISPLAYED_MESSAGE = "timed out waiting for element to display"
NOT_DISPLAYED_MESSAGE = "timed out waiting for element to disappear"


@dataclass(frozen=True)
class WaitSpec:
    predicate: Callable[[], Awaitable[Any] | Any]
    timeout_ms: int
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    failure_message: str = "timed out waiting for condition"


async def wait_until(spec: WaitSpec, *, ignore_synchronization: bool = False) -> Any:
    """Poll `spec.predicate` until it returns something truthy.

    The predicate is evaluated at most once per `poll_interval_ms`. Returns the
    truthy value, or raises `WaitTimeoutError` with `failure_message` once
    `timeout_ms` has elapsed. A zero timeout or `ignore_synchronization`
    returns None immediately without evaluating the predicate.

    An in-flight predicate is never cancelled; the deadline is checked after
    each evaluation.
    """
    if ignore_synchronization or spec.timeout_ms == 0:
        return None

    loop = asyncio.get_running_loop()
    started = loop.time()
    deadline = started + spec.timeout_ms / 1000
    attempts = 0
    while True:
        attempts += 1
        value = spec.predicate()
        while inspect.isawaitable(value):
            value = await value
        if value:
            logger.debug(f"Condition met after {attempts} attempts ({loop.time() - started:.3f}s)")
            return value

        if loop.time() >= deadline:
            logger.debug(f"Giving up after {attempts} attempts: {spec.failure_message}")
            raise WaitTimeoutError(spec.failure_message, spec.timeout_ms)
        await asyncio.sleep(spec.poll_interval_ms / 1000)


class Displayable(Protocol):
    def is_displayed(self) -> Awaitable[bool]:
        ...


def visibility_spec(target: Displayable, *, displayed: bool, timeout_ms: int,
                    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS) -> WaitSpec:
    """Build the wait for `target` to become visible (or, with displayed=False, to disappear).

    An element that cannot be found counts as not displayed.
    """

    async def predicate() -> bool:
        try:
            visible = await target.is_displayed()
        except NotFoundError:
            visible = False
        return bool(visible) == displayed

    return WaitSpec(
        predicate=predicate,
        timeout_ms=timeout_ms,
        poll_interval_ms=poll_interval_ms,
        failure_message=DISPLAYED_MESSAGE if displayed else NOT_DISPLAYED_MESSAGE,
    )
