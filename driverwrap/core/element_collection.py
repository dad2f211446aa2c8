from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable, Generator

from driverwrap.core.command_queue import Command, fully_resolved
from driverwrap.core.element import ElementHandle
from driverwrap.core.locator import ChainStep, Locator, LocatorChain
from driverwrap.core.protocols.session_protocol import ElementProtocol

if TYPE_CHECKING:
    from driverwrap.core.browser import Browser

logger = logging.getLogger(__name__)


class ElementCollectionHandle:
    """Lazy reference to every element matching `locator` beneath `chain`.

    Example::

        items = browser.all_css(".menu li")
        browser.get("/menu")
        assert await items.count() == 2

    Awaiting the collection itself yields the list of raw session elements.
    """

    def __init__(self, browser: "Browser", chain: LocatorChain, locator: Locator) -> None:
        self._browser = browser
        self.chain = chain
        self.locator = locator

    def __repr__(self) -> str:
        return f"<ElementCollectionHandle {self.chain} >> all {self.locator}>"

    def __await__(self) -> Generator[Any, None, list[ElementProtocol]]:
        return self._submit(self._resolve_all, description=f"all {self.locator}").__await__()

    def _submit(self, fn: Callable[..., Any], *args: Any, description: str) -> Command:
        return self._browser.queue.submit(fn, *args, description=description)

    async def _resolve_all(self) -> list[ElementProtocol]:
        return await self.chain.resolve_all(self._browser.session, self.locator)

    def count(self) -> Command:
        async def count() -> int:
            return len(await self._resolve_all())

        return self._submit(count, description=f"count {self.locator}")

    def get(self, index: int) -> ElementHandle:
        """Handle on the element at `index` among the matches present when it is acted on."""
        return ElementHandle(self._browser, self.chain.append(ChainStep(self.locator, index)))

    def first(self) -> ElementHandle:
        return self.get(0)

    def last(self) -> ElementHandle:
        return self.get(-1)

    def each(self, fn: Callable[[ElementHandle], Any]) -> Command:
        """Call `fn` with a handle on every match, in document order.

        Awaitables returned by `fn` are not awaited here; they are queued
        behind the calls so they still complete before the next command.
        """

        async def each() -> None:
            for node in await self._resolve_all():
                result = fn(self._browser.wrap_element(node))
                if inspect.isawaitable(result):
                    self._submit(_await, result, description=f"each {self.locator} callback")

        return self._submit(each, description=f"each {self.locator}")

    def map(self, fn: Callable[[ElementHandle, int], Any]) -> Command:
        """Apply `fn(handle, index)` to every match and resolve to the list of results.

        Results are fully resolved: commands and awaitables, including ones
        nested in lists, tuples and dicts, are replaced by their values. The
        output follows document order.
        """

        async def map_() -> list[Any]:
            nodes = await self._resolve_all()
            results = [fn(self._browser.wrap_element(node), index) for index, node in enumerate(nodes)]
            return await fully_resolved(results)

        return self._submit(map_, description=f"map {self.locator}")


async def _await(awaitable: Any) -> Any:
    return await awaitable
