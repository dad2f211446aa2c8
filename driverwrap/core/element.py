from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any, Callable

from driverwrap.core.actions import ELEMENT_ACTIONS, Action
from driverwrap.core.command_queue import Command
from driverwrap.core.errors import NotFoundError
from driverwrap.core.locator import By, Locator, LocatorChain
from driverwrap.core.protocols.session_protocol import ElementProtocol

if TYPE_CHECKING:
    from driverwrap.core.browser import Browser
    from driverwrap.core.element_collection import ElementCollectionHandle

logger = logging.getLogger(__name__)

# `element` is the resolved node, `expression` the code to evaluate against it
ELEMENT_EVALUATE_SCRIPT = "var element = arguments[0]; return eval(arguments[1]);"

OPTION_LOCATOR = By.css("option")


class ElementHandle:
    """Lazy reference to the element matched by a `LocatorChain`.

    Nothing is looked up when the handle is created, so handles can be built
    in helpers before the page exists::

        name_input = browser.element(By.name("name"))
        browser.get("/form")
        name_input.send_keys("Jane Doe")

    Every action re-resolves the chain and is queued on the browser's
    `CommandQueue`, so it observes the page as left by previously queued
    commands. The per-element primitives (`click`, `get_text`,
    `get_attribute`, ...) come from `ELEMENT_ACTIONS` and each returns a
    `Command`.
    """

    def __init__(self, browser: "Browser", chain: LocatorChain) -> None:
        self._browser = browser
        self.chain = chain

    def __repr__(self) -> str:
        return f"<ElementHandle {self.chain}>"

    def __getattr__(self, name: str) -> Callable[..., Command]:
        action = ELEMENT_ACTIONS.get(name)
        if action is None:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")
        return functools.partial(self._dispatch, action)

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(ELEMENT_ACTIONS))

    # --- resolution ---------------------------------------------------------

    def _submit(self, fn: Callable[..., Any], *args: Any, description: str) -> Command:
        return self._browser.queue.submit(fn, *args, description=description)

    async def _resolve(self) -> ElementProtocol:
        node = await self.chain.resolve(self._browser.session)
        if node is None:
            raise NotFoundError("Element handle has an empty locator chain")
        return node

    def _dispatch(self, action: Action, *args: Any) -> Command:
        action.check_args(args)
        return self._submit(self._apply, action, args, description=f"{action.name} {self.chain}")

    async def _apply(self, action: Action, args: tuple[Any, ...]) -> Any:
        node = await self._resolve()
        return await action.apply(self._browser.session, node, args)

    async def find(self, sub_locator: Locator | None = None) -> ElementProtocol:
        """Resolve now and return the raw session element.

        With `sub_locator`, returns the element matched beneath this one.
        """

        async def lookup() -> ElementProtocol:
            node = await self._resolve()
            if sub_locator is None:
                return node
            return await self._browser.session.find_element(sub_locator, node)

        return await self._submit(lookup, description=f"find {self.chain}")

    def is_present(self) -> Command:
        """Resolve to whether the element exists, without failing when it does not."""

        async def present() -> bool:
            try:
                await self._resolve()
            except NotFoundError:
                return False
            return True

        return self._submit(present, description=f"is_present {self.chain}")

    # --- chaining -----------------------------------------------------------

    def element(self, locator: Locator) -> "ElementHandle":
        return ElementHandle(self._browser, self.chain.append(locator))

    def css(self, selector: str) -> "ElementHandle":
        return self.element(By.css(selector))

    def all(self, locator: Locator) -> "ElementCollectionHandle":
        from driverwrap.core.element_collection import ElementCollectionHandle

        return ElementCollectionHandle(self._browser, self.chain, locator)

    def all_css(self, selector: str) -> "ElementCollectionHandle":
        return self.all(By.css(selector))

    def evaluate(self, expression: str) -> Command:
        async def run() -> Any:
            node = await self._resolve()
            return await self._browser.session.execute_script(ELEMENT_EVALUATE_SCRIPT, node, expression)

        return self._submit(run, description=f"evaluate {self.chain}")

    # --- waiting ------------------------------------------------------------

    def wait_until_displayed(self, timeout: float | None = None) -> Command:
        return self._browser.wait_for_displayed(self, timeout)

    def wait_until_not_displayed(self, timeout: float | None = None) -> Command:
        return self._browser.wait_for_not_displayed(self, timeout)

    # --- select lists -------------------------------------------------------

    def select_by_index(self, index: int) -> Command:
        async def select() -> int:
            options = await self._options()
            if not 0 <= index < len(options):
                raise NotFoundError(
                    f"No option at index {index} in {self.chain} ({len(options)} options)", OPTION_LOCATOR
                )
            await self._click_option(options[index])
            return 1

        return self._submit(select, description=f"select_by_index({index}) {self.chain}")

    def select_by_text(self, text: str) -> Command:
        return self._select_matching(lambda option: option.get_text(), text, "text")

    def select_by_value(self, value: str) -> Command:
        return self._select_matching(lambda option: option.get_attribute("value"), value, "value")

    def _select_matching(self, read: Callable[[ElementProtocol], Any], wanted: str, field: str) -> Command:
        """Click every option whose `field` equals `wanted`.

        Multi-select lists end up with all matching options toggled; raises
        NotFoundError when no option matches.
        """

        async def select() -> int:
            clicked = 0
            for option in await self._options():
                if await read(option) == wanted:
                    await self._click_option(option)
                    clicked += 1
            if not clicked:
                raise NotFoundError(f"No option with {field} {wanted!r} in {self.chain}", OPTION_LOCATOR)
            return clicked

        return self._submit(select, description=f"select_by_{field}({wanted!r}) {self.chain}")

    async def _options(self) -> list[ElementProtocol]:
        node = await self._resolve()
        return list(await self._browser.session.find_elements(OPTION_LOCATOR, node))

    async def _click_option(self, option: ElementProtocol) -> None:
        await option.click()
        logger.info(f"Select - {await option.get_text()}")
