import base64
import functools
import json
import logging
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from playwright.async_api import Browser as PlaywrightBrowser
from playwright.async_api import ElementHandle, Error, Page, Playwright, async_playwright

from driverwrap.core.errors import NotFoundError, TransportError
from driverwrap.core.locator import Locator, Strategy
from driverwrap.domain.config import DriverConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Runs a WebDriver style script body: `arguments` holds the passed values
SCRIPT_RUNNER = "([body, args]) => new Function(body).apply(null, args)"

SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")


def _transport(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Re-raise Playwright errors as TransportError."""

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await fn(*args, **kwargs)
        except Error as e:
            raise TransportError(f"{fn.__name__} failed: {e.message}") from e

    return wrapper


def to_selector(locator: Locator) -> str:
    """Translate a locator into a Playwright selector string."""
    value = locator.value
    strategy = locator.strategy
    if strategy is Strategy.ID:
        return f"id={value}"
    if strategy is Strategy.CSS or strategy is Strategy.TAG_NAME:
        return f"css={value}"
    if strategy is Strategy.XPATH:
        return f"xpath={value}"
    if strategy is Strategy.NAME:
        return f"css=[name={json.dumps(value)}]"
    if strategy is Strategy.CLASS_NAME:
        return f"css=[class~={json.dumps(value)}]"
    if strategy is Strategy.LINK_TEXT:
        return f"css=a:text-is({json.dumps(value)})"
    if strategy is Strategy.PARTIAL_LINK_TEXT:
        return f"css=a:has-text({json.dumps(value)})"
    raise ValueError(f"Unsupported locator strategy: {strategy}")


class PlaywrightElement:
    """ElementProtocol implementation over a Playwright element handle."""

    def __init__(self, handle: ElementHandle) -> None:
        self.handle = handle

    @_transport
    async def click(self) -> None:
        await self.handle.click()

    @_transport
    async def send_keys(self, *keys: str) -> None:
        await self.handle.type("".join(keys))

    @_transport
    async def get_tag_name(self) -> str:
        return await self.handle.evaluate("el => el.tagName.toLowerCase()")

    @_transport
    async def get_css_value(self, name: str) -> str:
        return await self.handle.evaluate("(el, name) => getComputedStyle(el).getPropertyValue(name)", name)

    @_transport
    async def get_attribute(self, name: str) -> Optional[str]:
        return await self.handle.get_attribute(name)

    @_transport
    async def get_text(self) -> str:
        return await self.handle.inner_text()

    @_transport
    async def get_size(self) -> dict:
        box = await self.handle.bounding_box()
        if box is None:
            return {"width": 0, "height": 0}
        return {"width": box["width"], "height": box["height"]}

    @_transport
    async def get_location(self) -> dict:
        box = await self.handle.bounding_box()
        if box is None:
            return {"x": 0, "y": 0}
        return {"x": box["x"], "y": box["y"]}

    @_transport
    async def is_enabled(self) -> bool:
        return await self.handle.is_enabled()

    @_transport
    async def is_selected(self) -> bool:
        return await self.handle.evaluate("el => !!(el.selected || el.checked)")

    @_transport
    async def submit(self) -> None:
        await self.handle.evaluate("el => (el.form || el).submit()")

    @_transport
    async def clear(self) -> None:
        await self.handle.fill("")

    @_transport
    async def is_displayed(self) -> bool:
        return await self.handle.is_visible()

    @_transport
    async def get_outer_html(self) -> str:
        return await self.handle.evaluate("el => el.outerHTML")

    @_transport
    async def get_inner_html(self) -> str:
        return await self.handle.inner_html()


class PlaywrightSession:
    """SessionProtocol implementation driving one Playwright page."""

    def __init__(self, page: Page, browser: Optional[PlaywrightBrowser] = None,
                 playwright: Optional[Playwright] = None) -> None:
        self.page = page
        self.browser = browser
        self.playwright = playwright

    @classmethod
    async def launch(cls, driver_config: DriverConfig) -> "PlaywrightSession":
        if driver_config.browser not in SUPPORTED_BROWSERS:
            raise ValueError(f"Unsupported browser {driver_config.browser!r}, expected one of {SUPPORTED_BROWSERS}")

        logger.info(f"Launching a browser: {driver_config.browser} (headless={driver_config.headless})")
        if driver_config.user_agent:
            logger.info(f"Using user agent: {driver_config.user_agent}")
        playwright = await async_playwright().start()
        try:
            browser = await getattr(playwright, driver_config.browser).launch(headless=driver_config.headless)
            page = await browser.new_page(user_agent=driver_config.user_agent)
        except Error:
            await playwright.stop()
            raise
        return cls(page, browser=browser, playwright=playwright)

    def _root(self, parent: Optional[PlaywrightElement]) -> Any:
        return self.page if parent is None else parent.handle

    @_transport
    async def find_element(self, locator: Locator, parent: Optional[PlaywrightElement] = None) -> PlaywrightElement:
        handle = await self._root(parent).query_selector(to_selector(locator))
        if handle is None:
            raise NotFoundError(f"No element found using locator: {locator}", locator)
        return PlaywrightElement(handle)

    @_transport
    async def find_elements(self, locator: Locator, parent: Optional[PlaywrightElement] = None) -> List[PlaywrightElement]:
        handles = await self._root(parent).query_selector_all(to_selector(locator))
        return [PlaywrightElement(h) for h in handles]

    @_transport
    async def get(self, url: str) -> None:
        await self.page.goto(url)

    async def get_current_url(self) -> str:
        return self.page.url

    @_transport
    async def execute_script(self, script: str, *args: Any) -> Any:
        """Run a script body; element arguments are passed as DOM nodes.

        DOM nodes in the return value are not serializable by Playwright and
        come back as empty values.
        """
        values = [a.handle if isinstance(a, PlaywrightElement) else a for a in args]
        return await self.page.evaluate(SCRIPT_RUNNER, [script, values])

    @_transport
    async def take_screenshot(self) -> str:
        png = await self.page.screenshot()
        return base64.b64encode(png).decode("ascii")

    @_transport
    async def set_window_size(self, width: int, height: int) -> None:
        await self.page.set_viewport_size({"width": width, "height": height})

    async def quit(self) -> None:
        if self.browser is None:
            await self.page.close()
        else:
            await self.browser.close()
            self.browser = None
        if self.playwright is not None:
            await self.playwright.stop()
            self.playwright = None
