from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING
from urllib.parse import urljoin

from driverwrap.core.wait import WaitSpec, wait_until

if TYPE_CHECKING:
    from driverwrap.core.browser import Browser

logger = logging.getLogger(__name__)

DEFER_LABEL = "APP_DEFER_BOOTSTRAP!"
BLANK_PAGE = "about:blank"
PAGE_LOAD_MESSAGE = "timed out waiting for page to load"


class NavigationController:
    """Page loads that can be waited on.

    With synchronization enabled the browser first lands on a blank page,
    marks `window.name` and then navigates by script. Leaving the blank page
    is an unambiguous signal that the new page started loading, even when
    the browser was already on the destination before the command ran.
    """

    def __init__(self, browser: "Browser") -> None:
        self._browser = browser

    def resolve_url(self, destination: str) -> str:
        """Resolve `destination` against the base URL the way an anchor would."""
        base_url = self._browser.base_url
        if not base_url:
            return destination
        return urljoin(base_url, destination)

    @staticmethod
    def bootstrap_script(destination: str) -> str:
        return (
            f"window.name = {json.dumps(DEFER_LABEL)} + window.name;"
            f"window.location.assign({json.dumps(destination)});"
        )

    async def navigate(self, destination: str, timeout_ms: int) -> str:
        """Load `destination` and return the absolute URL that was requested."""
        session = self._browser.session
        url = self.resolve_url(destination)
        logger.info(f"Navigating to: {url}")

        if self._browser.ignore_synchronization:
            await session.get(url)
            return url

        await session.get(BLANK_PAGE)
        await session.execute_script(self.bootstrap_script(url))

        async def left_blank_page() -> bool:
            current = await session.get_current_url()
            logger.debug(f"Actual URL: {current}")
            return current != BLANK_PAGE

        await wait_until(WaitSpec(
            predicate=left_blank_page,
            timeout_ms=timeout_ms,
            poll_interval_ms=self._browser.poll_interval_ms,
            failure_message=PAGE_LOAD_MESSAGE,
        ))
        return url
