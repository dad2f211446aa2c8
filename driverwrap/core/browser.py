from __future__ import annotations

import base64
import binascii
import logging
import re
from functools import partial
from pathlib import Path
from typing import Any, Callable

from driverwrap.core.command_queue import Command, CommandQueue
from driverwrap.core.element import ElementHandle
from driverwrap.core.element_collection import ElementCollectionHandle
from driverwrap.core.locator import By, Locator, LocatorChain
from driverwrap.core.navigation import NavigationController
from driverwrap.core.protocols.session_protocol import ElementProtocol, SessionProtocol
from driverwrap.core.wait import DEFAULT_POLL_INTERVAL_MS, WaitSpec, visibility_spec, wait_until
from driverwrap.domain.config import DriverConfig, SyncConfig

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = re.compile(r"^data:image/png;base64,")


class Browser:
    """Entry point tying one session to its command queue.

    Lookup helpers return lazy handles. The waiting helpers (`id`, `css`,
    `xcss`) additionally queue a visibility wait, so any action on the handle
    runs only once the element reached the required state. Their trailing
    underscore variants (`id_`, `css_`) never wait.
    """

    def __init__(
        self,
        session: SessionProtocol,
        *,
        base_url: str = "",
        default_timeout: float = 10,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        ignore_synchronization: bool = False,
        queue: CommandQueue | None = None,
    ) -> None:
        self.session = session
        self.queue = queue or CommandQueue()
        # All navigation is resolved against this URL, the way anchors resolve
        self.base_url = base_url
        self.default_timeout = default_timeout
        self.poll_interval_ms = poll_interval_ms
        self.ignore_synchronization = ignore_synchronization
        self.navigation = NavigationController(self)

    @classmethod
    def from_config(cls, session: SessionProtocol, driver_config: DriverConfig, sync_config: SyncConfig) -> "Browser":
        return cls(
            session,
            base_url=driver_config.base_url,
            default_timeout=sync_config.default_timeout,
            poll_interval_ms=sync_config.poll_interval_ms,
            ignore_synchronization=sync_config.ignore_synchronization,
        )

    def _submit(self, fn: Callable[..., Any], *args: Any, description: str) -> Command:
        return self.queue.submit(fn, *args, description=description)

    def _timeout_ms(self, timeout: float | None) -> int:
        seconds = self.default_timeout if timeout is None else timeout
        return int(seconds * 1000)

    # --- lookups ------------------------------------------------------------

    def element(self, locator: Locator) -> ElementHandle:
        return ElementHandle(self, LocatorChain().append(locator))

    def element_all(self, locator: Locator) -> ElementCollectionHandle:
        return ElementCollectionHandle(self, LocatorChain(), locator)

    def wrap_element(self, node: ElementProtocol) -> ElementHandle:
        """Handle on an element that has already been resolved."""
        return ElementHandle(self, LocatorChain.anchored(node))

    def id(self, element_id: str, timeout: float | None = None) -> ElementHandle:
        return self._displayed(self.element(By.id(element_id)), timeout)

    def id_(self, element_id: str) -> ElementHandle:
        return self.element(By.id(element_id))

    def css(self, selector: str, timeout: float | None = None) -> ElementHandle:
        return self._displayed(self.element(By.css(selector)), timeout)

    def css_(self, selector: str) -> ElementHandle:
        return self.element(By.css(selector))

    def xcss(self, selector: str, timeout: float | None = None) -> ElementHandle:
        """Like `css`, but waits for the element to disappear."""
        handle = self.element(By.css(selector))
        if self._synchronizing(timeout):
            self.wait_for_not_displayed(handle, timeout)
        return handle

    def all_css(self, selector: str) -> ElementCollectionHandle:
        return self.element_all(By.css(selector))

    def _displayed(self, handle: ElementHandle, timeout: float | None) -> ElementHandle:
        if self._synchronizing(timeout):
            self.wait_for_displayed(handle, timeout)
        return handle

    def _synchronizing(self, timeout: float | None) -> bool:
        return not self.ignore_synchronization and self._timeout_ms(timeout) != 0

    # --- waiting ------------------------------------------------------------

    def wait(self, spec: WaitSpec) -> Command:
        run = partial(wait_until, spec, ignore_synchronization=self.ignore_synchronization)
        return self._submit(run, description=f"wait: {spec.failure_message}")

    def wait_for_displayed(self, handle: Any, timeout: float | None = None) -> Command:
        spec = visibility_spec(handle, displayed=True, timeout_ms=self._timeout_ms(timeout),
                               poll_interval_ms=self.poll_interval_ms)
        return self.wait(spec)

    def wait_for_not_displayed(self, handle: Any, timeout: float | None = None) -> Command:
        spec = visibility_spec(handle, displayed=False, timeout_ms=self._timeout_ms(timeout),
                               poll_interval_ms=self.poll_interval_ms)
        return self.wait(spec)

    # --- page level ---------------------------------------------------------

    def get(self, destination: str, timeout: float | None = None) -> Command:
        """Navigate to `destination`, resolved against `base_url`, and wait for it to start loading."""
        return self._submit(self.navigation.navigate, destination, self._timeout_ms(timeout),
                            description=f"get {destination}")

    def get_current_url(self) -> Command:
        return self._submit(self.session.get_current_url, description="get_current_url")

    def execute_script(self, script: str, *args: Any) -> Command:
        return self._submit(self.session.execute_script, script, *args, description="execute_script")

    def resize(self, width: int, height: int) -> Command:
        return self._submit(self.session.set_window_size, width, height, description=f"resize {width}x{height}")

    def save_screenshot(self, path: str | Path) -> Command:
        """Capture the page and write it as PNG to `path`.

        Writing is best effort: failures are logged and the command still succeeds.
        """

        async def save() -> bool:
            data = await self.session.take_screenshot()
            try:
                png = base64.b64decode(DATA_URL_PREFIX.sub("", data))
                Path(path).write_bytes(png)
            except (OSError, binascii.Error) as e:
                logger.error(f"Failed to save screenshot to {path}: {e}")
                return False
            logger.debug(f"Screenshot saved to {path}")
            return True

        return self._submit(save, description=f"save_screenshot {path}")

    def quit(self) -> Command:
        async def quit_() -> None:
            logger.info("Closing a browser")
            await self.session.quit()

        return self._submit(quit_, description="quit")
