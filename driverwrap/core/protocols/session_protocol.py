from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Sequence

if TYPE_CHECKING:
    from driverwrap.core.locator import Locator


class ElementProtocol(Protocol):
    """A node resolved by the session.

    These are the only per-node primitives the engine relies on. Handles
    dispatch to them by name through `driverwrap.core.actions.ELEMENT_ACTIONS`.
    """

    async def click(self) -> None:
        """Click the element."""

    async def send_keys(self, *keys: str) -> None:
        """Type the given keys into the element."""

    async def get_tag_name(self) -> str:
        """Return the lower-case tag name."""

    async def get_css_value(self, name: str) -> str:
        """Return the computed value of a CSS property."""

    async def get_attribute(self, name: str) -> str | None:
        """Return an attribute value or None when the attribute is absent."""

    async def get_text(self) -> str:
        """Return the visible text of the element."""

    async def get_size(self) -> dict[str, float]:
        """Return ``{'width': ..., 'height': ...}``."""

    async def get_location(self) -> dict[str, float]:
        """Return ``{'x': ..., 'y': ...}``."""

    async def is_enabled(self) -> bool:
        """Return True if the element is enabled."""

    async def is_selected(self) -> bool:
        """Return True if an option, checkbox or radio is selected."""

    async def submit(self) -> None:
        """Submit the form containing the element."""

    async def clear(self) -> None:
        """Clear the value of a text input."""

    async def is_displayed(self) -> bool:
        """Return True if the element is rendered visibly."""

    async def get_outer_html(self) -> str:
        """Return the outer HTML of the element."""

    async def get_inner_html(self) -> str:
        """Return the inner HTML of the element."""


class SessionProtocol(Protocol):
    """Capability interface of one browser session.

    The engine never touches a browser library directly; concrete transports
    (for example the Playwright-based session in
    `driverwrap/driver_adapter/driver.py`) implement these methods.
    """

    async def find_element(self, locator: "Locator", parent: ElementProtocol | None = None) -> ElementProtocol:
        """Return the first element matching `locator` beneath `parent` (or the document).

        Implementations raise `driverwrap.core.errors.NotFoundError` when nothing matches.
        """

    async def find_elements(self, locator: "Locator", parent: ElementProtocol | None = None) -> Sequence[ElementProtocol]:
        """Return every element matching `locator` beneath `parent`, in document order."""

    async def get(self, url: str) -> None:
        """Navigate the session to an absolute URL."""

    async def get_current_url(self) -> str:
        """Return the URL of the current page."""

    async def execute_script(self, script: str, *args: Any) -> Any:
        """Run a script in the page.

        Primitives are returned as-is, functions as their source string and
        DOM nodes as elements.
        """

    async def take_screenshot(self) -> str:
        """Return a base64 encoded PNG, optionally prefixed with a data URL header."""

    async def set_window_size(self, width: int, height: int) -> None:
        """Resize the browser viewport."""

    async def quit(self) -> None:
        """Close the session and release the browser."""
