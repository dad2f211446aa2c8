from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from driverwrap.core.errors import EmptyCollectionError, NotFoundError
from driverwrap.core.protocols.session_protocol import ElementProtocol, SessionProtocol


class Strategy(Enum):
    ID = "id"
    CSS = "css selector"
    XPATH = "xpath"
    NAME = "name"
    CLASS_NAME = "class name"
    TAG_NAME = "tag name"
    LINK_TEXT = "link text"
    PARTIAL_LINK_TEXT = "partial link text"


@dataclass(frozen=True)
class Locator:
    strategy: Strategy
    value: str

    def __str__(self) -> str:
        return f"By.{self.strategy.name.lower()}({self.value!r})"


class By:
    """Factory helpers for `Locator` values, e.g. ``By.css('li.item')``."""

    @staticmethod
    def id(value: str) -> Locator:
        return Locator(Strategy.ID, value)

    @staticmethod
    def css(value: str) -> Locator:
        return Locator(Strategy.CSS, value)

    @staticmethod
    def xpath(value: str) -> Locator:
        return Locator(Strategy.XPATH, value)

    @staticmethod
    def name(value: str) -> Locator:
        return Locator(Strategy.NAME, value)

    @staticmethod
    def class_name(value: str) -> Locator:
        return Locator(Strategy.CLASS_NAME, value)

    @staticmethod
    def tag_name(value: str) -> Locator:
        return Locator(Strategy.TAG_NAME, value)

    @staticmethod
    def link_text(value: str) -> Locator:
        return Locator(Strategy.LINK_TEXT, value)

    @staticmethod
    def partial_link_text(value: str) -> Locator:
        return Locator(Strategy.PARTIAL_LINK_TEXT, value)


@dataclass(frozen=True)
class ChainStep:
    """One lookup in a chain.

    With ``index=None`` the step resolves to the single element matched by
    ``locator``. With an integer index the full match set is fetched and the
    element at that position picked, so `get(i)`, `first()` and `last()`
    handles stay lazy like any other.
    """
    locator: Locator
    index: int | None = None

    def __str__(self) -> str:
        if self.index is None:
            return str(self.locator)
        return f"{self.locator}[{self.index}]"

    async def resolve(self, session: SessionProtocol, base: ElementProtocol | None) -> ElementProtocol:
        if self.index is None:
            return await session.find_element(self.locator, base)

        matches = await session.find_elements(self.locator, base)
        if not matches:
            raise EmptyCollectionError(f"No element found using locator: {self.locator}", self.locator)
        try:
            return matches[self.index]
        except IndexError:
            raise NotFoundError(
                f"Index out of bound. Trying to access element at index {self.index}, "
                f"but there are only {len(matches)} elements that match locator {self.locator}",
                self.locator,
            ) from None


@dataclass(frozen=True)
class LocatorChain:
    """Immutable sequence of lookups, resolved left to right from a root.

    The root is the document (``anchor=None``) unless the chain was anchored on
    an element that has already been resolved.
    """
    steps: tuple[ChainStep, ...] = ()
    anchor: Any = field(default=None, compare=False)

    @classmethod
    def anchored(cls, node: ElementProtocol) -> "LocatorChain":
        return cls(steps=(), anchor=node)

    def append(self, step: Locator | ChainStep) -> "LocatorChain":
        if isinstance(step, Locator):
            step = ChainStep(step)
        return LocatorChain(steps=self.steps + (step,), anchor=self.anchor)

    def __len__(self) -> int:
        return len(self.steps)

    def __str__(self) -> str:
        parts = [str(step) for step in self.steps]
        if self.anchor is not None:
            parts.insert(0, "<element>")
        return " > ".join(parts) or "<root>"

    async def resolve(self, session: SessionProtocol) -> ElementProtocol | None:
        """Walk the chain and return the matched element, or None for the root."""
        base = self.anchor
        for step in self.steps:
            base = await step.resolve(session, base)
        return base

    async def resolve_all(self, session: SessionProtocol, locator: Locator) -> list[ElementProtocol]:
        """Resolve the chain, then return every element matching `locator` beneath it."""
        base = await self.resolve(session)
        return list(await session.find_elements(locator, base))
