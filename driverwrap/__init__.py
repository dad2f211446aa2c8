"""driverwrap: lazy element handles and a serialized command queue for browser tests."""

from .core.browser import Browser
from .core.command_queue import Command, CommandQueue, fully_resolved
from .core.element import ElementHandle
from .core.element_collection import ElementCollectionHandle
from .core.errors import (
    DriverWrapError,
    EmptyCollectionError,
    NotFoundError,
    TransportError,
    WaitTimeoutError,
)
from .core.locator import By, ChainStep, Locator, LocatorChain, Strategy
from .core.runner import Runner, run_blocking
from .core.wait import WaitSpec, wait_until

__all__ = [
    "Browser",
    "By",
    "ChainStep",
    "Command",
    "CommandQueue",
    "DriverWrapError",
    "ElementCollectionHandle",
    "ElementHandle",
    "EmptyCollectionError",
    "Locator",
    "LocatorChain",
    "NotFoundError",
    "Runner",
    "Strategy",
    "TransportError",
    "WaitSpec",
    "WaitTimeoutError",
    "fully_resolved",
    "run_blocking",
    "wait_until",
]
