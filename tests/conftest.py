import asyncio
import json
import re
from typing import Any, Callable

import pytest
from bs4 import BeautifulSoup, Tag

from driverwrap.core.browser import Browser
from driverwrap.core.errors import NotFoundError
from driverwrap.core.locator import Locator, Strategy

HTML_PARSER = 'html.parser'


def _is_hidden(tag: Tag) -> bool:
    style = (tag.get('style') or '').replace(' ', '')
    return tag.has_attr('hidden') or 'display:none' in style or 'visibility:hidden' in style


class FakeElement:
    def __init__(self, session: "FakeSession", tag: Tag) -> None:
        self.session = session
        self.tag = tag

    def __repr__(self) -> str:
        return f"<FakeElement {self.tag.name} {self.tag.get('id') or self.tag.get_text(strip=True)!r}>"

    async def _record(self, name: str, *args: Any) -> None:
        await self.session._record(name, self, *args)

    async def click(self) -> None:
        await self._record('click')
        self.session.clicked.append(self)

    async def send_keys(self, *keys: str) -> None:
        await self._record('send_keys', *keys)
        self.tag['value'] = self.tag.get('value', '') + ''.join(keys)

    async def get_tag_name(self) -> str:
        await self._record('get_tag_name')
        return self.tag.name

    async def get_css_value(self, name: str) -> str:
        await self._record('get_css_value', name)
        for declaration in (self.tag.get('style') or '').split(';'):
            key, _, value = declaration.partition(':')
            if key.strip() == name:
                return value.strip()
        return ''

    async def get_attribute(self, name: str) -> str | None:
        await self._record('get_attribute', name)
        value = self.tag.get(name)
        if isinstance(value, list):
            return ' '.join(value)
        return value

    async def get_text(self) -> str:
        await self._record('get_text')
        return self.tag.get_text(strip=True)

    async def get_size(self) -> dict:
        await self._record('get_size')
        return {'width': 100, 'height': 20}

    async def get_location(self) -> dict:
        await self._record('get_location')
        return {'x': 0, 'y': 0}

    async def is_enabled(self) -> bool:
        await self._record('is_enabled')
        return not self.tag.has_attr('disabled')

    async def is_selected(self) -> bool:
        await self._record('is_selected')
        return self.tag.has_attr('selected') or self.tag.has_attr('checked')

    async def submit(self) -> None:
        await self._record('submit')

    async def clear(self) -> None:
        await self._record('clear')
        self.tag['value'] = ''

    async def is_displayed(self) -> bool:
        await self._record('is_displayed')
        return not any(_is_hidden(t) for t in [self.tag, *self.tag.parents] if isinstance(t, Tag))

    async def get_outer_html(self) -> str:
        await self._record('get_outer_html')
        return str(self.tag)

    async def get_inner_html(self) -> str:
        await self._record('get_inner_html')
        return self.tag.decode_contents()


class FakeSession:
    """In-memory session resolving locators against HTML with BeautifulSoup.

    Every call is recorded in `calls` as a tuple ``(name, *args)``. `on_call`
    is invoked after each recorded call, which lets tests change the page
    while commands are running.
    """

    def __init__(self, html: str = '', *, pages: dict[str, str] | None = None, url: str = 'about:blank',
                 follow_script_navigation: bool = True) -> None:
        self.pages = pages or {}
        self.url = url
        self.soup = BeautifulSoup(html, HTML_PARSER)
        self.follow_script_navigation = follow_script_navigation
        self.calls: list[tuple] = []
        self.clicked: list[FakeElement] = []
        self.scripts: list[tuple[str, tuple]] = []
        self.script_result: Any = None
        self.screenshot = ''
        self.window_size: tuple[int, int] | None = None
        self.closed = False
        self.on_call: Callable[[tuple], None] | None = None
        self._elements: dict[int, FakeElement] = {}

    def set_html(self, html: str) -> None:
        self.soup = BeautifulSoup(html, HTML_PARSER)
        self._elements.clear()

    def load(self, url: str) -> None:
        self.url = url
        self.set_html(self.pages.get(url, ''))

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    async def _record(self, name: str, *args: Any) -> None:
        call = (name, *args)
        self.calls.append(call)
        # every transport call is a suspension point
        await asyncio.sleep(0)
        if self.on_call is not None:
            self.on_call(call)

    def _wrap(self, tag: Tag) -> FakeElement:
        element = self._elements.get(id(tag))
        if element is None:
            element = self._elements[id(tag)] = FakeElement(self, tag)
        return element

    def _query(self, locator: Locator, parent: FakeElement | None) -> list[Tag]:
        root = self.soup if parent is None else parent.tag
        value = locator.value
        strategy = locator.strategy
        if strategy is Strategy.CSS:
            return root.select(value)
        if strategy is Strategy.ID:
            return root.find_all(id=value)
        if strategy is Strategy.NAME:
            return root.find_all(attrs={'name': value})
        if strategy is Strategy.CLASS_NAME:
            return root.find_all(class_=value)
        if strategy is Strategy.TAG_NAME:
            return root.find_all(value)
        if strategy is Strategy.LINK_TEXT:
            return [a for a in root.find_all('a') if a.get_text(strip=True) == value]
        if strategy is Strategy.PARTIAL_LINK_TEXT:
            return [a for a in root.find_all('a') if value in a.get_text(strip=True)]
        raise NotImplementedError(f"FakeSession does not support {strategy}")

    async def find_element(self, locator: Locator, parent: FakeElement | None = None) -> FakeElement:
        await self._record('find_element', str(locator), parent)
        matches = self._query(locator, parent)
        if not matches:
            raise NotFoundError(f"No element found using locator: {locator}", locator)
        return self._wrap(matches[0])

    async def find_elements(self, locator: Locator, parent: FakeElement | None = None) -> list[FakeElement]:
        await self._record('find_elements', str(locator), parent)
        return [self._wrap(tag) for tag in self._query(locator, parent)]

    async def get(self, url: str) -> None:
        await self._record('get', url)
        self.load(url)

    async def get_current_url(self) -> str:
        await self._record('get_current_url')
        return self.url

    async def execute_script(self, script: str, *args: Any) -> Any:
        await self._record('execute_script', script, *args)
        self.scripts.append((script, args))
        match = re.search(r'window\.location\.assign\((".*?")\)', script)
        if match and self.follow_script_navigation:
            self.load(json.loads(match.group(1)))
        return self.script_result

    async def take_screenshot(self) -> str:
        await self._record('take_screenshot')
        return self.screenshot

    async def set_window_size(self, width: int, height: int) -> None:
        await self._record('set_window_size', width, height)
        self.window_size = (width, height)

    async def quit(self) -> None:
        await self._record('quit')
        self.closed = True


@pytest.fixture
def fake_session_factory():
    """Return a factory that constructs a FakeSession.

    Usage:
        session = fake_session_factory('<ul><li>a</li></ul>')
    """

    def _factory(html: str = '', **kwargs) -> FakeSession:
        return FakeSession(html, **kwargs)

    return _factory


@pytest.fixture
def browser_factory(fake_session_factory):
    """Return a factory building a Browser over a FakeSession.

    Synchronization is disabled unless requested so tests only see the
    calls they trigger.
    """

    def _factory(html: str = '', *, session: FakeSession | None = None, **kwargs) -> Browser:
        kwargs.setdefault('ignore_synchronization', True)
        kwargs.setdefault('poll_interval_ms', 10)
        return Browser(session or fake_session_factory(html), **kwargs)

    return _factory
