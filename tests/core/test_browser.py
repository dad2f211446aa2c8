import asyncio
import base64
import logging

import pytest

from driverwrap.core.browser import Browser
from driverwrap.core.errors import WaitTimeoutError
from driverwrap.core.navigation import BLANK_PAGE, DEFER_LABEL, PAGE_LOAD_MESSAGE
from driverwrap.domain.config import DriverConfig, SyncConfig

PAGES = {"http://example.test/home": "<h1>Home</h1>"}


async def _perform(make):
    return await make()


def _show_after(session, calls: int, html: str):
    """Replace the page once `is_displayed` was called `calls` times."""
    seen = []

    def on_call(call):
        if call[0] == "is_displayed":
            seen.append(call)
            if len(seen) == calls:
                session.set_html(html)

    return on_call


def test_destinations_resolve_against_base_url(browser_factory) -> None:
    browser = browser_factory(base_url="http://example.test")

    assert browser.navigation.resolve_url("/path") == "http://example.test/path"
    assert browser.navigation.resolve_url("http://other.test/x") == "http://other.test/x"
    assert browser_factory().navigation.resolve_url("/path") == "/path"


def test_get_with_synchronization_goes_through_blank_page(browser_factory, fake_session_factory) -> None:
    session = fake_session_factory(pages=PAGES)
    browser = browser_factory(session=session, base_url="http://example.test", ignore_synchronization=False)

    url = asyncio.run(_perform(lambda: browser.get("/home")))

    assert url == "http://example.test/home"
    assert session.calls[0] == ("get", BLANK_PAGE)
    assert session.names()[1:3] == ["execute_script", "get_current_url"]
    script = session.calls[1][1]
    assert DEFER_LABEL in script
    assert 'window.location.assign("http://example.test/home")' in script
    assert session.url == "http://example.test/home"


def test_get_times_out_when_page_never_loads(browser_factory, fake_session_factory) -> None:
    session = fake_session_factory(pages=PAGES, follow_script_navigation=False)
    browser = browser_factory(session=session, base_url="http://example.test", ignore_synchronization=False)

    with pytest.raises(WaitTimeoutError, match=PAGE_LOAD_MESSAGE):
        asyncio.run(_perform(lambda: browser.get("/home", timeout=0.05)))
    assert session.names().count("get_current_url") >= 2


def test_get_without_synchronization_loads_directly(browser_factory, fake_session_factory) -> None:
    session = fake_session_factory(pages=PAGES)
    browser = browser_factory(session=session, base_url="http://example.test")

    asyncio.run(_perform(lambda: browser.get("home")))

    assert session.calls == [("get", "http://example.test/home")]


@pytest.mark.parametrize("kwargs, timeout", [
    ({"ignore_synchronization": True}, None),
    ({"ignore_synchronization": False}, 0),
    ({"ignore_synchronization": False, "default_timeout": 0}, None),
])
def test_css_does_not_wait_when_synchronization_is_off(browser_factory, kwargs, timeout) -> None:
    browser = browser_factory("<p id='msg' hidden>hi</p>", **kwargs)

    text = asyncio.run(_perform(lambda: browser.css("#msg", timeout).get_text()))

    assert text == "hi"
    assert "is_displayed" not in browser.session.names()


def test_css_waits_until_displayed(browser_factory) -> None:
    browser = browser_factory("<p id='msg' hidden>hi</p>", ignore_synchronization=False)
    session = browser.session
    session.on_call = _show_after(session, 2, "<p id='msg'>hi</p>")

    text = asyncio.run(_perform(lambda: browser.css("#msg").get_text()))

    assert text == "hi"
    names = session.names()
    assert names.count("is_displayed") == 3
    assert names.index("get_text") > max(i for i, n in enumerate(names) if n == "is_displayed")


def test_id_wait_times_out(browser_factory) -> None:
    browser = browser_factory("<p id='msg' hidden>hi</p>", ignore_synchronization=False)

    async def _run():
        browser.id("msg", timeout=0.05)
        await browser.queue.drain()

    with pytest.raises(WaitTimeoutError, match="timed out waiting for element to display"):
        asyncio.run(_run())


def test_xcss_waits_until_gone(browser_factory) -> None:
    browser = browser_factory("<div class='spinner'></div><p>done</p>", ignore_synchronization=False)
    session = browser.session
    session.on_call = _show_after(session, 1, "<p>done</p>")

    async def _run():
        browser.xcss(".spinner")
        return await browser.css_("p").get_text()

    assert asyncio.run(_run()) == "done"
    assert session.names().count("is_displayed") == 1


def test_xcss_times_out_while_visible(browser_factory) -> None:
    browser = browser_factory("<div class='spinner'></div>", ignore_synchronization=False)

    async def _run():
        browser.xcss(".spinner", timeout=0.05)
        await browser.queue.drain()

    with pytest.raises(WaitTimeoutError, match="timed out waiting for element to disappear"):
        asyncio.run(_run())


def test_save_screenshot(browser_factory, tmp_path) -> None:
    browser = browser_factory()
    browser.session.screenshot = "data:image/png;base64," + base64.b64encode(b"png-bytes").decode()
    target = tmp_path / "shot.png"

    assert asyncio.run(_perform(lambda: browser.save_screenshot(target))) is True
    assert target.read_bytes() == b"png-bytes"


def test_save_screenshot_failure_is_logged(browser_factory, tmp_path, caplog) -> None:
    browser = browser_factory()
    browser.session.screenshot = base64.b64encode(b"png-bytes").decode()
    target = tmp_path / "missing-dir" / "shot.png"

    with caplog.at_level(logging.ERROR, logger="driverwrap.core.browser"):
        assert asyncio.run(_perform(lambda: browser.save_screenshot(target))) is False

    assert "Failed to save screenshot" in caplog.text
    assert not target.exists()


def test_page_level_commands(browser_factory, fake_session_factory) -> None:
    browser = browser_factory(session=fake_session_factory(url="http://example.test/"))
    browser.session.script_result = "ok"

    async def _run():
        browser.resize(1024, 768)
        url = await browser.get_current_url()
        result = await browser.execute_script("return arguments[0];", 1)
        await browser.quit()
        return url, result

    assert asyncio.run(_run()) == ("http://example.test/", "ok")
    assert browser.session.window_size == (1024, 768)
    assert browser.session.closed
    assert browser.session.names() == ["set_window_size", "get_current_url", "execute_script", "quit"]


def test_from_config(fake_session_factory) -> None:
    browser = Browser.from_config(
        fake_session_factory(),
        DriverConfig(base_url="http://example.test"),
        SyncConfig(default_timeout=3, poll_interval_ms=20, ignore_synchronization=True),
    )

    assert browser.base_url == "http://example.test"
    assert browser.default_timeout == 3
    assert browser.poll_interval_ms == 20
    assert browser.ignore_synchronization is True


def test_action_after_failed_wait_does_not_run(browser_factory) -> None:
    browser = browser_factory("<button id='go' hidden>Go</button>", ignore_synchronization=False)

    async def _run():
        with pytest.raises(WaitTimeoutError, match="timed out waiting for element to display"):
            await browser.css("#go", timeout=0.05).click()
        await browser.queue.drain()

    asyncio.run(_run())

    assert browser.session.clicked == []
    assert "click" not in browser.session.names()
