"""Tests for the named browser session manager (patchright replaced by mocks)."""

import re
from unittest.mock import AsyncMock, MagicMock

import pytest

from jobagent.browser.session import BrowserSessionManager, new_session_name
from jobagent.core.config import BrowserConfig
from jobagent.core.errors import SessionNotFoundError


def _make_page(snapshot: str = "- heading \"Jobs\"") -> MagicMock:
    page = MagicMock()
    page.url = "https://www.linkedin.com/feed/"
    page.goto = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.title = AsyncMock(return_value="LinkedIn")
    page.fill = AsyncMock()
    page.click = AsyncMock()
    page.evaluate = AsyncMock()
    page.content = AsyncMock(return_value="<html><body><p>Offer text</p></body></html>")

    locator = MagicMock()
    locator.first.is_visible = AsyncMock(return_value=False)
    locator.aria_snapshot = AsyncMock(return_value=snapshot)
    page.locator = MagicMock(return_value=locator)
    return page


def _make_factory(page: MagicMock) -> tuple[MagicMock, MagicMock, MagicMock]:
    """Return (factory, playwright, browser) wired to yield ``page``."""
    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()
    pw = MagicMock()
    pw.chromium.launch = AsyncMock(return_value=browser)
    pw.stop = AsyncMock()
    starter = MagicMock()
    starter.start = AsyncMock(return_value=pw)
    factory = MagicMock(return_value=starter)
    return factory, pw, browser


def _manager(page: MagicMock, **config: object) -> tuple[BrowserSessionManager, MagicMock, MagicMock]:
    factory, pw, browser = _make_factory(page)
    manager = BrowserSessionManager(BrowserConfig(**config), playwright_factory=factory)  # type: ignore[arg-type]
    return manager, pw, browser


# ---------------------------------------------------------------------------
# TestSessionName
# ---------------------------------------------------------------------------


class TestSessionName:
    """new_session_name: format and uniqueness."""

    def test_format(self) -> None:
        name = new_session_name("user-1", "linkedin")
        assert re.fullmatch(r"search-user-1-linkedin-\d{13}-[0-9a-f]{8}", name)

    def test_unique(self) -> None:
        assert new_session_name("u", "linkedin") != new_session_name("u", "linkedin")


# ---------------------------------------------------------------------------
# TestLifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    """launch / close: registration, release, idempotence."""

    async def test_launch_registers_session(self) -> None:
        manager, pw, browser = _manager(_make_page())
        await manager.launch("s1")
        assert manager.active_sessions == ["s1"]
        pw.chromium.launch.assert_awaited_once()
        assert pw.chromium.launch.call_args.kwargs["headless"] is True
        ctx_kwargs = browser.new_context.call_args.kwargs
        assert ctx_kwargs["viewport"] == {"width": 1920, "height": 1080}
        assert ctx_kwargs["locale"] == "fr-FR"

    async def test_close_releases_everything(self) -> None:
        manager, pw, browser = _manager(_make_page())
        await manager.launch("s1")
        await manager.close("s1")
        assert manager.active_sessions == []
        browser.close.assert_awaited_once()
        pw.stop.assert_awaited_once()

    async def test_close_is_idempotent(self) -> None:
        manager, pw, browser = _manager(_make_page())
        await manager.launch("s1")
        await manager.close("s1")
        await manager.close("s1")
        await manager.close("never-launched")
        browser.close.assert_awaited_once()

    async def test_close_never_raises(self) -> None:
        manager, pw, browser = _manager(_make_page())
        browser.close = AsyncMock(side_effect=RuntimeError("already gone"))
        await manager.launch("s1")
        await manager.close("s1")
        pw.stop.assert_awaited_once()
        assert manager.active_sessions == []

    async def test_relaunch_replaces_session(self) -> None:
        manager, pw, browser = _manager(_make_page())
        await manager.launch("s1")
        await manager.launch("s1")
        assert manager.active_sessions == ["s1"]
        browser.close.assert_awaited_once()

    async def test_failed_launch_stops_driver(self) -> None:
        manager, pw, browser = _manager(_make_page())
        pw.chromium.launch = AsyncMock(side_effect=RuntimeError("no chromium"))
        with pytest.raises(RuntimeError, match="no chromium"):
            await manager.launch("s1")
        pw.stop.assert_awaited_once()
        assert manager.active_sessions == []

    async def test_close_all(self) -> None:
        manager, _, _ = _manager(_make_page())
        await manager.launch("a")
        await manager.launch("b")
        await manager.close_all()
        assert manager.active_sessions == []


# ---------------------------------------------------------------------------
# TestPrimitives
# ---------------------------------------------------------------------------


class TestPrimitives:
    """Page primitives: unknown session, navigate, click, wait, snapshot, links."""

    async def test_unknown_session_raises(self) -> None:
        manager, _, _ = _manager(_make_page())
        with pytest.raises(SessionNotFoundError, match="Session 'nope' not found"):
            await manager.get_url("nope")

    async def test_navigate(self) -> None:
        page = _make_page()
        manager, _, _ = _manager(page)
        await manager.launch("s1")
        title = await manager.navigate("s1", "https://www.linkedin.com/login")
        assert title == "LinkedIn"
        page.goto.assert_awaited_once_with(
            "https://www.linkedin.com/login", wait_until="domcontentloaded", timeout=45000,
        )
        page.wait_for_timeout.assert_any_await(3000)

    async def test_click_uses_timeout_then_settles(self) -> None:
        page = _make_page()
        manager, _, _ = _manager(page)
        await manager.launch("s1")
        await manager.click("s1", "button[type=\"submit\"]")
        page.click.assert_awaited_once_with("button[type=\"submit\"]", timeout=10000)
        page.wait_for_timeout.assert_awaited_with(2000)

    async def test_wait_is_capped(self) -> None:
        page = _make_page()
        manager, _, _ = _manager(page)
        await manager.launch("s1")
        assert await manager.wait("s1", 60000) == 10000
        assert await manager.wait("s1", 1500) == 1500
        assert await manager.wait("s1", -5) == 0

    async def test_snapshot_truncated(self) -> None:
        page = _make_page(snapshot="x" * 20000)
        manager, _, _ = _manager(page, snapshot_max_chars=15000)
        await manager.launch("s1")
        snapshot = await manager.snapshot("s1")
        assert snapshot == "x" * 15000 + "\n... (truncated)"

    async def test_snapshot_short_unchanged(self) -> None:
        page = _make_page(snapshot="- link \"Python developer\"")
        manager, _, _ = _manager(page)
        await manager.launch("s1")
        assert await manager.snapshot("s1") == "- link \"Python developer\""

    async def test_extract_links(self) -> None:
        page = _make_page()
        el1 = MagicMock()
        el1.inner_text = AsyncMock(return_value="  Python Developer \n")
        el1.get_attribute = AsyncMock(return_value="/jobs/view/1/")
        el2 = MagicMock()
        el2.inner_text = AsyncMock(side_effect=RuntimeError("detached"))
        el2.get_attribute = AsyncMock(return_value=None)
        page.query_selector_all = AsyncMock(return_value=[el1, el2])
        manager, _, _ = _manager(page)
        await manager.launch("s1")

        links = await manager.extract_links("s1", "a.job-card-container__link")

        assert [(link.text, link.href) for link in links] == [
            ("Python Developer", "/jobs/view/1/"),
            ("", ""),
        ]

    async def test_get_url(self) -> None:
        manager, _, _ = _manager(_make_page())
        await manager.launch("s1")
        assert await manager.get_url("s1") == "https://www.linkedin.com/feed/"

    async def test_get_job_description(self) -> None:
        manager, _, _ = _manager(_make_page())
        await manager.launch("s1")
        assert await manager.get_job_description("s1") == "Offer text"
