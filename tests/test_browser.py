"""Unit tests for browser launch, identity and input helpers - mocked Playwright."""

import random
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError

from instaleads.config import ScraperConfig
from instaleads.core.browser import IGNORE_DEFAULT_ARGS, launch_browser
from instaleads.core.humanize import bezier_point, ease_in_out_sine, human_type, typo_variant
from instaleads.core.navigation import retry_transient
from instaleads.core.stealth import IDENTITY_PROFILES, navigator_init_script, pick_identity
from instaleads.exceptions import BrowserLaunchError, NavigationTimeoutError, TransientNavigationError


def make_playwright(launch_side_effect):
    """async_playwright() double; returns (factory, playwright, context)."""
    context = MagicMock()
    context.set_extra_http_headers = AsyncMock()
    context.add_init_script = AsyncMock()
    context.add_cookies = AsyncMock()
    context.new_page = AsyncMock(return_value=MagicMock())

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.stop = AsyncMock()
    playwright.chromium.launch = AsyncMock(side_effect=[
        browser if effect is None else effect for effect in launch_side_effect
    ])

    factory = MagicMock()
    factory.return_value.start = AsyncMock(return_value=playwright)
    return factory, playwright, context


@pytest.fixture
def config(monkeypatch):
    monkeypatch.delenv("INSTAGRAM_SESSIONID", raising=False)
    return ScraperConfig(headless=True)


class TestLaunchBrowser:
    """Test channel fallback and context setup."""

    @pytest.mark.asyncio
    async def test_first_channel(self, config):
        factory, playwright, context = make_playwright([None])

        with patch("instaleads.core.browser.async_playwright", factory):
            session = await launch_browser(config)

        assert session.channel == "chrome"
        kwargs = playwright.chromium.launch.await_args.kwargs
        assert kwargs["headless"] is True
        assert kwargs["ignore_default_args"] == IGNORE_DEFAULT_ARGS
        context.set_extra_http_headers.assert_awaited_once()
        context.add_init_script.assert_awaited_once()
        context.add_cookies.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_falls_back_to_next_channel(self, config):
        factory, playwright, _ = make_playwright([PlaywrightError("Chromium distribution 'chrome' is not found"), None])

        with patch("instaleads.core.browser.async_playwright", factory):
            session = await launch_browser(config)

        assert session.channel == "msedge"
        assert playwright.chromium.launch.await_count == 2

    @pytest.mark.asyncio
    async def test_all_channels_fail(self, config):
        factory, playwright, _ = make_playwright([
            PlaywrightError("chrome not found"),
            PlaywrightError("msedge not found"),
        ])

        with patch("instaleads.core.browser.async_playwright", factory):
            with pytest.raises(BrowserLaunchError) as exc_info:
                await launch_browser(config)

        assert exc_info.value.code == "ERR_BROWSER_001"
        playwright.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_storage_state_and_geo(self, config):
        config.proxy_geo = "US"
        state = {"cookies": [], "origins": []}
        factory, playwright, _ = make_playwright([None])

        with patch("instaleads.core.browser.async_playwright", factory):
            session = await launch_browser(config, storage_state=state, proxy={"server": "http://p:8080"})

        context_kwargs = session.browser.new_context.await_args.kwargs
        assert context_kwargs["storage_state"] == state
        assert context_kwargs["locale"] == "en-US"
        assert context_kwargs["timezone_id"] == "America/New_York"
        assert playwright.chromium.launch.await_args.kwargs["proxy"] == {"server": "http://p:8080"}

    @pytest.mark.asyncio
    async def test_sessionid_cookie_injected(self, config):
        config.instagram_sessionid = "sessionid=abcdef1234567890"
        factory, _, context = make_playwright([None])

        with patch("instaleads.core.browser.async_playwright", factory):
            await launch_browser(config)

        cookie = context.add_cookies.await_args.args[0][0]
        assert cookie["name"] == "sessionid"
        assert cookie["value"] == "abcdef1234567890"
        assert cookie["domain"] == ".instagram.com"

    @pytest.mark.asyncio
    async def test_close_stops_playwright(self, config):
        factory, playwright, _ = make_playwright([None])

        with patch("instaleads.core.browser.async_playwright", factory):
            session = await launch_browser(config)

        session.browser.close = AsyncMock(side_effect=PlaywrightError("Browser has been closed"))
        await session.close()
        playwright.stop.assert_awaited_once()


class TestIdentity:
    """Test identity profiles."""

    def test_client_hints_match_user_agent(self):
        for identity in IDENTITY_PROFILES:
            version = identity.user_agent.split("Chrome/")[1].split(".")[0]
            assert f'"Google Chrome";v="{version}"' in identity.sec_ch_ua
            assert identity.extra_headers()["sec-ch-ua-platform"] == '"Windows"'

    def test_pick_identity(self):
        assert pick_identity(random.Random(1)) in IDENTITY_PROFILES

    def test_init_script_values(self):
        script = navigator_init_script(IDENTITY_PROFILES[1])
        assert "platform: 'Win32'" in script
        assert "hardwareConcurrency: 12" in script


class TestHumanize:
    """Test input helpers."""

    def test_bezier_endpoints(self):
        points = ((0, 0), (10, 50), (90, 50), (100, 100))
        assert bezier_point(0, *points) == (0, 0)
        assert bezier_point(1, *points) == (100, 100)

    def test_easing_bounds(self):
        assert ease_in_out_sine(0) == pytest.approx(0)
        assert ease_in_out_sine(1) == pytest.approx(1)

    @pytest.mark.parametrize("char", ["1", " ", "ç"])
    def test_typo_variant_non_letters_unchanged(self, char):
        assert typo_variant(char, random.Random(0)) == char

    def test_typo_variant_neighbour(self):
        variant = typo_variant("m", random.Random(0))
        assert variant in ("l", "n")

    @pytest.mark.asyncio
    async def test_typos_are_corrected(self):
        """Whatever typos happen, the typed characters minus backspaces equal the text."""
        page = MagicMock()
        page.locator.return_value.first.click = AsyncMock()
        typed: list[str] = []
        page.keyboard.type = AsyncMock(side_effect=lambda char, delay: typed.append(char))
        page.keyboard.press = AsyncMock(side_effect=lambda key: typed.pop())

        with patch("instaleads.core.humanize.asyncio.sleep", new_callable=AsyncMock), \
             patch("instaleads.core.humanize.TYPO_PROBABILITY", 0.5):
            await human_type(page, "textarea", "site:instagram.com loja sp", rng=random.Random(3))

        assert "".join(typed) == "site:instagram.com loja sp"


class TestRetryTransient:
    """Test transient navigation retries."""

    @pytest.mark.asyncio
    async def test_retries_transient_then_succeeds(self):
        page = MagicMock()
        page.wait_for_load_state = AsyncMock()
        operation = AsyncMock(side_effect=[TransientNavigationError("Execution context was destroyed"), "ok"])

        assert await retry_transient(page, operation, deadline_ms=1000) == "ok"
        assert operation.await_count == 2
        page.wait_for_load_state.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_transient_propagates(self):
        page = MagicMock()
        page.wait_for_load_state = AsyncMock()
        operation = AsyncMock(side_effect=NavigationTimeoutError("Timeout"))

        with pytest.raises(NavigationTimeoutError):
            await retry_transient(page, operation, deadline_ms=1000)
        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_deadline_reraises(self):
        page = MagicMock()
        page.wait_for_load_state = AsyncMock()
        operation = AsyncMock(side_effect=TransientNavigationError("Frame was detached"))

        with pytest.raises(TransientNavigationError):
            await retry_transient(page, operation, deadline_ms=0)
