"""Browser launch with channel fallback, identity profile and session restore."""

from dataclasses import dataclass

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Playwright,
    Error as PlaywrightError,
)

from instaleads.config import ScraperConfig
from instaleads.core.instagram import mask_sessionid, resolve_sessionid
from instaleads.core.page import PlaywrightPage
from instaleads.core.stealth import IdentityProfile, apply_identity, pick_identity
from instaleads.exceptions import BrowserLaunchError
from instaleads.logging import get_logger
from instaleads.proxy.rotating import resolve_geo_constraints

BROWSER_ARGS = [
    "--start-maximized",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
    "--disable-extensions",
    "--disable-plugins",
    "--disable-sync",
    "--no-first-run",
    "--no-default-browser-check",
    "--disable-features=TrackingProtection3pcd,ImprovedCookieControls",
    "--disable-background-networking",
    "--disable-default-apps",
    "--disable-translate",
    "--disable-notifications",
    "--disable-popup-blocking",
    "--disable-save-password-bubble",
    "--disable-infobars",
    "--disable-breakpad",
    "--disable-component-update",
    "--disable-domain-reliability",
    "--disable-client-side-phishing-detection",
    "--disable-hang-monitor",
    "--metrics-recording-only",
    "--no-pings",
]

IGNORE_DEFAULT_ARGS = ["--enable-automation"]

_log = get_logger("browser")


@dataclass
class BrowserSession:
    """One launched browser with its single context and primary page."""

    playwright: Playwright
    browser: Browser
    context: BrowserContext
    page: PlaywrightPage
    identity: IdentityProfile
    channel: str

    async def storage_state(self) -> dict:
        return await self.context.storage_state()

    async def close(self) -> None:
        try:
            await self.browser.close()
        except PlaywrightError as e:
            # already gone if the user closed the window
            _log.debug("browser_close_failed", error=str(e))
        finally:
            await self.playwright.stop()


def _sessionid_cookie(sessionid: str) -> dict:
    return {
        "name": "sessionid",
        "value": sessionid,
        "domain": ".instagram.com",
        "path": "/",
        "httpOnly": True,
        "secure": True,
        "sameSite": "None",
    }


async def launch_browser(
    config: ScraperConfig,
    storage_state: dict | None = None,
    proxy: dict | None = None,
) -> BrowserSession:
    """
    Launch the first available browser channel and open the primary page.

    Args:
        config: Scraper configuration
        storage_state: Previously saved Playwright storage state to restore
        proxy: Playwright proxy dict ({"server", "username", "password"})

    Returns:
        BrowserSession ready for navigation

    Raises:
        BrowserLaunchError: If none of the configured channels could start
    """
    identity = pick_identity()
    geo = resolve_geo_constraints(config.proxy_geo, identity.locale, identity.timezone_id)
    playwright = await async_playwright().start()
    last_error: Exception | None = None

    for channel in config.browser_channels:
        try:
            browser = await playwright.chromium.launch(
                channel=channel,
                headless=config.headless,
                args=BROWSER_ARGS,
                ignore_default_args=IGNORE_DEFAULT_ARGS,
                timeout=config.browser_timeout_ms,
                proxy=proxy,
            )
        except PlaywrightError as e:
            _log.warning("browser_channel_unavailable", channel=channel, error=str(e))
            last_error = e
            continue

        try:
            context = await browser.new_context(
                no_viewport=True,
                locale=geo["locale"],
                timezone_id=geo["timezone"],
                user_agent=identity.user_agent,
                ignore_https_errors=True,
                storage_state=storage_state,
            )
            await apply_identity(context, identity)

            sessionid = resolve_sessionid(config.instagram_sessionid)
            if sessionid:
                await context.add_cookies([_sessionid_cookie(sessionid)])
                _log.info("instagram_session_injected", sessionid=mask_sessionid(sessionid))

            page = PlaywrightPage(await context.new_page(), config.browser_timeout_ms)
        except PlaywrightError as e:
            await browser.close()
            _log.warning("browser_context_failed", channel=channel, error=str(e))
            last_error = e
            continue

        _log.info("browser_launched", channel=channel, headless=config.headless, proxied=proxy is not None)
        return BrowserSession(
            playwright=playwright,
            browser=browser,
            context=context,
            page=page,
            identity=identity,
            channel=channel,
        )

    await playwright.stop()
    raise BrowserLaunchError(
        f"No browser channel could be launched (tried {', '.join(config.browser_channels)}): {last_error}"
    )
