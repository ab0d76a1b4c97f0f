"""Instagram profile URL handling and the profile-fetch collaborator."""

import os
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlsplit

from playwright.async_api import BrowserContext

from instaleads.core.page import PlaywrightPage
from instaleads.core.parser import parse_instagram_profile
from instaleads.core.transformer import transform_profile
from instaleads.exceptions import (
    LoginWallError,
    NavigationError,
    NavigationTimeoutError,
    ParseError,
    ProfileNotFoundError,
)
from instaleads.logging import get_logger
from instaleads.models.profile import InstagramProfile


INSTAGRAM_DOMAINS = (
    "instagram.com",
    "www.instagram.com",
    "m.instagram.com",
    "instagr.am",
    "www.instagr.am",
)

NON_PROFILE_PATHS = (
    "/p/",
    "/reel/",
    "/reels/",
    "/stories/",
    "/explore/",
    "/accounts/",
    "/direct/",
    "/tv/",
    "/channel/",
    "/saved/",
    "/tagged/",
    "/guide/",
)

PROFILE_URL_TEMPLATE = "https://www.instagram.com/{username}/?hl=pt"

HEADER_SELECTOR = "header section"
CLOSE_DIALOG_SELECTOR = 'button[aria-label="Fechar"], button[aria-label="Close"]'


@dataclass(frozen=True)
class InstagramUrlInfo:
    """Result of classifying a URL as an Instagram profile link."""

    is_profile: bool
    username: str | None = None
    normalized_url: str | None = None


NOT_A_PROFILE = InstagramUrlInfo(is_profile=False)


def parse_instagram_url(url: str) -> InstagramUrlInfo:
    """
    Classify a URL and extract the canonical (lowercase) profile username.

    Examples:
        "https://www.instagram.com/Some.Shop/" -> username "some.shop"
        "https://www.instagram.com/p/Cx1/" -> not a profile
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return NOT_A_PROFILE

    host = (parts.hostname or "").lower()
    if not any(host == domain or host.endswith("." + domain) for domain in INSTAGRAM_DOMAINS):
        return NOT_A_PROFILE

    path = parts.path or "/"
    if any(path.startswith(prefix) for prefix in NON_PROFILE_PATHS):
        return NOT_A_PROFILE

    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return NOT_A_PROFILE

    username = segments[0].lstrip("@").lower()
    if not username or username.startswith("."):
        return NOT_A_PROFILE

    return InstagramUrlInfo(
        is_profile=True,
        username=username,
        normalized_url=PROFILE_URL_TEMPLATE.format(username=username),
    )


def resolve_sessionid(value: str | None = None) -> str | None:
    """Session id from the argument or INSTAGRAM_SESSIONID, minus any `sessionid=` prefix."""
    raw = value if value is not None else os.environ.get("INSTAGRAM_SESSIONID")
    if not raw or not raw.strip():
        return None
    trimmed = raw.strip()
    if trimmed.startswith("sessionid="):
        trimmed = trimmed[len("sessionid="):]
    return trimmed or None


def mask_sessionid(sessionid: str) -> str:
    if len(sessionid) <= 10:
        return "***"
    return f"{sessionid[:4]}...{sessionid[-4:]}"


class ProfileFetcher(Protocol):
    """Fetches one profile; returns None when nothing identifiable was found."""

    async def fetch_profile(self, normalized_url: str) -> InstagramProfile | None: ...


class InstagramProfileFetcher:
    """
    Opens each profile in its own tab of a shared browser context.

    Tabs are strictly one at a time and always closed, whatever happens
    during extraction.
    """

    def __init__(
        self,
        context: BrowserContext,
        timeout_ms: int = 15000,
        navigation_timeout_ms: int = 60000,
    ):
        self._context = context
        self.timeout_ms = timeout_ms
        self.navigation_timeout_ms = navigation_timeout_ms
        self._log = get_logger("instagram")

    async def fetch_profile(self, normalized_url: str) -> InstagramProfile | None:
        """
        Fetch and parse a single profile page.

        Raises:
            ProfileNotFoundError: Page has no identifiable username
            LoginWallError: A login form hides the profile
            ParseError: Profile HTML could not be turned into a profile
            NavigationError: Navigation or header wait failed
        """
        page = PlaywrightPage(await self._context.new_page(), self.timeout_ms)
        try:
            return await self._scrape(page, normalized_url)
        finally:
            await page.close()

    async def _scrape(self, page: PlaywrightPage, url: str) -> InstagramProfile | None:
        await page.goto(url, timeout=self.navigation_timeout_ms)

        try:
            await page.wait_for_selector(HEADER_SELECTOR, timeout=self.timeout_ms)
        except NavigationTimeoutError:
            # may still be a login wall or a meta-only page; parsing decides
            self._log.debug("profile_header_missing", url=url)

        await self._close_login_dialog(page)

        html = await page.content()
        try:
            parse_result = parse_instagram_profile(html)
            if not parse_result.rows:
                if parse_result.login_wall:
                    raise LoginWallError(f"Login wall on {url}")
                raise ProfileNotFoundError(
                    f"No profile data at {url}: {'; '.join(parse_result.parse_errors)}"
                )
            return transform_profile(parse_result.rows[0], url)
        except (KeyError, ValueError) as e:
            raise ParseError(f"Unreadable profile at {url}: {e}") from e

    async def _close_login_dialog(self, page: PlaywrightPage) -> None:
        if not await page.is_visible(CLOSE_DIALOG_SELECTOR, timeout=2000):
            return
        try:
            await page.click(CLOSE_DIALOG_SELECTOR, timeout=2000)
        except NavigationError as exc:
            self._log.debug("login_dialog_close_failed", error=str(exc))
