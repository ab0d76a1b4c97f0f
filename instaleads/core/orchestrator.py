"""Pipeline orchestrator - browser lifecycle, query submission, aggregation."""

from rich.console import Console

from instaleads.config import ScraperConfig, SessionBackend
from instaleads.core import browser
from instaleads.core.aggregator import ResultAggregator
from instaleads.core.captcha import CaptchaGuard
from instaleads.core.instagram import InstagramProfileFetcher, ProfileFetcher
from instaleads.core.page import NavigablePage
from instaleads.exceptions import NavigationError, QueryValidationError, SearchTimeoutError
from instaleads.logging import get_logger, configure_logging
from instaleads.models.search import SearchOutput
from instaleads.proxy.rotating import ProxyProvider
from instaleads.session.base import Platform, SessionStore
from instaleads.session.sqlite_store import SQLiteSessionStore

SEARCH_URL = "https://www.google.com"
COOKIE_CONSENT_SELECTOR = '#L2AGLb, button:has-text("Aceitar"), button:has-text("Accept")'
SEARCH_INPUT_SELECTOR = 'textarea[name="q"], input[name="q"]'
SUBMIT_RESULTS_SELECTOR = "#search h3, #rso h3, h3"
COOKIE_CONSENT_TIMEOUT_MS = 2000


def validate_query(query: str | None) -> str:
    """
    Reject empty queries before any browser work.

    Returns:
        The query stripped of surrounding whitespace

    Raises:
        QueryValidationError: If the query is empty or blank
    """
    if query is None or not query.strip():
        raise QueryValidationError("Search query is empty")
    return query.strip()


class LeadScraper:
    """
    High-level search-and-enrich interface with session and proxy support.

    Example:
        async with LeadScraper() as scraper:
            output = await scraper.search('site:instagram.com "loja" "sp"', max_pages=2)
            print(output.total_results)
    """

    def __init__(self, config: ScraperConfig | None = None, console: Console | None = None):
        """
        Initialize scraper with optional configuration.

        Args:
            config: ScraperConfig instance, uses defaults if None
            console: rich Console for interactive notices (stderr by default)
        """
        self.config = config or ScraperConfig()
        self.console = console or Console(stderr=True)
        self._sessions: SessionStore | None = None
        self._proxy: ProxyProvider | None = None
        self._log = get_logger("scraper")

    async def __aenter__(self) -> "LeadScraper":
        """Async context manager entry - initialize resources."""
        configure_logging(self.config)

        if self.config.session_backend == SessionBackend.SQLITE:
            self._sessions = SQLiteSessionStore(
                self.config.sqlite_path,
                self.config.session_ttl_seconds,
            )

        if self.config.proxy_urls:
            self._proxy = ProxyProvider(
                self.config.proxy_urls,
                self.config.proxy_mode,
            )

        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - cleanup resources."""
        if self._sessions:
            await self._sessions.close()

    @property
    def sessions(self) -> SessionStore | None:
        return self._sessions

    async def search(self, query: str, max_pages: int | None = None) -> SearchOutput:
        """
        Run one full search: launch, submit, paginate, enrich, report.

        Args:
            query: Search query (dork)
            max_pages: Pages to scrape, config default if None

        Returns:
            SearchOutput with every scraped row

        Raises:
            QueryValidationError: Empty query, raised before any browser work
            BrowserLaunchError: No browser channel available
            SearchTimeoutError: Query submission never produced results
        """
        query = validate_query(query)
        pages = max_pages if max_pages is not None else self.config.max_pages

        storage_state = await self._sessions.get(Platform.GOOGLE) if self._sessions else None
        proxy = await self._proxy.get_next() if self._proxy else None

        self._log.info("search_start", query=query, max_pages=pages, restored_session=storage_state is not None)
        session = await browser.launch_browser(self.config, storage_state=storage_state, proxy=proxy)

        try:
            fetcher = InstagramProfileFetcher(
                session.context,
                timeout_ms=self.config.profile_timeout_ms,
                navigation_timeout_ms=self.config.navigation_timeout_ms,
            )
            output = await self.run(session.page, fetcher, query, pages)
            await self._save_session(await session.storage_state())
            return output
        finally:
            await session.close()

    async def run(
        self,
        page: NavigablePage,
        profile_fetcher: ProfileFetcher,
        query: str,
        max_pages: int,
    ) -> SearchOutput:
        """
        Browser-independent core: submit, paginate, enrich, build output.

        Args:
            page: Primary search page
            profile_fetcher: Collaborator used for each profile
            query: Search query
            max_pages: Pages to scrape

        Returns:
            SearchOutput (possibly partial)
        """
        query = validate_query(query)
        guard = CaptchaGuard(page, self.config, console=self.console)
        aggregator = ResultAggregator(page, profile_fetcher, guard, self.config, console=self.console)

        await self._submit_query(page, guard, query)

        results = await aggregator.scrape_pages(query, max_pages)
        stats = await aggregator.enrich_profiles(results)
        output = aggregator.build_output(query, max_pages, results)

        self._log.info(
            "search_complete",
            query=query,
            total_results=output.total_results,
            profiles_enriched=stats.enriched,
            profiles_skipped=stats.skipped,
        )
        return output

    async def _submit_query(self, page: NavigablePage, guard: CaptchaGuard, query: str) -> None:
        """Navigate, dismiss consent, type the query and wait for results; failures are fatal."""
        try:
            await page.goto(SEARCH_URL, timeout=self.config.navigation_timeout_ms)
            await self._accept_cookies(page)
            await page.type_text(SEARCH_INPUT_SELECTOR, query)
            await page.press("Enter")
            await page.wait_for_load_state("domcontentloaded")
            await guard.wait_for_resolution()
            await page.wait_for_selector(SUBMIT_RESULTS_SELECTOR, timeout=self.config.results_timeout_ms)
        except NavigationError as e:
            self._log.error("search_submit_failed", query=query, error=str(e))
            raise SearchTimeoutError(f"Search did not load results: {e}") from e

    async def _accept_cookies(self, page: NavigablePage) -> None:
        if not await page.is_visible(COOKIE_CONSENT_SELECTOR, timeout=COOKIE_CONSENT_TIMEOUT_MS):
            return
        try:
            await page.click(COOKIE_CONSENT_SELECTOR, timeout=COOKIE_CONSENT_TIMEOUT_MS)
            self._log.debug("cookie_consent_accepted")
        except NavigationError as e:
            self._log.debug("cookie_consent_failed", error=str(e))

    async def _save_session(self, state: dict) -> None:
        if self._sessions is None:
            return
        await self._sessions.set(Platform.GOOGLE, state)
        self._log.debug("session_saved", cookies=len(state.get("cookies", [])))

    async def clear_sessions(self) -> None:
        """Remove every stored browser session."""
        if self._sessions:
            await self._sessions.clear()
