"""Paginated search scraping and bounded profile enrichment.

Pagination failures truncate the run; enrichment failures become per-row
status tags. Only browser infrastructure errors escape.
"""

import asyncio
import random
from dataclasses import dataclass, field

from rich.console import Console

from instaleads.config import ScraperConfig
from instaleads.core.captcha import CaptchaGuard
from instaleads.core.instagram import ProfileFetcher, parse_instagram_url
from instaleads.core.navigation import retry_transient
from instaleads.core.page import NavigablePage
from instaleads.core.parser import parse_search_results
from instaleads.core.phones import extract_brazil_phones
from instaleads.core.transformer import transform_search_rows, utcnow
from instaleads.exceptions import (
    LoginWallError,
    NavigationError,
    NavigationTimeoutError,
    ParseError,
    ProfileFetchError,
)
from instaleads.logging import get_logger
from instaleads.models.profile import InstagramProfile
from instaleads.models.search import ResultStatus, SearchOutput, SearchResult

RESULTS_READY_SELECTOR = "#search h3, #rso h3, h3"
NEXT_PAGE_ROLE = "link"
NEXT_PAGE_NAME = "Mais"
NEXT_PAGE_SELECTOR = "#pnnext"
PAGE_LOAD_TIMEOUT_MS = 10000


@dataclass
class EnrichmentStats:
    """Counters from one enrichment pass."""

    discovered: int = 0
    enriched: int = 0
    failed: int = 0
    duplicates: int = 0
    skipped: int = 0
    fetched_urls: list[str] = field(default_factory=list)


class ResultAggregator:
    """
    Turns search pages into a deduplicated, status-tagged result list.

    Example:
        aggregator = ResultAggregator(page, fetcher, CaptchaGuard(page, config), config)
        results = await aggregator.scrape_pages("site:instagram.com loja", 3)
        await aggregator.enrich_profiles(results)
        output = aggregator.build_output("site:instagram.com loja", 3, results)
    """

    def __init__(
        self,
        page: NavigablePage,
        profile_fetcher: ProfileFetcher,
        captcha_guard: CaptchaGuard,
        config: ScraperConfig | None = None,
        console: Console | None = None,
        rng: random.Random | None = None,
    ):
        self.page = page
        self.profile_fetcher = profile_fetcher
        self.captcha_guard = captcha_guard
        self.config = config or ScraperConfig()
        self._console = console or Console(stderr=True)
        self._rng = rng or random.Random()
        self._log = get_logger("aggregator")

    async def scrape_pages(self, query: str, max_pages: int) -> list[SearchResult]:
        """
        Scrape up to `max_pages` result pages, following the next-page control.

        Stops early, without raising, when results never appear, the next
        control is missing, or navigation fails mid-way.

        Args:
            query: Query that produced the current page
            max_pages: Upper bound on pages to scrape

        Returns:
            Result rows in page order, all with status pending
        """
        results: list[SearchResult] = []

        for page_number in range(1, max_pages + 1):
            try:
                await self.captcha_guard.wait_for_resolution()
                if not await self._wait_for_results():
                    self._log.info("results_not_found", page=page_number)
                    break
                html = await self.page.content()
            except NavigationError as e:
                self._log.warning("page_scrape_failed", page=page_number, error=str(e))
                break

            parse_result = parse_search_results(html)
            for error in parse_result.parse_errors:
                self._log.debug("parse_error", page=page_number, error=error)

            rows = transform_search_rows(parse_result, query, page_number)
            results.extend(rows)
            self._log.info("page_scraped", page=page_number, results=len(rows))

            if page_number < max_pages and not await self._go_to_next_page():
                break

        return results

    async def _wait_for_results(self) -> bool:
        try:
            await retry_transient(
                self.page,
                lambda: self.page.wait_for_selector(
                    RESULTS_READY_SELECTOR, timeout=self.config.results_timeout_ms
                ),
                deadline_ms=self.config.results_deadline_ms,
                label="results_wait",
            )
        except NavigationTimeoutError:
            return False
        return True

    async def _go_to_next_page(self) -> bool:
        timeout = self.config.next_page_timeout_ms
        try:
            await self.page.click_role(NEXT_PAGE_ROLE, NEXT_PAGE_NAME, timeout=timeout)
        except NavigationError:
            try:
                await self.page.click(NEXT_PAGE_SELECTOR, timeout=timeout)
            except NavigationError as e:
                self._log.info("next_page_unavailable", error=str(e))
                return False

        try:
            await self.page.wait_for_load_state("domcontentloaded", timeout=PAGE_LOAD_TIMEOUT_MS)
        except NavigationError as e:
            # the next results wait decides whether the page is usable
            self._log.debug("next_page_load_wait_failed", error=str(e))
        return True

    async def enrich_profiles(self, results: list[SearchResult]) -> EnrichmentStats:
        """
        Fetch each distinct profile once and tag every row with its outcome.

        Usernames are processed in first-seen order up to `max_profiles`.
        The first row of a processed username carries the profile data (or
        the failure); later rows of it become duplicates. Every row of a
        username beyond the cap is marked skipped.

        Args:
            results: Rows from scrape_pages, mutated in place

        Returns:
            EnrichmentStats for reporting
        """
        groups: dict[str, list[SearchResult]] = {}
        profile_urls: dict[str, str] = {}

        for result in results:
            info = parse_instagram_url(result.url)
            if not info.is_profile:
                result.status = ResultStatus.NOT_INSTAGRAM
                continue
            groups.setdefault(info.username, []).append(result)
            profile_urls.setdefault(info.username, info.normalized_url)

        stats = EnrichmentStats(discovered=len(groups))
        if not groups:
            self._log.info("no_profiles_found", results=len(results))
            return stats

        usernames = list(groups)
        cap = self.config.max_profiles
        to_process, beyond_cap = usernames[:cap], usernames[cap:]

        for username in beyond_cap:
            for row in groups[username]:
                row.status = ResultStatus.INSTAGRAM_SKIPPED_LIMIT
        stats.skipped = len(beyond_cap)
        if beyond_cap:
            self._log.info("profiles_skipped_limit", skipped=len(beyond_cap), cap=cap)

        self._log.info("enrichment_start", profiles=len(to_process))

        for index, username in enumerate(to_process):
            first, *later = groups[username]
            for row in later:
                row.status = ResultStatus.DUPLICATE_INSTAGRAM
            stats.duplicates += len(later)

            if index > 0:
                await self._pace()

            url = profile_urls[username]
            stats.fetched_urls.append(url)
            profile = await self._fetch(username, url)

            if profile is None:
                first.status = ResultStatus.INSTAGRAM_FAILED
                stats.failed += 1
                continue

            first.apply_profile(profile, self._extract_phones(profile))
            stats.enriched += 1
            self._log.info(
                "profile_enriched",
                username=username,
                phones=len(first.instagram_phones_e164 or []),
            )

        self._log.info(
            "enrichment_complete",
            enriched=stats.enriched,
            failed=stats.failed,
            duplicates=stats.duplicates,
            skipped=stats.skipped,
        )
        return stats

    @staticmethod
    def _extract_phones(profile: InstagramProfile):
        return extract_brazil_phones(
            profile.bio, profile.link, [link.url for link in profile.bio_links]
        )

    async def _pace(self) -> None:
        delay_ms = self.config.profile_delay_ms + self._rng.uniform(0, self.config.profile_jitter_ms)
        self._log.debug("profile_delay", delay_ms=round(delay_ms))
        await asyncio.sleep(delay_ms / 1000)

    async def _fetch(self, username: str, url: str) -> InstagramProfile | None:
        try:
            profile = await self.profile_fetcher.fetch_profile(url)
        except LoginWallError as e:
            self._log.warning("login_wall", username=username, error=str(e))
            self._console.print(
                f"[yellow]Instagram login wall on @{username}; "
                "set INSTAGRAM_SESSIONID to fetch profiles while logged in.[/yellow]"
            )
            return None
        except (ProfileFetchError, ParseError, NavigationError) as e:
            self._log.warning("profile_failed", username=username, error=str(e))
            return None

        if profile is None:
            self._log.warning("profile_failed", username=username, error="no profile data")
        return profile

    def build_output(self, query: str, max_pages: int, results: list[SearchResult]) -> SearchOutput:
        """Freeze the run into its report; totalResults counts every scraped row."""
        return SearchOutput(
            query=query,
            total_pages=max_pages,
            total_results=len(results),
            extracted_at=utcnow(),
            results=results,
        )
