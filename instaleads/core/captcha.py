"""Captcha detection and the manual-resolution wait loop.

The guard decides whether the current page sits behind an anti-automation
challenge and, if so, blocks until a human clears it in the visible browser.
It never raises for "still blocked"; only infrastructure errors escape.

States:
    CLEAR -> SIGNAL_DETECTED -> (NO_WIDGET_RETRY) -> MANUAL_WAIT -> CLEAR
"""

import asyncio
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from rich.console import Console
from rich.panel import Panel

from instaleads.config import ScraperConfig
from instaleads.core.navigation import retry_transient
from instaleads.core.page import NavigablePage
from instaleads.exceptions import TransientNavigationError
from instaleads.logging import get_logger


CAPTCHA_SELECTORS = [
    "iframe[src*='recaptcha']",
    "iframe[title*='reCAPTCHA']",
    "#captcha-form",
    "div.g-recaptcha",
    "#recaptcha",
    "iframe[src*='hcaptcha']",
]

CAPTCHA_FRAME_PATTERNS = [
    "recaptcha/api2/anchor",
    "recaptcha/api2/bframe",
    "recaptcha/enterprise",
    "hcaptcha.com/captcha",
    "challenges.cloudflare.com",
]

CAPTCHA_PHRASES = [
    "recaptcha",
    "captcha",
    "unusual traffic",
    "our systems have detected",
    "nossos sistemas detectaram",
    "verifique que você é humano",
    "não sou um robô",
    "verificare che sei un essere umano",
    "i'm not a robot",
]

BODY_TEXT_LIMIT = 6000

_OBSERVE_SCRIPT = """
({ selectors, timeout }) => new Promise(resolve => {
  const findMatch = () => selectors.find(s => document.querySelector(s)) || null;
  const immediate = findMatch();
  if (immediate) { resolve(immediate); return; }
  let timer = 0;
  const observer = new MutationObserver(() => {
    const match = findMatch();
    if (match) { observer.disconnect(); clearTimeout(timer); resolve(match); }
  });
  observer.observe(document.documentElement, { childList: true, subtree: true, attributes: true });
  timer = setTimeout(() => { observer.disconnect(); resolve(null); }, timeout);
})
"""

_BODY_TEXT_SCRIPT = "(limit) => ((document.body && document.body.innerText) || '').slice(0, limit)"


class CaptchaState(str, Enum):
    CLEAR = "clear"
    SIGNAL_DETECTED = "signal_detected"
    NO_WIDGET_RETRY = "no_widget_retry"
    MANUAL_WAIT = "manual_wait"


class SignalSource(str, Enum):
    OBSERVER = "observer"
    SELECTOR = "selector"
    FRAME = "frame"
    TEXT = "text"


class CaptchaOutcome(str, Enum):
    """How a wait_for_resolution call ended."""
    NOT_DETECTED = "not_detected"
    FALSE_POSITIVE = "false_positive"
    RESOLVED = "resolved"
    ALREADY_WAITING = "already_waiting"


@dataclass(frozen=True)
class CaptchaSignal:
    """Result of a single detection pass; never persisted."""

    detected: bool
    target_selector: str | None = None
    source: SignalSource | None = None

    @property
    def has_widget(self) -> bool:
        return self.source in (SignalSource.OBSERVER, SignalSource.SELECTOR, SignalSource.FRAME)


NO_SIGNAL = CaptchaSignal(detected=False)


class CaptchaGuard:
    """Gates automated navigation on a single page behind challenge resolution."""

    def __init__(
        self,
        page: NavigablePage,
        config: ScraperConfig | None = None,
        console: Console | None = None,
    ):
        self.page = page
        self.config = config or ScraperConfig()
        self.state = CaptchaState.CLEAR
        self.transitions: list[CaptchaState] = []
        self._wait_active = False
        self._console = console or Console(stderr=True)
        self._log = get_logger("captcha")

    @property
    def waiting(self) -> bool:
        return self._wait_active

    async def detect(self, observe: bool = False) -> CaptchaSignal:
        """
        Check the page for a challenge, short-circuiting on the first hit.

        Order: mutation watch (only when `observe`), visible selectors,
        frame URLs, then a phrase scan of the visible body text.
        """
        if observe:
            observed = await self.page.evaluate(
                _OBSERVE_SCRIPT,
                {"selectors": CAPTCHA_SELECTORS, "timeout": self.config.captcha_observe_ms},
            )
            if isinstance(observed, str):
                return CaptchaSignal(True, observed, SignalSource.OBSERVER)

        for selector in CAPTCHA_SELECTORS:
            if await self.page.is_visible(selector, timeout=250):
                return CaptchaSignal(True, selector, SignalSource.SELECTOR)

        for frame_url in self.page.frame_urls():
            lowered = frame_url.lower()
            if any(pattern in lowered for pattern in CAPTCHA_FRAME_PATTERNS):
                return CaptchaSignal(True, CAPTCHA_SELECTORS[0], SignalSource.FRAME)

        body = await self.page.evaluate(_BODY_TEXT_SCRIPT, BODY_TEXT_LIMIT)
        body = (body or "")[:BODY_TEXT_LIMIT].lower()
        if any(phrase in body for phrase in CAPTCHA_PHRASES):
            return CaptchaSignal(True, CAPTCHA_SELECTORS[0], SignalSource.TEXT)

        return NO_SIGNAL

    async def wait_for_resolution(self) -> CaptchaOutcome:
        """
        Block until the page is free of challenges.

        A text-only signal triggers one reload; if no widget shows up after
        it, the page is treated as clear. A real widget starts the manual
        wait, which ends after `captcha_clear_checks` consecutive clear polls.
        Only one resolution runs at a time; overlapping calls return
        `ALREADY_WAITING` without touching the page.
        """
        if self._wait_active:
            self._log.debug("captcha_wait_already_active")
            return CaptchaOutcome.ALREADY_WAITING

        self._wait_active = True
        try:
            return await self._resolve()
        finally:
            self._wait_active = False

    async def _resolve(self) -> CaptchaOutcome:
        signal = await self._detect_settled()
        if not signal.detected:
            return CaptchaOutcome.NOT_DETECTED

        self._transition(CaptchaState.SIGNAL_DETECTED)
        self._log.warning(
            "captcha_signal",
            source=signal.source.value,
            selector=signal.target_selector,
            url=self.page.url,
        )

        if not signal.has_widget:
            self._transition(CaptchaState.NO_WIDGET_RETRY)
            await self.page.reload()
            signal = await self._detect_settled()
            if not signal.has_widget:
                self._log.info("captcha_false_positive", url=self.page.url)
                self._transition(CaptchaState.CLEAR)
                return CaptchaOutcome.FALSE_POSITIVE

        await self._manual_wait(signal)
        self._transition(CaptchaState.CLEAR)
        return CaptchaOutcome.RESOLVED

    async def _detect_settled(self) -> CaptchaSignal:
        return await retry_transient(
            self.page,
            lambda: self.detect(observe=True),
            deadline_ms=self.config.results_deadline_ms,
            label="captcha_detect",
        )

    def _transition(self, state: CaptchaState) -> None:
        self.state = state
        self.transitions.append(state)

    @contextmanager
    def _blocking_wait(self):
        """Disable default timeouts for the duration of a manual wait."""
        self.page.set_default_timeouts(0)
        try:
            yield
        finally:
            self.page.set_default_timeouts(self.page.default_timeout_ms)

    async def _manual_wait(self, signal: CaptchaSignal) -> None:
        self._transition(CaptchaState.MANUAL_WAIT)
        self._announce(signal)

        interval = self.config.captcha_poll_interval_ms / 1000
        required = self.config.captcha_clear_checks
        clear_checks = 0
        polls = 0

        with self._blocking_wait():
            while clear_checks < required:
                await asyncio.sleep(interval)
                polls += 1
                try:
                    current = await self.detect()
                except TransientNavigationError:
                    # challenge pages navigate while being solved
                    clear_checks = 0
                    continue
                clear_checks = 0 if current.detected else clear_checks + 1

        self._log.info("captcha_resolved", polls=polls, url=self.page.url)
        self._console.print("[green]Challenge cleared, continuing...[/green]")

    def _announce(self, signal: CaptchaSignal) -> None:
        self._log.warning("captcha_detected", selector=signal.target_selector, url=self.page.url)
        self._console.print(Panel(
            "[bold]CAPTCHA detected![/bold]\n"
            "Solve it manually in the open browser window.\n"
            "Waiting...",
            border_style="red",
        ))
        if self.config.interactive:
            self._console.bell()
