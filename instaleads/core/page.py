"""Navigable page abstraction and its Playwright implementation."""

from contextlib import contextmanager
from typing import Any, Protocol

from playwright.async_api import Page, Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from instaleads.core.humanize import human_move, human_type
from instaleads.core.navigation import is_closed_target_message, is_transient_navigation_message
from instaleads.exceptions import (
    BrowserClosedError,
    InstaleadsError,
    NavigationError,
    NavigationTimeoutError,
    TransientNavigationError,
)


class NavigablePage(Protocol):
    """What the core pipeline needs from a browser tab."""

    default_timeout_ms: int

    @property
    def url(self) -> str: ...

    async def goto(self, url: str, wait_until: str = "domcontentloaded", timeout: int | None = None) -> None: ...

    async def wait_for_selector(self, selector: str, timeout: int | None = None) -> None: ...

    async def wait_for_load_state(self, state: str = "domcontentloaded", timeout: int | None = None) -> None: ...

    async def evaluate(self, expression: str, arg: Any = None) -> Any: ...

    async def is_visible(self, selector: str, timeout: int = 250) -> bool: ...

    def frame_urls(self) -> list[str]: ...

    async def click(self, selector: str, timeout: int | None = None) -> None: ...

    async def click_role(self, role: str, name: str, timeout: int | None = None) -> None: ...

    async def press(self, key: str) -> None: ...

    async def type_text(self, selector: str, text: str) -> None: ...

    async def reload(self) -> None: ...

    async def content(self) -> str: ...

    def set_default_timeouts(self, timeout_ms: int) -> None: ...


def translate_playwright_error(exc: PlaywrightError) -> InstaleadsError:
    """Map a Playwright error onto the instaleads taxonomy."""
    message = str(exc)
    if isinstance(exc, PlaywrightTimeoutError):
        return NavigationTimeoutError(message)
    if is_transient_navigation_message(message):
        return TransientNavigationError(message)
    if is_closed_target_message(message):
        return BrowserClosedError(message)
    return NavigationError(message)


@contextmanager
def playwright_errors():
    try:
        yield
    except PlaywrightError as exc:
        raise translate_playwright_error(exc) from exc


class PlaywrightPage:
    """NavigablePage backed by a Playwright async Page."""

    def __init__(self, page: Page, default_timeout_ms: int = 30000):
        self._page = page
        self.default_timeout_ms = default_timeout_ms
        self.set_default_timeouts(default_timeout_ms)

    @property
    def raw(self) -> Page:
        return self._page

    @property
    def url(self) -> str:
        return self._page.url

    async def goto(self, url: str, wait_until: str = "domcontentloaded", timeout: int | None = None) -> None:
        with playwright_errors():
            await self._page.goto(url, wait_until=wait_until, timeout=timeout)

    async def wait_for_selector(self, selector: str, timeout: int | None = None) -> None:
        with playwright_errors():
            await self._page.wait_for_selector(selector, timeout=timeout)

    async def wait_for_load_state(self, state: str = "domcontentloaded", timeout: int | None = None) -> None:
        with playwright_errors():
            await self._page.wait_for_load_state(state, timeout=timeout)

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        with playwright_errors():
            return await self._page.evaluate(expression, arg)

    async def is_visible(self, selector: str, timeout: int = 250) -> bool:
        locator = self._page.locator(selector).first
        try:
            with playwright_errors():
                await locator.wait_for(state="visible", timeout=timeout)
        except NavigationTimeoutError:
            return False
        return True

    def frame_urls(self) -> list[str]:
        return [frame.url for frame in self._page.frames]

    async def click(self, selector: str, timeout: int | None = None) -> None:
        with playwright_errors():
            await self._page.locator(selector).first.click(timeout=timeout)

    async def click_role(self, role: str, name: str, timeout: int | None = None) -> None:
        with playwright_errors():
            await self._page.get_by_role(role, name=name, exact=True).click(timeout=timeout)

    async def press(self, key: str) -> None:
        with playwright_errors():
            await self._page.keyboard.press(key)

    async def type_text(self, selector: str, text: str) -> None:
        with playwright_errors():
            await human_move(self._page, selector)
            await human_type(self._page, selector, text)

    async def reload(self) -> None:
        with playwright_errors():
            await self._page.reload(wait_until="domcontentloaded")

    async def content(self) -> str:
        with playwright_errors():
            return await self._page.content()

    def set_default_timeouts(self, timeout_ms: int) -> None:
        self._page.set_default_timeout(timeout_ms)
        self._page.set_default_navigation_timeout(timeout_ms)

    async def close(self) -> None:
        with playwright_errors():
            await self._page.close()
