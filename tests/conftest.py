"""Shared fakes: an in-memory NavigablePage and ProfileFetcher."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from instaleads.config import ScraperConfig, SessionBackend
from instaleads.core.exporter import load_json
from instaleads.exceptions import NavigationTimeoutError
from instaleads.models.profile import BioLink, InstagramProfile


FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture_html(name: str) -> str:
    """Load HTML fixture by file stem."""
    html_path = FIXTURES_DIR / f"{name}.html"
    if not html_path.exists():
        pytest.skip(f"Fixture not found: {html_path}")
    return html_path.read_text(encoding="utf-8")


class FakePage:
    """
    NavigablePage over a list of HTML documents.

    The "Mais" link advances to the next document; the results selector is
    ready whenever the current document contains an <h3>.
    """

    def __init__(self, documents: list[str] | None = None, default_timeout_ms: int = 30000):
        self.documents = documents or ["<html><body></body></html>"]
        self.index = 0
        self.default_timeout_ms = default_timeout_ms
        self.visible: set[str] = set()
        self.frames: list[str] = ["https://www.google.com/search?q=x"]
        self.body_text = ""
        self.observed: str | None = None
        self.reload_count = 0
        self.on_reload = None
        self.timeout_calls: list[int] = []
        self.visited: list[str] = []
        self.typed: list[tuple[str, str]] = []
        self.pressed: list[str] = []
        self.clicked: list[str] = []
        self.goto_error: Exception | None = None
        self.results_ready = True

    @property
    def url(self) -> str:
        return f"https://www.google.com/search?page={self.index + 1}"

    async def goto(self, url, wait_until="domcontentloaded", timeout=None):
        if self.goto_error:
            raise self.goto_error
        self.visited.append(url)

    async def wait_for_selector(self, selector, timeout=None):
        if not self.results_ready or "<h3" not in self.documents[self.index]:
            raise NavigationTimeoutError(f"Timeout waiting for {selector}")

    async def wait_for_load_state(self, state="domcontentloaded", timeout=None):
        return None

    async def evaluate(self, expression, arg=None):
        if isinstance(arg, dict) and "selectors" in arg:
            return self.observed
        return self.body_text

    async def is_visible(self, selector, timeout=250):
        return selector in self.visible

    def frame_urls(self):
        return list(self.frames)

    async def click(self, selector, timeout=None):
        if selector == "#pnnext" and self.index + 1 < len(self.documents):
            self.clicked.append(selector)
            self.index += 1
            return
        if selector in self.visible:
            self.clicked.append(selector)
            return
        raise NavigationTimeoutError(f"Timeout clicking {selector}")

    async def click_role(self, role, name, timeout=None):
        if self.index + 1 < len(self.documents):
            self.clicked.append(f"{role}:{name}")
            self.index += 1
            return
        raise NavigationTimeoutError(f"Timeout clicking {role} {name}")

    async def press(self, key):
        self.pressed.append(key)

    async def type_text(self, selector, text):
        self.typed.append((selector, text))

    async def reload(self):
        self.reload_count += 1
        if self.on_reload:
            self.on_reload(self)

    async def content(self):
        return self.documents[self.index]

    def set_default_timeouts(self, timeout_ms):
        self.timeout_calls.append(timeout_ms)


class FakeProfileFetcher:
    """ProfileFetcher returning canned profiles (or raising) per normalized URL."""

    def __init__(self, responses: dict | None = None):
        self.responses = responses or {}
        self.calls: list[str] = []

    async def fetch_profile(self, normalized_url):
        self.calls.append(normalized_url)
        response = self.responses.get(normalized_url)
        if isinstance(response, Exception):
            raise response
        if normalized_url not in self.responses:
            # https://www.instagram.com/<username>/?hl=pt
            return make_profile(normalized_url.split("/")[3])
        return response


def make_profile(username: str, bio: str = "", links: list[str] | None = None) -> InstagramProfile:
    links = links or []
    return InstagramProfile(
        username=username,
        name=username.title(),
        posts_count=10,
        followers_count=1200,
        following_count=300,
        bio=bio,
        url=f"https://www.instagram.com/{username}/?hl=pt",
        link=links[0] if links else None,
        bio_links=[BioLink(url=url, link_type="external") for url in links],
        extracted_at=datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def fast_config(tmp_path) -> ScraperConfig:
    """Config with every delay and poll interval shrunk for tests."""
    return ScraperConfig(
        profile_delay_ms=0,
        profile_jitter_ms=0,
        captcha_observe_ms=1,
        captcha_poll_interval_ms=1,
        results_deadline_ms=50,
        interactive=False,
        session_backend=SessionBackend.NONE,
        sqlite_path=str(tmp_path / "sessions.db"),
    )


@pytest.fixture
def results_html() -> str:
    return load_fixture_html("google_results")


@pytest.fixture
def search_output():
    """SearchOutput loaded from the cached JSON fixture."""
    path = FIXTURES_DIR / "search_output.json"
    if not path.exists():
        pytest.skip(f"Fixture not found: {path}")
    return load_json(path)
