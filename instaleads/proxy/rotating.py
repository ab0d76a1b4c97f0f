"""Proxy validation, rotation and geo alignment."""

import asyncio
import random
from urllib.parse import urlsplit

from instaleads.config import ProxyMode
from instaleads.exceptions import ConfigError

SUPPORTED_SCHEMES = ("http", "https", "socks5")

GEO_LOCALES = {
    "BR": {"locale": "pt-BR", "timezone": "America/Sao_Paulo"},
    "US": {"locale": "en-US", "timezone": "America/New_York"},
    "GB": {"locale": "en-GB", "timezone": "Europe/London"},
    "DE": {"locale": "de-DE", "timezone": "Europe/Berlin"},
    "FR": {"locale": "fr-FR", "timezone": "Europe/Paris"},
    "ES": {"locale": "es-ES", "timezone": "Europe/Madrid"},
}


def validate_proxy_url(url: str) -> bool:
    """True for http, https and socks5 URLs with a host."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in SUPPORTED_SCHEMES and bool(parts.hostname)


def to_playwright_proxy(url: str) -> dict:
    """
    Convert a proxy URL to Playwright's proxy dict, moving credentials out of the URL.

    Examples:
        "http://user:pw@proxy:8080" -> {"server": "http://proxy:8080", "username": "user", "password": "pw"}
    """
    parts = urlsplit(url)
    server = f"{parts.scheme}://{parts.hostname}"
    if parts.port:
        server += f":{parts.port}"

    proxy = {"server": server}
    if parts.username:
        proxy["username"] = parts.username
    if parts.password:
        proxy["password"] = parts.password
    return proxy


def resolve_geo_constraints(
    proxy_geo: str | None,
    fallback_locale: str,
    fallback_timezone: str = "America/Sao_Paulo",
) -> dict[str, str]:
    """Locale and timezone that match the proxy's exit country."""
    if proxy_geo:
        geo = GEO_LOCALES.get(proxy_geo.upper())
        if geo:
            return dict(geo)
    return {"locale": fallback_locale, "timezone": fallback_timezone}


class ProxyProvider:
    """Manages proxy rotation with configurable selection strategies."""

    def __init__(self, proxy_urls: list[str], mode: ProxyMode = ProxyMode.RANDOM):
        """
        Initialize proxy provider.

        Args:
            proxy_urls: List of proxy URLs (e.g., "socks5://user:pw@proxy:1080")
            mode: Selection strategy (round_robin or random)

        Raises:
            ConfigError: If any URL has an unsupported scheme or no host
        """
        invalid = [url for url in proxy_urls if not validate_proxy_url(url)]
        if invalid:
            raise ConfigError(f"Invalid proxy URL(s): {', '.join(invalid)}")

        self.proxies = proxy_urls
        self.mode = mode
        self._index = 0
        self._lock = asyncio.Lock()

    @property
    def has_proxies(self) -> bool:
        return len(self.proxies) > 0

    async def get_next(self) -> dict | None:
        """
        Get the next proxy as a Playwright proxy dict.

        Returns:
            Proxy dict or None if disabled or none configured
        """
        if not self.proxies or self.mode == ProxyMode.NONE:
            return None

        async with self._lock:
            if self.mode == ProxyMode.ROUND_ROBIN:
                url = self.proxies[self._index % len(self.proxies)]
                self._index += 1
            else:  # RANDOM
                url = random.choice(self.proxies)

        return to_playwright_proxy(url)

    @classmethod
    def from_file(cls, filepath: str, mode: ProxyMode = ProxyMode.RANDOM) -> "ProxyProvider":
        """Create a ProxyProvider from a file with one proxy URL per line (# comments allowed)."""
        with open(filepath) as f:
            proxies = [line.strip() for line in f if line.strip() and not line.startswith("#")]
        return cls(proxies, mode)
