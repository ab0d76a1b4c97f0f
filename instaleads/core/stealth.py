"""Browser identity profiles applied to each session's context."""

import random
from dataclasses import dataclass

from playwright.async_api import BrowserContext


@dataclass(frozen=True)
class IdentityProfile:
    """User agent plus the client hints and navigator values that must agree with it."""

    user_agent: str
    sec_ch_ua: str
    sec_ch_ua_mobile: str = "?0"
    sec_ch_ua_platform: str = '"Windows"'
    platform: str = "Win32"
    locale: str = "pt-BR"
    accept_language: str = "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7"
    timezone_id: str = "America/Sao_Paulo"
    hardware_concurrency: int = 8

    def extra_headers(self) -> dict[str, str]:
        return {
            "accept-language": self.accept_language,
            "sec-ch-ua": self.sec_ch_ua,
            "sec-ch-ua-mobile": self.sec_ch_ua_mobile,
            "sec-ch-ua-platform": self.sec_ch_ua_platform,
        }


IDENTITY_PROFILES = [
    IdentityProfile(
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/133.0.0.0 Safari/537.36",
        sec_ch_ua='"Not(A:Brand";v="99", "Google Chrome";v="133", "Chromium";v="133"',
        hardware_concurrency=8,
    ),
    IdentityProfile(
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/132.0.0.0 Safari/537.36",
        sec_ch_ua='"Not(A:Brand";v="24", "Google Chrome";v="132", "Chromium";v="132"',
        hardware_concurrency=12,
    ),
    IdentityProfile(
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
        sec_ch_ua='"Not(A:Brand";v="8", "Google Chrome";v="131", "Chromium";v="131"',
        hardware_concurrency=4,
    ),
]

_NAVIGATOR_SCRIPT = """
({ platform, hardwareConcurrency }) => {
  Object.defineProperty(navigator, 'platform', { get: () => platform, configurable: true });
  Object.defineProperty(navigator, 'hardwareConcurrency', { get: () => hardwareConcurrency, configurable: true });
  if (typeof window.Notification === 'undefined') {
    window.Notification = { permission: 'default', requestPermission: async () => 'default' };
  }
}
"""


def pick_identity(rng: random.Random | None = None) -> IdentityProfile:
    return (rng or random).choice(IDENTITY_PROFILES)


def navigator_init_script(identity: IdentityProfile) -> str:
    """Self-invoking init script with the identity's navigator values baked in."""
    return (
        f"({_NAVIGATOR_SCRIPT.strip()})"
        f"({{ platform: {identity.platform!r}, hardwareConcurrency: {identity.hardware_concurrency} }});"
    )


async def apply_identity(context: BrowserContext, identity: IdentityProfile) -> None:
    """Send matching client hints and patch navigator before any page script runs."""
    await context.set_extra_http_headers(identity.extra_headers())
    await context.add_init_script(script=navigator_init_script(identity))
