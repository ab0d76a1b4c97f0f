"""Live validation script - capture real profile pages and check the parser against them."""

import asyncio
import sys
from datetime import datetime
from pathlib import Path

from instaleads.config import ScraperConfig, SessionBackend
from instaleads.core import browser
from instaleads.core.instagram import HEADER_SELECTOR, parse_instagram_url
from instaleads.core.page import PlaywrightPage
from instaleads.core.parser import parse_instagram_profile
from instaleads.core.phones import extract_brazil_phones
from instaleads.core.transformer import transform_profile
from instaleads.exceptions import InstaleadsError, NavigationTimeoutError

# Profiles to capture (override on the command line)
PROFILE_URLS = [
    "https://www.instagram.com/instagram/",
    "https://www.instagram.com/natgeo/",
]

FIXTURES_DIR = Path(__file__).parent.parent / "tests" / "fixtures"


async def validate_profile(session: browser.BrowserSession, url: str, save_fixture: bool = True) -> dict:
    """Fetch one profile with the shared context, save its HTML and report what parsed."""
    info = parse_instagram_url(url)
    if not info.is_profile:
        print(f"❌ Not a profile URL: {url}")
        return {"username": url, "success": False, "error": "not a profile"}

    print(f"\n{'='*60}")
    print(f"Fetching @{info.username}...")
    print(f"{'='*60}")

    start = datetime.now()
    page = PlaywrightPage(await session.context.new_page(), 15000)
    try:
        await page.goto(info.normalized_url)
        try:
            await page.wait_for_selector(HEADER_SELECTOR, timeout=15000)
        except NavigationTimeoutError as e:
            print(f"⚠️  Header not found: {e}")
        html = await page.content()
    except InstaleadsError as e:
        print(f"❌ Fetch exception: {e}")
        return {"username": info.username, "success": False, "error": str(e)}
    finally:
        await page.close()

    duration_ms = (datetime.now() - start).total_seconds() * 1000
    print(f"✓ Fetched in {duration_ms:.0f}ms ({len(html)} bytes)")

    if save_fixture:
        FIXTURES_DIR.mkdir(parents=True, exist_ok=True)
        fixture_path = FIXTURES_DIR / f"live_{info.username}.html"
        fixture_path.write_text(html, encoding="utf-8")
        print(f"✓ Saved fixture: {fixture_path}")

    parse_result = parse_instagram_profile(html)

    print(f"\n--- Profile Data ---")
    if not parse_result.rows:
        print("  ❌ No profile data extracted!" + (" (login wall)" if parse_result.login_wall else ""))
        for err in parse_result.parse_errors:
            print(f"  ⚠️  {err}")
        return {"username": info.username, "success": False, "login_wall": parse_result.login_wall}

    profile = transform_profile(parse_result.rows[0], info.normalized_url)
    print(f"  Username: @{profile.username}")
    print(f"  Name: {profile.name}")
    print(f"  Bio: {profile.bio[:80] + '...' if len(profile.bio) > 80 else profile.bio}")
    print(f"  Posts: {profile.posts_count:,}")
    print(f"  Followers: {profile.followers_count:,}")
    print(f"  Following: {profile.following_count:,}")
    print(f"  Links: {len(profile.bio_links)}")

    extra_links = [link.url for link in profile.bio_links if link.url != profile.link]
    phones = extract_brazil_phones(profile.bio, profile.link, extra_links)

    print(f"\n--- Phones ({len(phones.phones_details)} found) ---")
    for detail in phones.phones_details:
        marker = "★" if detail.phone_e164 == phones.primary_phone_e164 else " "
        print(f"  {marker} {detail.phone_pt_br} [{detail.confidence.value}] {', '.join(detail.sources)}")

    return {
        "username": profile.username,
        "success": True,
        "followers": profile.followers_count,
        "phones": len(phones.phones_details),
        "duration_ms": duration_ms,
    }


async def main(urls: list[str]):
    """Run validation on all profile URLs with one browser."""
    print("=" * 60)
    print("Live Profile Validation")
    print("=" * 60)

    config = ScraperConfig(headless=True, session_backend=SessionBackend.NONE)
    try:
        session = await browser.launch_browser(config)
    except InstaleadsError as e:
        print(f"❌ {e}")
        return

    results = []
    try:
        for url in urls:
            results.append(await validate_profile(session, url))
            # Small delay between profiles
            await asyncio.sleep(config.profile_delay_ms / 1000)
    finally:
        await session.close()

    print("\n" + "=" * 60)
    print("VALIDATION SUMMARY")
    print("=" * 60)

    success_count = sum(1 for r in results if r.get("success"))
    print(f"\nSuccess: {success_count}/{len(results)}")

    print("\n| Username | Parsed | Followers | Phones |")
    print("|----------|--------|-----------|--------|")
    for r in results:
        parsed = "✓" if r.get("success") else "❌"
        print(f"| @{r['username']:<16} | {parsed:<6} | {r.get('followers', 0):<9} | {r.get('phones', 0):<6} |")

    print("\nFixtures saved to: tests/fixtures/")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:] or PROFILE_URLS))
