"""BeautifulSoup-based HTML parsing for search result pages and profiles."""

import re
from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlsplit

from bs4 import BeautifulSoup, Tag


@dataclass
class ParseResult:
    """Raw dicts pulled out of a page, not yet validated."""

    rows: list[dict]
    parse_errors: list[str] = field(default_factory=list)
    login_wall: bool = False


# Selectors - centralized for easy updates when the DOM changes
SEARCH_SELECTORS = {
    "container": "#rso, [role='main']",
    "item": "div[data-hveid]",
    "title": "h3",
    "link": "a[href^='http']",
    "description_candidates": "span, div",
}

PROFILE_SELECTORS = {
    "header": "header",
    "section": "header section",
    "username": "h2",
    "name": "span",
    "counts": "ul li",
    "links": "header a[href]",
    "meta_description": "meta[name='description'], meta[property='og:description']",
    "meta_title": "meta[property='og:title']",
    "login_username": "input[name='username']",
    "login_password": "input[name='password']",
}

IGNORE_PATTERNS = [
    "google.com/search",
    "accounts.google",
    "support.google",
    "maps.google",
    "policies.google",
    "youtube.com",
]

DESCRIPTION_MIN_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 300

_BIO_MORE_SUFFIX_RE = re.compile(r"\.\.\.?\s*(mais|more)\s*$", re.IGNORECASE)
_META_COUNTS_RE = re.compile(
    r"(?P<followers>[\d.,]+\s*[KkMm]?(?:\s*mil|\s*mi)?)\s+(?:Followers|seguidores)\s*,\s*"
    r"(?P<following>[\d.,]+\s*[KkMm]?(?:\s*mil|\s*mi)?)\s+(?:Following|seguindo)\s*,\s*"
    r"(?P<posts>[\d.,]+\s*[KkMm]?(?:\s*mil|\s*mi)?)\s+(?:Posts|publicações|posts)",
    re.IGNORECASE,
)
_META_HANDLE_RE = re.compile(r"\(@(?P<username>[A-Za-z0-9._]+)\)")


def is_ignored_url(url: str) -> bool:
    """True for the search engine's own pages and other non-content links."""
    return any(pattern in url for pattern in IGNORE_PATTERNS)


def _text(el: Tag | None) -> str:
    if el is None:
        return ""
    return el.get_text(" ", strip=True)


def _description_for(item: Tag, title: str) -> str:
    for candidate in item.select(SEARCH_SELECTORS["description_candidates"]):
        # wrappers around the heading would repeat the title
        if candidate.find(SEARCH_SELECTORS["title"]) is not None:
            continue
        text = _text(candidate)
        if len(text) > DESCRIPTION_MIN_LENGTH and text != title:
            return text[:DESCRIPTION_MAX_LENGTH]
    return ""


def parse_search_results(html: str) -> ParseResult:
    """
    Extract organic result rows from a search results page.

    A row needs a heading and an absolute-URL anchor; links back to the
    search engine itself are dropped, and nested containers that point at
    the same URL collapse into one row.

    Args:
        html: Rendered page HTML

    Returns:
        ParseResult whose rows are {"title", "url", "description"} dicts
    """
    soup = BeautifulSoup(html, "lxml")
    container = soup.select_one(SEARCH_SELECTORS["container"])
    if container is None:
        return ParseResult(rows=[], parse_errors=["Results container not found"])

    rows = []
    seen_urls: set[str] = set()

    for item in container.select(SEARCH_SELECTORS["item"]):
        heading = item.select_one(SEARCH_SELECTORS["title"])
        anchor = item.select_one(SEARCH_SELECTORS["link"])
        if heading is None or anchor is None:
            continue

        url = anchor.get("href", "")
        if not url or is_ignored_url(url) or url in seen_urls:
            continue

        title = _text(heading)
        seen_urls.add(url)
        rows.append({
            "title": title,
            "url": url,
            "description": _description_for(item, title),
        })

    return ParseResult(rows=rows)


def _unwrap_instagram_redirect(href: str) -> str:
    """l.instagram.com/?u=<target> -> <target>."""
    try:
        parts = urlsplit(href)
    except ValueError:
        return href
    if (parts.hostname or "").lower() == "l.instagram.com":
        target = parse_qs(parts.query).get("u")
        if target:
            return target[0]
    return href


def _is_external_link(href: str) -> bool:
    try:
        host = (urlsplit(href).hostname or "").lower()
    except ValueError:
        return False
    if not host:
        return False
    if host == "l.instagram.com":
        return True
    return not (host == "instagram.com" or host.endswith(".instagram.com"))


def parse_profile_links(soup: BeautifulSoup) -> list[dict]:
    """Collect external links from the profile header, in display order."""
    links = []
    seen: set[str] = set()

    for anchor in soup.select(PROFILE_SELECTORS["links"]):
        href = anchor.get("href", "")
        if not href.startswith("http") or not _is_external_link(href):
            continue
        url = _unwrap_instagram_redirect(href)
        if url in seen:
            continue
        seen.add(url)
        links.append({
            "title": _text(anchor) or None,
            "url": url,
            "raw_url": href,
        })

    return links


def _parse_header(section: Tag) -> dict:
    profile: dict = {}
    blocks = section.find_all("div", recursive=False)
    if len(blocks) < 4:
        return profile

    profile["username"] = _text(blocks[0].find(PROFILE_SELECTORS["username"]))
    profile["name"] = _text(blocks[1].find(PROFILE_SELECTORS["name"]))

    counts = [_text(li) for li in blocks[2].select(PROFILE_SELECTORS["counts"])]
    for key, raw in zip(("posts_count_raw", "followers_count_raw", "following_count_raw"), counts):
        profile[key] = raw

    bio_block = blocks[3].find("div")
    bio_span = bio_block.find("span") if bio_block else None
    profile["bio"] = _BIO_MORE_SUFFIX_RE.sub("", _text(bio_span)).strip()

    return profile


def _parse_meta(soup: BeautifulSoup) -> dict:
    """Fallback parse of the og:description / og:title tags."""
    profile: dict = {}

    description = soup.select_one(PROFILE_SELECTORS["meta_description"])
    content = description.get("content", "") if description else ""
    match = _META_COUNTS_RE.search(content)
    if match:
        profile["followers_count_raw"] = match.group("followers")
        profile["following_count_raw"] = match.group("following")
        profile["posts_count_raw"] = match.group("posts")

    title = soup.select_one(PROFILE_SELECTORS["meta_title"])
    title_content = title.get("content", "") if title else ""
    handle = _META_HANDLE_RE.search(title_content) or _META_HANDLE_RE.search(content)
    if handle:
        profile["username"] = handle.group("username")
        name = title_content.split("(@")[0].strip()
        if name:
            profile["name"] = name

    return profile


def has_login_wall(soup: BeautifulSoup) -> bool:
    """A login form with no profile header means the page is gated."""
    has_form = bool(
        soup.select_one(PROFILE_SELECTORS["login_username"])
        and soup.select_one(PROFILE_SELECTORS["login_password"])
    )
    return has_form and soup.select_one(PROFILE_SELECTORS["section"]) is None


def parse_instagram_profile(html: str) -> ParseResult:
    """
    Extract raw profile metadata from an Instagram profile page.

    The header layout is tried first; the og: meta tags fill in whatever the
    header did not provide.

    Args:
        html: Rendered page HTML

    Returns:
        ParseResult with a single raw profile dict (or none on failure)
    """
    soup = BeautifulSoup(html, "lxml")
    errors = []

    profile: dict = {}
    section = soup.select_one(PROFILE_SELECTORS["section"])
    if section is not None:
        try:
            profile = _parse_header(section)
        except Exception as e:
            errors.append(f"Header parse error: {e}")

    for key, value in _parse_meta(soup).items():
        if not profile.get(key):
            profile[key] = value

    profile["links"] = parse_profile_links(soup)
    login_wall = has_login_wall(soup)

    if not profile.get("username"):
        errors.append("Profile username not found")
        return ParseResult(rows=[], parse_errors=errors, login_wall=login_wall)

    return ParseResult(rows=[profile], parse_errors=errors, login_wall=login_wall)
