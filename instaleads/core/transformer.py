"""Data transformation and normalization for scraped data."""

import re
from datetime import datetime, timezone

from instaleads.models.profile import BioLink, InstagramProfile
from instaleads.models.search import ResultStatus, SearchResult
from instaleads.core.parser import ParseResult

_COUNT_RE = re.compile(
    r"(?P<number>\d[\d.,]*)\s*(?P<suffix>million|milhões|milhão|mil|mi|bi|k|m|b)?\b",
    re.IGNORECASE,
)

_MULTIPLIERS = {
    "k": 1_000,
    "mil": 1_000,
    "m": 1_000_000,
    "mi": 1_000_000,
    "million": 1_000_000,
    "milhão": 1_000_000,
    "milhões": 1_000_000,
    "b": 1_000_000_000,
    "bi": 1_000_000_000,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_count(count_str: str | None) -> int:
    """
    Convert count strings in English or pt-BR notation to integers.

    Examples:
        "1.2K" -> 1200
        "1,2 mil seguidores" -> 1200
        "3,4 mi" -> 3400000
        "1.234 publicações" -> 1234
        "1,234 followers" -> 1234
    """
    if not count_str:
        return 0

    match = _COUNT_RE.search(count_str.strip())
    if not match:
        return 0

    number = match.group("number").rstrip(".,")
    suffix = (match.group("suffix") or "").lower()

    try:
        if suffix:
            # with a multiplier the separator is a decimal point
            return int(round(float(number.replace(",", ".")) * _MULTIPLIERS[suffix]))
        return int(number.replace(",", "").replace(".", ""))
    except ValueError:
        return 0


def transform_profile(raw: dict, url: str) -> InstagramProfile:
    """
    Transform raw profile dict to validated InstagramProfile model.

    Args:
        raw: Raw profile data from parser
        url: Normalized profile URL that was fetched

    Returns:
        Validated InstagramProfile model
    """
    links = raw.get("links") or []
    first = links[0] if links else None

    return InstagramProfile(
        username=raw["username"].lstrip("@"),
        name=raw.get("name") or "",
        posts_count=normalize_count(raw.get("posts_count_raw")),
        followers_count=normalize_count(raw.get("followers_count_raw")),
        following_count=normalize_count(raw.get("following_count_raw")),
        bio=raw.get("bio") or "",
        url=url,
        link=first["url"] if first else None,
        link_title=first.get("title") if first else None,
        bio_links=[
            BioLink(title=link.get("title"), url=link["url"], link_type="external")
            for link in links
        ],
        extracted_at=utcnow(),
    )


def transform_search_rows(
    parse_result: ParseResult,
    query: str,
    page: int,
) -> list[SearchResult]:
    """
    Tag parsed result rows with page, source and pending status.

    Args:
        parse_result: ParseResult from parse_search_results
        query: Query that produced the page
        page: 1-based page number

    Returns:
        List of SearchResult models
    """
    extracted_at = utcnow()
    return [
        SearchResult(
            title=row["title"],
            url=row["url"],
            description=row.get("description", ""),
            status=ResultStatus.PENDING,
            query=query,
            page=page,
            extracted_at=extracted_at,
        )
        for row in parse_result.rows
    ]
