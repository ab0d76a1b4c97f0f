"""Export utilities and derived statistics for search output."""

import json
import re
import unicodedata
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from instaleads.core.instagram import parse_instagram_url
from instaleads.core.transformer import utcnow
from instaleads.models.search import ResultStatus, SearchOutput, SearchResult
from instaleads.models.summary import SearchSummary

if TYPE_CHECKING:
    import pandas as pd

try:
    import pandas as pd
    PANDAS_AVAILABLE = True
except ImportError:
    PANDAS_AVAILABLE = False


CSV_COLUMNS = [
    "title",
    "url",
    "description",
    "source",
    "status",
    "query",
    "page",
    "extractedAt",
    "instagramUsername",
    "instagramName",
    "instagramPosts",
    "instagramFollowers",
    "instagramFollowing",
    "instagramBio",
    "instagramLink",
    "instagramPhonesCount",
    "instagramPhones",
    "instagramPhonesConfidence",
    "instagramPhonesSources",
    "instagramPrimaryPhonePtBr",
    "instagramPrimaryPhoneE164",
    "instagramPrimaryPhoneConfidence",
]

TOP_AREA_CODES = 5


def to_json(output: SearchOutput, indent: int = 2) -> str:
    """
    Convert SearchOutput to a camelCase JSON string.

    Args:
        output: SearchOutput to serialize
        indent: JSON indentation level

    Returns:
        JSON string
    """
    return output.model_dump_json(indent=indent, by_alias=True, exclude_none=True)


def to_dict(output: SearchOutput) -> dict:
    """Convert SearchOutput to a JSON-compatible dict with camelCase keys."""
    return output.model_dump(mode="json", by_alias=True, exclude_none=True)


def save_json(output: SearchOutput, filepath: str | Path, indent: int = 2) -> Path:
    """
    Save SearchOutput to a JSON file, creating parent directories.

    Returns:
        Path to saved file
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_json(output, indent=indent), encoding="utf-8")
    return path


def load_json(filepath: str | Path) -> SearchOutput:
    """Load a SearchOutput previously written by save_json."""
    path = Path(filepath)
    return SearchOutput.model_validate_json(path.read_text(encoding="utf-8"))


def slugify(text: str, max_length: int = 60) -> str:
    """
    Filename-safe slug.

    Examples:
        'site:instagram.com "São Paulo"' -> "site-instagram-com-sao-paulo"
    """
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")
    return slug[:max_length].rstrip("-") or "query"


def default_output_path(
    query: str,
    output_dir: str | Path = "output",
    suffix: str = ".json",
    now: datetime | None = None,
) -> Path:
    """output/google-<slug>-<timestamp>.json"""
    timestamp = (now or utcnow()).strftime("%Y%m%d-%H%M%S")
    return Path(output_dir) / f"google-{slugify(query)}-{timestamp}{suffix}"


def filter_with_phones(output: SearchOutput) -> SearchOutput:
    """
    Keep only rows with at least one phone.

    totalResults still reports every scraped row.
    """
    return output.model_copy(update={"results": [r for r in output.results if r.has_phones]})


def to_csv_row(result: SearchResult) -> dict:
    """
    Flatten one result row, phone fields included, into CSV columns.

    Args:
        result: SearchResult to flatten

    Returns:
        Dict keyed by CSV_COLUMNS
    """
    details = result.instagram_phones_details or []
    confidence = result.instagram_primary_phone_confidence

    return {
        "title": result.title,
        "url": result.url,
        "description": result.description,
        "source": result.source,
        "status": result.status.value,
        "query": result.query,
        "page": result.page,
        "extractedAt": result.extracted_at.isoformat(),
        "instagramUsername": result.instagram_username or "",
        "instagramName": result.instagram_name or "",
        "instagramPosts": result.instagram_posts if result.instagram_posts is not None else "",
        "instagramFollowers": result.instagram_followers if result.instagram_followers is not None else "",
        "instagramFollowing": result.instagram_following if result.instagram_following is not None else "",
        "instagramBio": result.instagram_bio or "",
        "instagramLink": result.instagram_link or "",
        "instagramPhonesCount": len(result.instagram_phones_e164 or []),
        "instagramPhones": "|".join(result.instagram_phones_pt_br or []),
        "instagramPhonesConfidence": json.dumps(
            {d.phone_e164: d.confidence.value for d in details}, ensure_ascii=False
        ) if details else "",
        "instagramPhonesSources": json.dumps(
            {d.phone_e164: d.sources for d in details}, ensure_ascii=False
        ) if details else "",
        "instagramPrimaryPhonePtBr": result.instagram_primary_phone_pt_br or "",
        "instagramPrimaryPhoneE164": result.instagram_primary_phone_e164 or "",
        "instagramPrimaryPhoneConfidence": confidence.value if confidence else "",
    }


def _check_pandas():
    """Raise ImportError if pandas is not available."""
    if not PANDAS_AVAILABLE:
        raise ImportError(
            "pandas is required for DataFrame and CSV export. Install with: pip install pandas"
        )


def to_results_df(output: SearchOutput) -> "pd.DataFrame":
    """
    Convert result rows to a pandas DataFrame, one row per scraped result.

    Raises:
        ImportError: If pandas is not installed
    """
    _check_pandas()
    return pd.DataFrame([to_csv_row(r) for r in output.results], columns=CSV_COLUMNS)


def save_csv(output: SearchOutput, filepath: str | Path) -> Path:
    """
    Save SearchOutput rows to a CSV file with flattened phone columns.

    Returns:
        Path to saved file

    Raises:
        ImportError: If pandas is not installed
    """
    df = to_results_df(output)

    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path


def summarize(output: SearchOutput) -> SearchSummary:
    """
    Derive reporting statistics from the result rows alone.

    Args:
        output: SearchOutput to summarise

    Returns:
        SearchSummary with status counts, phone counts and top DDDs
    """
    results = output.results
    status_counts = {status.value: 0 for status in ResultStatus}
    for result in results:
        status_counts[result.status.value] += 1

    skipped_usernames = {
        parse_instagram_url(r.url).username
        for r in results
        if r.status == ResultStatus.INSTAGRAM_SKIPPED_LIMIT
    }

    phones: set[str] = set()
    for result in results:
        phones.update(result.instagram_phones_e164 or [])

    # +55DDxxxxxxxx
    area_codes = Counter(phone[3:5] for phone in phones)

    return SearchSummary(
        total_results=len(results),
        status_counts=status_counts,
        profiles_enriched=status_counts[ResultStatus.INSTAGRAM_OK.value],
        profiles_skipped=len(skipped_usernames),
        unique_phones=len(phones),
        results_with_phones=sum(1 for r in results if r.has_phones),
        top_area_codes=sorted(area_codes.items(), key=lambda item: (-item[1], item[0]))[:TOP_AREA_CODES],
    )
