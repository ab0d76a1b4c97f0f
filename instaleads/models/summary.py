"""Derived reporting statistics."""

from instaleads.models.base import CamelModel


class SearchSummary(CamelModel):
    """Statistics recomputed from a SearchOutput's results."""

    total_results: int
    status_counts: dict[str, int]
    profiles_enriched: int
    profiles_skipped: int
    unique_phones: int
    results_with_phones: int
    top_area_codes: list[tuple[str, int]]
