"""Pydantic models for instaleads."""

from instaleads.models.phone import PhoneConfidence, PhoneDetail, PhoneExtraction
from instaleads.models.profile import BioLink, InstagramProfile
from instaleads.models.search import ResultStatus, SearchResult, SearchOutput
from instaleads.models.summary import SearchSummary

__all__ = [
    "PhoneConfidence",
    "PhoneDetail",
    "PhoneExtraction",
    "BioLink",
    "InstagramProfile",
    "ResultStatus",
    "SearchResult",
    "SearchOutput",
    "SearchSummary",
]
