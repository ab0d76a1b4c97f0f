"""instaleads - search-driven Instagram lead finder with Brazilian phone extraction."""

from instaleads.models.phone import PhoneConfidence, PhoneDetail, PhoneExtraction
from instaleads.models.profile import InstagramProfile
from instaleads.models.search import ResultStatus, SearchResult, SearchOutput
from instaleads.models.summary import SearchSummary
from instaleads.config import ScraperConfig
from instaleads.core.orchestrator import LeadScraper
from instaleads.core.phones import extract_brazil_phones
from instaleads.core.exporter import to_json, to_dict, save_json, load_json, save_csv, summarize

__version__ = "0.1.0"

__all__ = [
    # Main interface
    "LeadScraper",
    "ScraperConfig",
    "extract_brazil_phones",
    # Models
    "PhoneConfidence",
    "PhoneDetail",
    "PhoneExtraction",
    "InstagramProfile",
    "ResultStatus",
    "SearchResult",
    "SearchOutput",
    "SearchSummary",
    # Export utilities
    "to_json",
    "to_dict",
    "save_json",
    "load_json",
    "save_csv",
    "summarize",
    "__version__",
]
