"""Search result models."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import ConfigDict

from instaleads.models.base import CamelModel
from instaleads.models.phone import PhoneConfidence, PhoneDetail, PhoneExtraction
from instaleads.models.profile import BioLink, InstagramProfile


class ResultStatus(str, Enum):
    """Lifecycle of a result row through profile enrichment."""
    PENDING = "pending"
    NOT_INSTAGRAM = "not_instagram"
    INSTAGRAM_OK = "instagram_ok"
    INSTAGRAM_FAILED = "instagram_failed"
    DUPLICATE_INSTAGRAM = "duplicate_instagram"
    INSTAGRAM_SKIPPED_LIMIT = "instagram_skipped_limit"


class SearchResult(CamelModel):
    """One organic result row, optionally enriched with profile data."""

    title: str
    url: str
    description: str = ""
    source: Literal["google"] = "google"
    status: ResultStatus = ResultStatus.PENDING
    query: str = ""
    page: int
    extracted_at: datetime

    # Present only once status is instagram_ok
    instagram_username: str | None = None
    instagram_name: str | None = None
    instagram_posts: int | None = None
    instagram_followers: int | None = None
    instagram_following: int | None = None
    instagram_bio: str | None = None
    instagram_link: str | None = None
    instagram_link_title: str | None = None
    instagram_bio_links: list[BioLink] | None = None
    instagram_extracted_at: datetime | None = None
    instagram_phones_pt_br: list[str] | None = None
    instagram_phones_e164: list[str] | None = None
    instagram_phones_details: list[PhoneDetail] | None = None
    instagram_primary_phone_pt_br: str | None = None
    instagram_primary_phone_e164: str | None = None
    instagram_primary_phone_confidence: PhoneConfidence | None = None

    @property
    def has_phones(self) -> bool:
        return bool(self.instagram_phones_e164)

    def apply_profile(self, profile: InstagramProfile, phones: PhoneExtraction) -> None:
        """Copy profile fields and phone extraction output onto this row."""
        self.instagram_username = profile.username
        self.instagram_name = profile.name
        self.instagram_posts = profile.posts_count
        self.instagram_followers = profile.followers_count
        self.instagram_following = profile.following_count
        self.instagram_bio = profile.bio
        self.instagram_link = profile.link
        self.instagram_link_title = profile.link_title
        self.instagram_bio_links = list(profile.bio_links)
        self.instagram_extracted_at = profile.extracted_at
        self.instagram_phones_pt_br = list(phones.phones_pt_br)
        self.instagram_phones_e164 = list(phones.phones_e164)
        self.instagram_phones_details = list(phones.phones_details)
        self.instagram_primary_phone_pt_br = phones.primary_phone_pt_br
        self.instagram_primary_phone_e164 = phones.primary_phone_e164
        self.instagram_primary_phone_confidence = phones.primary_phone_confidence
        self.status = ResultStatus.INSTAGRAM_OK


class SearchOutput(CamelModel):
    """Final report of one search run; frozen once built."""

    model_config = ConfigDict(frozen=True)

    query: str
    total_pages: int
    total_results: int
    extracted_at: datetime
    results: list[SearchResult] = []
