"""Instagram profile model."""

from datetime import datetime

from instaleads.models.base import CamelModel


class BioLink(CamelModel):
    """A link shown in the profile header."""

    title: str | None = None
    url: str
    link_type: str | None = None


class InstagramProfile(CamelModel):
    """Public metadata scraped from an Instagram profile page."""

    username: str
    name: str = ""
    posts_count: int = 0
    followers_count: int = 0
    following_count: int = 0
    bio: str = ""
    url: str
    link: str | None = None
    link_title: str | None = None
    bio_links: list[BioLink] = []
    extracted_at: datetime
