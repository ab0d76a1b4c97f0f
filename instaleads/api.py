"""FastAPI web server for instaleads."""

from datetime import datetime

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from instaleads import LeadScraper, ScraperConfig, extract_brazil_phones, __version__
from instaleads.core.exporter import filter_with_phones, summarize, to_dict
from instaleads.exceptions import BrowserError, InstaleadsError, QueryValidationError


# Request/Response models
class SearchRequest(BaseModel):
    """Request body for a search run."""

    query: str = Field(..., description="Search query (dork), e.g. site:instagram.com \"loja\"")
    max_pages: int = Field(default=3, ge=1, le=10, description="Result pages to scrape")
    max_profiles: int = Field(default=25, ge=0, le=100, description="Cap on profiles fetched")
    only_with_phones: bool = Field(
        default=False,
        description="Return only rows where a phone was found (totalResults is unchanged)",
    )
    headless: bool = Field(default=True, description="Run browser in headless mode")


class PhoneExtractRequest(BaseModel):
    """Request body for ad-hoc phone extraction."""

    bio: str | None = Field(default=None, description="Bio free text (low confidence)")
    link: str | None = Field(default=None, description="Primary profile link")
    bio_links: list[str] = Field(default_factory=list, description="Additional bio links")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


class ConfigResponse(BaseModel):
    """Current scraper configuration with descriptions."""

    headless: bool = Field(
        ...,
        description="Run browser in headless mode. Challenges can only be solved by hand with a visible window.",
    )
    max_pages: int = Field(..., description="Default number of result pages scraped per search.")
    max_profiles: int = Field(
        ...,
        description="Maximum distinct profiles fetched per search; the rest are marked instagram_skipped_limit.",
    )
    profile_delay_ms: int = Field(..., description="Base delay between profile fetches in milliseconds.")
    profile_jitter_ms: int = Field(..., description="Uniform random jitter added to the base delay.")
    captcha_poll_interval_ms: int = Field(..., description="Poll interval while waiting for a challenge to clear.")
    captcha_clear_checks: int = Field(
        ...,
        description="Consecutive clear polls required before a challenge counts as resolved.",
    )
    proxy_mode: str = Field(
        ...,
        description="Proxy selection strategy.",
        json_schema_extra={"enum": ["round_robin", "random", "none"]},
    )
    session_backend: str = Field(
        ...,
        description="Where browser storage state is persisted.",
        json_schema_extra={"enum": ["sqlite", "none"]},
    )
    session_ttl_seconds: int = Field(..., description="Stored sessions older than this are discarded.")
    log_level: str = Field(
        ...,
        description="Logging verbosity level.",
        json_schema_extra={"enum": ["DEBUG", "INFO", "WARNING", "ERROR"]},
    )


app = FastAPI(
    title="instaleads API",
    description="Search-driven Instagram lead finder with Brazilian phone extraction",
    version=__version__,
)


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Check API health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now().isoformat(),
    )


@app.get("/api/config", response_model=ConfigResponse, tags=["System"])
async def get_default_config():
    """
    Get default scraper configuration.

    **Configuration can also be set via environment variables** with the `INSTALEADS_` prefix:
    - `INSTALEADS_HEADLESS=true`
    - `INSTALEADS_MAX_PROFILES=10`
    - `INSTALEADS_SESSION_BACKEND=none`
    """
    config = ScraperConfig()
    return ConfigResponse(
        headless=config.headless,
        max_pages=config.max_pages,
        max_profiles=config.max_profiles,
        profile_delay_ms=config.profile_delay_ms,
        profile_jitter_ms=config.profile_jitter_ms,
        captcha_poll_interval_ms=config.captcha_poll_interval_ms,
        captcha_clear_checks=config.captcha_clear_checks,
        proxy_mode=config.proxy_mode.value,
        session_backend=config.session_backend.value,
        session_ttl_seconds=config.session_ttl_seconds,
        log_level=config.log_level,
    )


@app.post("/api/phones/extract", tags=["Phones"])
async def extract_phones(request: PhoneExtractRequest):
    """Run phone extraction over a bio and its links. Pure; no browser involved."""
    extraction = extract_brazil_phones(request.bio, request.link, request.bio_links)
    return extraction.model_dump(mode="json", by_alias=True)


@app.post("/api/search", tags=["Search"])
async def search(request: SearchRequest):
    """
    Run a full search with profile enrichment.

    Blocks for the whole run, including any manual challenge wait.
    """
    config = ScraperConfig(
        headless=request.headless,
        max_profiles=request.max_profiles,
        interactive=False,
    )

    try:
        async with LeadScraper(config) as scraper:
            output = await scraper.search(request.query, max_pages=request.max_pages)
    except QueryValidationError as e:
        raise HTTPException(status_code=422, detail={"code": e.code, "message": str(e)})
    except BrowserError as e:
        raise HTTPException(status_code=503, detail={"code": e.code, "message": str(e)})
    except InstaleadsError as e:
        raise HTTPException(status_code=502, detail={"code": e.code, "message": str(e)})

    summary = summarize(output)
    if request.only_with_phones:
        output = filter_with_phones(output)

    return {
        "output": to_dict(output),
        "summary": summary.model_dump(mode="json", by_alias=True),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
