"""Custom exception hierarchy for instaleads."""


class InstaleadsError(Exception):
    """Base exception for all instaleads errors."""

    code: str = "ERR_GENERIC"
    action: str = ""

    def __init__(self, message: str = "", *, action: str | None = None):
        super().__init__(message)
        if action is not None:
            self.action = action


class QueryValidationError(InstaleadsError):
    """Search query is empty or otherwise unusable."""

    code = "ERR_SEARCH_001"
    action = "Provide a non-empty search term."


class BrowserError(InstaleadsError):
    """Browser infrastructure failure; always fatal for the run."""


class BrowserLaunchError(BrowserError):
    """No compatible browser channel could be launched."""

    code = "ERR_BROWSER_001"
    action = "Install Google Chrome or Microsoft Edge."


class BrowserClosedError(BrowserError):
    """Page, context or browser crashed or was closed underneath us."""

    code = "ERR_BROWSER_002"


class NavigationError(InstaleadsError):
    """Navigation or DOM wait failed."""

    code = "ERR_NET_001"


class NavigationTimeoutError(NavigationError):
    """Selector or navigation wait timed out."""


class TransientNavigationError(NavigationError):
    """Known race from navigating away mid-evaluation; safe to retry."""


class SearchTimeoutError(NavigationError):
    """Initial query submission did not produce a results page."""

    code = "ERR_SEARCH_003"
    action = "Check your connection or try again."


class ProfileFetchError(InstaleadsError):
    """Profile page could not be fetched or parsed."""


class ProfileNotFoundError(ProfileFetchError):
    """Profile does not exist or exposes no username."""


class LoginWallError(ProfileFetchError):
    """Profile page is hidden behind a login form."""


class ParseError(InstaleadsError):
    """Failed to parse page content."""


class SessionStoreError(InstaleadsError):
    """Session storage operation failed."""


class ConfigError(InstaleadsError):
    """Invalid configuration."""
