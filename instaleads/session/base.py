"""Abstract browser session store interface."""

from abc import ABC, abstractmethod
from enum import Enum


class Platform(str, Enum):
    """Site whose cookies and local storage are persisted."""
    GOOGLE = "google"
    INSTAGRAM = "instagram"


class SessionStore(ABC):
    """Persists Playwright storage state per platform between runs."""

    @abstractmethod
    async def get(self, platform: Platform) -> dict | None:
        """
        Retrieve stored storage state.

        Args:
            platform: Platform the state belongs to

        Returns:
            Playwright storage state dict, or None if missing/expired
        """
        ...

    @abstractmethod
    async def set(self, platform: Platform, state: dict, ttl_seconds: int | None = None) -> None:
        """
        Store storage state.

        Args:
            platform: Platform the state belongs to
            state: Playwright storage state ({"cookies": [...], "origins": [...]})
            ttl_seconds: Optional TTL override
        """
        ...

    @abstractmethod
    async def invalidate(self, platform: Platform) -> None:
        """Remove the stored state for one platform."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Remove every stored session."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Cleanup connections and resources."""
        ...

    async def __aenter__(self) -> "SessionStore":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
