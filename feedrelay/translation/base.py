"""
Base Translation Provider Interface
===================================

Abstract base class for translation services.
"""

from abc import ABC, abstractmethod


class TranslationProvider(ABC):
    """Abstract base class for translation provider implementations."""

    provider_name: str = "unknown"

    @abstractmethod
    async def translate(self, text: str) -> str:
        """Translate a single piece of text.

        The caller guarantees ``text`` fits within the provider's size limit.

        Args:
            text: Source text

        Returns:
            Translated text

        Raises:
            TranslationError: If the service rejects the request or is unreachable
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Check whether credentials required for remote calls are present."""
        pass

    async def close(self) -> None:
        """Release network resources held by the provider."""
        return None
