"""
Yandex Cloud Translate Provider
===============================

Translation through the Yandex Cloud Translate v2 REST API.
"""

import asyncio
import json
from typing import Optional

import aiohttp

from .base import TranslationProvider
from ..utils.exceptions import TranslationError, ErrorCode
from ..utils.logging import get_logger_for_component


class YandexTranslateProvider(TranslationProvider):
    """Yandex Cloud Translate v2 provider."""

    provider_name = "yandex"

    DEFAULT_ENDPOINT = "https://translate.api.cloud.yandex.net/translate/v2/translate"

    # Statuses worth trying again on a later run
    RECOVERABLE_STATUSES = {429, 500, 502, 503, 504}

    def __init__(
        self,
        api_key: Optional[str],
        folder_id: Optional[str],
        target_language: str = "ru",
        timeout: int = 30,
        endpoint: str = DEFAULT_ENDPOINT,
    ):
        """Initialize Yandex provider.

        Args:
            api_key: Yandex Cloud API key
            folder_id: Yandex Cloud folder ID billed for the requests
            target_language: Target language code
            timeout: Request timeout in seconds
            endpoint: Translate API endpoint
        """
        self.api_key = api_key
        self.folder_id = folder_id
        self.target_language = target_language
        self.timeout = timeout
        self.endpoint = endpoint
        self.logger = get_logger_for_component("yandex_provider")

        # HTTP session for connection reuse
        self._session: Optional[aiohttp.ClientSession] = None

    def is_configured(self) -> bool:
        return bool(self.api_key) and bool(self.folder_id)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def translate(self, text: str) -> str:
        """Translate ``text`` into the target language."""
        headers = {
            "Authorization": f"Api-Key {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "folder_id": self.folder_id,
            "texts": [text],
            "targetLanguageCode": self.target_language,
        }

        try:
            session = self._get_session()
            async with session.post(self.endpoint, headers=headers, json=payload) as response:
                body = await response.text()
                if response.status != 200:
                    raise self._status_error(response.status, body)

        except asyncio.TimeoutError as e:
            raise TranslationError(
                f"Yandex request timeout after {self.timeout}s",
                provider=self.provider_name,
                error_code=ErrorCode.AI_TIMEOUT,
            ) from e

        except aiohttp.ClientError as e:
            raise TranslationError(
                f"Yandex connection error: {e}",
                provider=self.provider_name,
                error_code=ErrorCode.AI_CONNECTION_ERROR,
            ) from e

        return self._parse_response(body)

    def _parse_response(self, body: str) -> str:
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise TranslationError(
                f"Yandex returned undecodable response: {e}",
                provider=self.provider_name,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
                recoverable=False,
            ) from e

        translations = data.get("translations") if isinstance(data, dict) else None
        if not isinstance(translations, list) or not translations:
            raise TranslationError(
                "Yandex response contains no translations",
                provider=self.provider_name,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
                recoverable=False,
            )

        first = translations[0]
        text = first.get("text") if isinstance(first, dict) else None
        if not isinstance(text, str):
            raise TranslationError(
                "Yandex response has malformed translation entry",
                provider=self.provider_name,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
                recoverable=False,
            )
        return text

    def _status_error(self, status: int, body: str) -> TranslationError:
        detail = body[:200]
        if status in (401, 403):
            return TranslationError(
                f"Yandex authentication failed (HTTP {status}): {detail}",
                provider=self.provider_name,
                error_code=ErrorCode.AI_AUTHENTICATION,
                recoverable=False,
            )
        if status == 429:
            return TranslationError(
                f"Yandex rate limit exceeded: {detail}",
                provider=self.provider_name,
                error_code=ErrorCode.AI_RATE_LIMIT,
                recoverable=True,
            )
        return TranslationError(
            f"Yandex API error {status}: {detail}",
            provider=self.provider_name,
            error_code=ErrorCode.AI_API_ERROR,
            recoverable=status in self.RECOVERABLE_STATUSES,
        )

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
