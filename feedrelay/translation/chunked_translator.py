"""
Chunked Translator
==================

Splits text into provider-sized chunks and translates them one at a time,
in order. Any chunk failure fails the whole translation.
"""

from typing import List

from .base import TranslationProvider
from ..utils.exceptions import ConfigurationError, TranslationError, ErrorCode
from ..utils.logging import get_logger_for_component


def split_into_chunks(text: str, max_chunk: int) -> List[str]:
    """Split ``text`` into contiguous slices of at most ``max_chunk`` characters.

    Concatenating the result yields ``text`` again. Empty text gives ``[]``.
    """
    if max_chunk < 1:
        raise ValueError(f"max_chunk must be at least 1, got {max_chunk}")
    return [text[i:i + max_chunk] for i in range(0, len(text), max_chunk)]


class ChunkedTranslator:
    """Size-limited, sequential translation over a provider."""

    def __init__(self, provider: TranslationProvider, max_chunk: int = 10000):
        if max_chunk < 1:
            raise ValueError(f"max_chunk must be at least 1, got {max_chunk}")
        self.provider = provider
        self.max_chunk = max_chunk
        self.logger = get_logger_for_component("translator")

    async def translate(self, text: str) -> str:
        """Translate ``text`` of any length.

        Raises:
            ConfigurationError: If the provider has no credentials; no remote call is made
            TranslationError: If any chunk fails; carries ``chunk_index`` and ``chunk_count``
        """
        if not self.provider.is_configured():
            raise ConfigurationError(
                f"Translation provider '{self.provider.provider_name}' is missing credentials",
                config_key="translation",
                error_code=ErrorCode.CONFIG_MISSING,
            )

        chunks = split_into_chunks(text, self.max_chunk)
        if not chunks:
            return ""

        translated = []
        for index, chunk in enumerate(chunks):
            try:
                translated.append(await self.provider.translate(chunk))
            except TranslationError as e:
                self.logger.warning(f"Chunk {index + 1}/{len(chunks)} failed: {e}")
                raise TranslationError(
                    f"Translation failed at chunk {index + 1}/{len(chunks)}: {e}",
                    provider=self.provider.provider_name,
                    chunk_index=index,
                    error_code=e.error_code,
                    recoverable=e.recoverable,
                    context={**e.context, "chunk_count": len(chunks)},
                ) from e

        if len(chunks) > 1:
            self.logger.debug(f"Translated {len(text)} characters in {len(chunks)} chunks")

        return "".join(translated)
