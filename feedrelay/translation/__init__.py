"""
FeedRelay Translation Module
============================

Translation providers and the chunking wrapper that keeps each remote
call within the provider's size limit.
"""

from .base import TranslationProvider
from .yandex_provider import YandexTranslateProvider
from .chunked_translator import ChunkedTranslator, split_into_chunks

__all__ = [
    "TranslationProvider",
    "YandexTranslateProvider",
    "ChunkedTranslator",
    "split_into_chunks",
]
