"""
FeedRelay Processing Module
===========================

The new-item pipeline and the text summarizer it uses.
"""

from .summarizer import summarize, limit_text
from .pipeline import NewItemPipeline

__all__ = [
    "summarize",
    "limit_text",
    "NewItemPipeline",
]
