"""AI assistance for the bid board: audits, suggestions, scans, reports and sales advice."""

from .config import AIConfig, RetryPolicy
from .client import BidAssistant
from .results import (
    AIInsight,
    ChatMessage,
    MarketInsight,
    MarketSource,
    SiteReport,
    SiteReportDraft,
    SuggestedItem,
)

__all__ = [
    "AIConfig",
    "RetryPolicy",
    "BidAssistant",
    "AIInsight",
    "ChatMessage",
    "MarketInsight",
    "MarketSource",
    "SiteReport",
    "SiteReportDraft",
    "SuggestedItem",
]
