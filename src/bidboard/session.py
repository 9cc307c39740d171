"""Per-user session state around the estimate store and the AI assistant.

AI results reach the store only through store operations, and every AI
failure is handled here: it is logged, turned into a short notice, and the
loading flag is cleared. Each request remembers the estimate that was active
when it was issued; when ``discard_stale_responses`` is set, a result that
arrives after the user switched to another estimate is dropped.
"""
from __future__ import annotations

import logging
import uuid
from typing import Callable, Dict, List, Optional, TypeVar

from .assist.client import BidAssistant
from .assist.results import (
    MODEL,
    USER,
    AIInsight,
    ChatMessage,
    MarketInsight,
    SiteReport,
    SuggestedItem,
)
from .errors import AIServiceError
from .models import Estimate, utc_now
from .store import Clock, EstimateStore

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

AUDIT = "audit"
SUGGESTIONS = "suggestions"
MARKET = "market"
SCAN = "scan"
REPORT = "report"
CHAT = "chat"

FAILURE_NOTICES: Dict[str, str] = {
    AUDIT: "AI Audit failed. Please try again.",
    SUGGESTIONS: "Failed to get suggestions.",
    MARKET: "Market search failed. Please verify location.",
    SCAN: "Failed to scan document. Please try a clearer image.",
    REPORT: "Failed to generate report.",
    CHAT: "I'm sorry, I hit a snag in my strategy analysis. Please try again.",
}

GREETING = (
    "Hello Foreman. I'm your Closing Specialist. Our current pipeline is looking strong. "
    "Which project should we focus on winning today?"
)


class BidSession:
    """Coordinates the active estimate, AI side panels and chat history."""

    def __init__(
        self,
        store: EstimateStore,
        assistant: BidAssistant,
        *,
        clock: Optional[Clock] = None,
        discard_stale_responses: Optional[bool] = None,
    ) -> None:
        self.store = store
        self.assistant = assistant
        self._clock = clock or utc_now
        if discard_stale_responses is None:
            discard_stale_responses = store.config.discard_stale_responses
        self.discard_stale_responses = discard_stale_responses
        self.active_id: Optional[str] = None
        self.insight: Optional[AIInsight] = None
        self.suggestions: Optional[List[SuggestedItem]] = None
        self.market: Optional[MarketInsight] = None
        self.extracted_items: List[Dict[str, object]] = []
        self.site_reports: List[SiteReport] = []
        self.messages: List[ChatMessage] = [ChatMessage(MODEL, GREETING, self._clock())]
        self.loading: Dict[str, bool] = {kind: False for kind in FAILURE_NOTICES}
        self.notice: Optional[str] = None

    @property
    def active(self) -> Optional[Estimate]:
        if self.active_id is None:
            return None
        return self.store.get(self.active_id)

    def reset_panels(self) -> None:
        self.insight = None
        self.suggestions = None
        self.market = None

    def select(self, estimate_id: str) -> Optional[Estimate]:
        self.active_id = estimate_id
        self.reset_panels()
        return self.active

    def create_estimate(self, customer_id: Optional[str] = None) -> Estimate:
        estimate = self.store.create_estimate(customer_id)
        self.select(estimate.id)
        return estimate

    def _request(self, kind: str, action: Callable[[], T]) -> Optional[T]:
        """Run one AI call, recovering from failure at this boundary."""
        self.loading[kind] = True
        self.notice = None
        try:
            return action()
        except AIServiceError as exc:
            LOGGER.error("AI %s request failed: %s", kind, exc)
            self.notice = FAILURE_NOTICES[kind]
            return None
        finally:
            self.loading[kind] = False

    def _is_stale(self, kind: str, target_id: str) -> bool:
        if self.active_id == target_id:
            return False
        if not self.discard_stale_responses:
            LOGGER.warning("Applying %s result for %s while %s is active", kind, target_id, self.active_id)
            return False
        LOGGER.warning("Discarding stale %s result for %s; %s is now active", kind, target_id, self.active_id)
        return True

    def _estimate_request(self, kind: str, call: Callable[[Estimate], T]) -> Optional[T]:
        estimate = self.active
        if estimate is None:
            return None
        self.reset_panels()
        result = self._request(kind, lambda: call(estimate))
        if result is None or self._is_stale(kind, estimate.id):
            return None
        return result

    def run_audit(self) -> Optional[AIInsight]:
        self.insight = self._estimate_request(AUDIT, self.assistant.analyze_estimate)
        return self.insight

    def fetch_suggestions(self) -> Optional[List[SuggestedItem]]:
        self.suggestions = self._estimate_request(SUGGESTIONS, self.assistant.get_material_suggestions)
        return self.suggestions

    def fetch_market_intelligence(self) -> Optional[MarketInsight]:
        self.market = self._estimate_request(MARKET, self.assistant.fetch_market_intelligence)
        return self.market

    def accept_suggestion(self, index: int) -> Optional[Estimate]:
        """Add a suggested item to the active estimate and drop it from the panel."""
        if self.active_id is None or not self.suggestions:
            return None
        if not 0 <= index < len(self.suggestions):
            LOGGER.warning("No suggestion at position %d; %d available", index, len(self.suggestions))
            return None
        suggestion = self.suggestions[index]
        updated = self.store.add_suggested_item(self.active_id, suggestion)
        self.suggestions = [item for i, item in enumerate(self.suggestions) if i != index]
        return updated

    def scan_document(self, image_bytes: bytes, mime_type: str) -> List[Dict[str, object]]:
        items = self._request(SCAN, lambda: self.assistant.analyze_document_image(image_bytes, mime_type))
        if items is not None:
            self.extracted_items = items
        return self.extracted_items

    def import_extracted(self, estimate_id: str) -> Optional[Estimate]:
        """Import the scanned items into ``estimate_id`` and open it."""
        updated = self.store.bulk_import(estimate_id, self.extracted_items)
        if updated is None:
            return None
        self.extracted_items = []
        self.select(estimate_id)
        return updated

    def generate_site_report(
        self,
        notes: str,
        image_bytes: Optional[bytes] = None,
        mime_type: Optional[str] = None,
    ) -> Optional[SiteReport]:
        if not notes.strip() and not image_bytes:
            return None
        draft = self._request(REPORT, lambda: self.assistant.generate_site_report(notes, image_bytes, mime_type))
        if draft is None:
            return None
        report = SiteReport.from_draft(draft, report_id=uuid.uuid4().hex[:9], created_at=self._clock())
        self.site_reports.insert(0, report)
        return report

    def ask_sales_assistant(self, text: str) -> Optional[ChatMessage]:
        """Send a chat message and accumulate the streamed reply into one message."""
        if not text.strip() or self.loading[CHAT]:
            return None
        self.messages.append(ChatMessage(USER, text, self._clock()))
        history = list(self.messages)
        reply = ChatMessage(MODEL, "", self._clock())
        self.messages.append(reply)
        self.loading[CHAT] = True
        try:
            for chunk in self.assistant.stream_sales_advice(history, self.store.list(), self.store.customers):
                reply.text += chunk
        except AIServiceError as exc:
            LOGGER.error("Sales assistant stream failed: %s", exc)
            reply = ChatMessage(MODEL, FAILURE_NOTICES[CHAT], self._clock())
            self.messages[-1] = reply
        finally:
            self.loading[CHAT] = False
        return reply


__all__ = ["BidSession", "FAILURE_NOTICES", "GREETING"]
