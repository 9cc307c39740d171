"""OpenAI-backed assistant for audits, scope suggestions, scans and sales advice."""
from __future__ import annotations

import base64
import logging
import time
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

import openai
from openai import OpenAI

from ..errors import AIServiceError
from ..models import Customer, Estimate
from . import prompts
from .config import AIConfig
from .results import (
    MARKET_SOURCE_TITLE,
    NO_MARKET_INTELLIGENCE,
    USER,
    AIInsight,
    ChatMessage,
    MarketInsight,
    MarketSource,
    SiteReportDraft,
    SuggestedItem,
    parse_extracted_items,
    parse_insight,
    parse_site_report,
    parse_suggestions,
)
from .retry import CircuitBreaker, CircuitBreakerOpen, execute_with_retry

LOGGER = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME = "image/jpeg"

# Transient failures worth another attempt; APITimeoutError is an APIConnectionError.
RETRYABLE_ERRORS = (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError)


class BidAssistant:
    """Coordinates AI calls for the bid board.

    Every public method either returns a typed result or raises
    :class:`~bidboard.errors.AIServiceError`.
    """

    def __init__(
        self,
        config: AIConfig,
        client: Any = None,
        *,
        sleeper: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self._client = client
        self._sleeper = sleeper
        self._breaker = CircuitBreaker(config.retry.circuit_breaker_failures, name=f"{config.provider} assistant")

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = self._build_client()
        return self._client

    def _build_client(self) -> Any:
        cfg = self.config
        if not cfg.enabled:
            raise AIServiceError("AI assistance is disabled in configuration")
        api_key = cfg.resolve_api_key()
        if not api_key:
            LOGGER.warning(
                "AI assistance enabled but API key unavailable; expected at %s or via %s",
                cfg.api_key_path,
                cfg.api_key_env,
            )
            raise AIServiceError("AI API key is not configured")
        try:
            return OpenAI(api_key=api_key, base_url=cfg.base_url, max_retries=0)
        except openai.OpenAIError as exc:
            raise AIServiceError(f"Failed to initialise OpenAI client: {exc}") from exc

    def _call(self, description: str, **request: Any) -> Any:
        client = self.client

        def _send(timeout: float) -> Any:
            return client.responses.create(timeout=timeout, **request)

        try:
            return execute_with_retry(
                _send,
                policy=self.config.retry,
                description=description,
                logger=LOGGER,
                breaker=self._breaker,
                retry_on=RETRYABLE_ERRORS,
                sleeper=self._sleeper,
            )
        except CircuitBreakerOpen as exc:
            raise AIServiceError(str(exc)) from exc
        except Exception as exc:  # SDK, network and transport errors alike
            LOGGER.error("AI request failed for %s: %s", description, exc)
            raise AIServiceError(f"AI request failed for {description}") from exc

    def _structured(
        self, description: str, input_: Any, schema: Dict[str, object], schema_name: str
    ) -> Optional[str]:
        response = self._call(
            description,
            model=self.config.model,
            input=input_,
            max_output_tokens=self.config.max_output_tokens,
            text={"format": {"type": "json_schema", "name": schema_name, "schema": schema, "strict": True}},
        )
        return extract_response_text(response)

    def analyze_estimate(self, estimate: Estimate) -> AIInsight:
        text = self._structured("estimate audit", prompts.audit_prompt(estimate), prompts.AUDIT_SCHEMA, "audit")
        return parse_insight(text)

    def get_material_suggestions(self, estimate: Estimate) -> List[SuggestedItem]:
        text = self._structured(
            "material suggestions",
            prompts.suggestions_prompt(estimate),
            prompts.SUGGESTIONS_SCHEMA,
            "suggestions",
        )
        return parse_suggestions(text)

    def analyze_document_image(self, image_bytes: bytes, mime_type: str) -> List[Dict[str, object]]:
        content = [
            _image_part(image_bytes, mime_type or DEFAULT_IMAGE_MIME),
            {"type": "input_text", "text": prompts.DOCUMENT_PROMPT},
        ]
        text = self._structured(
            "document extraction",
            [{"role": "user", "content": content}],
            prompts.DOCUMENT_SCHEMA,
            "line_items",
        )
        return parse_extracted_items(text)

    def generate_site_report(
        self,
        notes: str,
        image_bytes: Optional[bytes] = None,
        mime_type: Optional[str] = None,
    ) -> SiteReportDraft:
        content: List[Dict[str, object]] = []
        if image_bytes:
            content.append(_image_part(image_bytes, mime_type or DEFAULT_IMAGE_MIME))
        content.append({"type": "input_text", "text": prompts.site_report_prompt(notes)})
        text = self._structured(
            "site report",
            [{"role": "user", "content": content}],
            prompts.SITE_REPORT_SCHEMA,
            "site_report",
        )
        return parse_site_report(text)

    def stream_sales_advice(
        self,
        history: Sequence[ChatMessage],
        estimates: Sequence[Estimate],
        customers: Sequence[Customer],
    ) -> Iterator[str]:
        """Yield reply chunks for the most recent user message."""
        last_user = next((msg for msg in reversed(history) if msg.role == USER), None)
        if last_user is None:
            return
        stream = self._call(
            "sales advice",
            model=self.config.chat_model,
            instructions=prompts.sales_system_prompt(estimates, customers),
            input=[{"role": "user", "content": last_user.text}],
            stream=True,
        )
        try:
            for event in stream:
                event_type = getattr(event, "type", "")
                if event_type == "response.output_text.delta":
                    delta = getattr(event, "delta", "")
                    if delta:
                        yield delta
                elif event_type in {"error", "response.failed"}:
                    raise AIServiceError("Sales advice stream reported a failure")
        except openai.OpenAIError as exc:
            LOGGER.error("Sales advice stream interrupted: %s", exc)
            raise AIServiceError("Sales advice stream interrupted") from exc

    def fetch_market_intelligence(self, estimate: Estimate) -> MarketInsight:
        response = self._call(
            "market intelligence",
            model=self.config.model,
            input=prompts.market_query(estimate),
            tools=[{"type": "web_search_preview"}],
        )
        text = extract_response_text(response)
        return MarketInsight(text=text or NO_MARKET_INTELLIGENCE, sources=extract_sources(response))


def _image_part(image_bytes: bytes, mime_type: str) -> Dict[str, object]:
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return {"type": "input_image", "image_url": f"data:{mime_type};base64,{encoded}"}


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def extract_response_text(response: object) -> Optional[str]:
    text: Optional[str] = None
    if hasattr(response, "output_text"):
        text = getattr(response, "output_text")
    elif hasattr(response, "choices"):
        choices = getattr(response, "choices")
        if choices:
            message = _get(choices[0], "message")
            if message is not None:
                text = _get(message, "content")
    if isinstance(text, list):
        # Some models return a list of content parts
        text = "\n".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in text)
    return text.strip() if text else None


def extract_sources(response: object) -> List[MarketSource]:
    """Collect web citations attached to the reply text."""
    sources: List[MarketSource] = []
    seen = set()
    for output in _get(response, "output", None) or []:
        for part in _get(output, "content", None) or []:
            for annotation in _get(part, "annotations", None) or []:
                if _get(annotation, "type") != "url_citation":
                    continue
                uri = _get(annotation, "url")
                if not uri or uri in seen:
                    continue
                seen.add(uri)
                sources.append(MarketSource(title=_get(annotation, "title") or MARKET_SOURCE_TITLE, uri=uri))
    return sources


__all__ = ["BidAssistant", "extract_response_text", "extract_sources", "RETRYABLE_ERRORS"]
