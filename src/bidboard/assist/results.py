"""Typed results returned by the AI assistant, and their parsers.

Replies are checked with jsonschema against the same schemas the requests
ask for. Parsers raise :class:`~bidboard.errors.AIServiceError` for replies
that are not JSON or do not validate.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator, ValidationError

from ..errors import AIServiceError
from .prompts import AUDIT_SCHEMA, SITE_REPORT_SCHEMA, SUGGESTIONS_SCHEMA

LOGGER = logging.getLogger(__name__)

USER = "user"
MODEL = "model"

MARKET_SOURCE_TITLE = "Market Source"
NO_MARKET_INTELLIGENCE = "No detailed market intelligence found for this specific query."


@dataclass(frozen=True)
class AIInsight:
    score: float
    summary: str
    risks: List[str]
    recommendations: List[str]


@dataclass(frozen=True)
class SuggestedItem:
    name: str
    description: str
    suggested_qty: float
    suggested_rate: float
    reason: str


@dataclass(frozen=True)
class SiteReportDraft:
    project_name: str
    work_completed: List[str]
    materials_used: List[str]
    issues: List[str]
    weather: str
    safety_observations: str
    summary: str


@dataclass(frozen=True)
class SiteReport:
    id: str
    created_at: datetime
    project_name: str
    work_completed: List[str]
    materials_used: List[str]
    issues: List[str]
    weather: str
    safety_observations: str
    summary: str

    @classmethod
    def from_draft(cls, draft: SiteReportDraft, *, report_id: str, created_at: datetime) -> "SiteReport":
        return cls(
            id=report_id,
            created_at=created_at,
            project_name=draft.project_name,
            work_completed=list(draft.work_completed),
            materials_used=list(draft.materials_used),
            issues=list(draft.issues),
            weather=draft.weather,
            safety_observations=draft.safety_observations,
            summary=draft.summary,
        )


@dataclass(frozen=True)
class MarketSource:
    title: str
    uri: str


@dataclass(frozen=True)
class MarketInsight:
    text: str
    sources: List[MarketSource] = field(default_factory=list)


@dataclass
class ChatMessage:
    role: str
    text: str
    timestamp: datetime


# Extraction replies are filtered field by field, so only the envelope is checked.
EXTRACTION_ENVELOPE: Dict[str, object] = {
    "type": "object",
    "properties": {"items": {"type": "array", "items": {"type": "object"}}},
    "required": ["items"],
}

_VALIDATORS = {
    "audit": Draft7Validator(AUDIT_SCHEMA),
    "suggestions": Draft7Validator(SUGGESTIONS_SCHEMA),
    "document extraction": Draft7Validator(EXTRACTION_ENVELOPE),
    "site report": Draft7Validator(SITE_REPORT_SCHEMA),
}


def load_json(text: Optional[str], what: str) -> object:
    if not text or not text.strip():
        raise AIServiceError(f"AI returned an empty {what} response")
    try:
        return json.loads(text.strip())
    except json.JSONDecodeError as exc:
        raise AIServiceError(f"Invalid AI response format for {what}") from exc


def validate_reply(text: Optional[str], what: str) -> Dict[str, Any]:
    """Decode a structured reply and check it against the schema sent with the request."""
    payload = load_json(text, what)
    try:
        _VALIDATORS[what].validate(payload)
    except ValidationError as exc:
        LOGGER.debug("Rejected %s reply: %s", what, exc)
        raise AIServiceError(f"AI {what} response does not match its schema: {exc.message}") from exc
    return payload  # type: ignore[return-value]


def parse_insight(text: Optional[str]) -> AIInsight:
    data = validate_reply(text, "audit")
    score = float(data["score"])
    if not 0 <= score <= 100:
        raise AIServiceError(f"AI audit score out of range: {score}")
    return AIInsight(
        score=score,
        summary=data["summary"],
        risks=list(data["risks"]),
        recommendations=list(data["recommendations"]),
    )


def parse_suggestions(text: Optional[str]) -> List[SuggestedItem]:
    data = validate_reply(text, "suggestions")
    return [
        SuggestedItem(
            name=entry["name"],
            description=entry["description"],
            suggested_qty=float(entry["suggestedQty"]),
            suggested_rate=float(entry["suggestedRate"]),
            reason=entry["reason"],
        )
        for entry in data["suggestions"]
    ]


def parse_extracted_items(text: Optional[str]) -> List[Dict[str, object]]:
    """Partial line items; absent or malformed fields are left for the defaults."""
    data = validate_reply(text, "document extraction")
    items: List[Dict[str, object]] = []
    for entry in data["items"]:
        partial: Dict[str, object] = {}
        for key in ("name", "description"):
            if isinstance(entry.get(key), str):
                partial[key] = entry[key]
        for key in ("qty", "rate"):
            value = entry.get(key)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                partial[key] = float(value)
        items.append(partial)
    return items


def parse_site_report(text: Optional[str]) -> SiteReportDraft:
    data = validate_reply(text, "site report")
    return SiteReportDraft(
        project_name=data["projectName"],
        work_completed=list(data["workCompleted"]),
        materials_used=list(data["materialsUsed"]),
        issues=list(data["issues"]),
        weather=data["weather"],
        safety_observations=data["safetyObservations"],
        summary=data["summary"],
    )


__all__ = [
    "AIInsight",
    "SuggestedItem",
    "SiteReportDraft",
    "SiteReport",
    "MarketSource",
    "MarketInsight",
    "ChatMessage",
    "USER",
    "MODEL",
    "MARKET_SOURCE_TITLE",
    "NO_MARKET_INTELLIGENCE",
    "load_json",
    "validate_reply",
    "EXTRACTION_ENVELOPE",
    "parse_insight",
    "parse_suggestions",
    "parse_extracted_items",
    "parse_site_report",
]
