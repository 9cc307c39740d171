"""Prompt templates and response schemas for the AI assistant."""
from __future__ import annotations

from typing import Dict, Iterable, Sequence

from ..models import Customer, Estimate

AUDIT_PROMPT = (
    "As an expert construction estimator and project risk manager, analyze the following "
    "estimate and provide a detailed audit.\n\n"
    "Project Name: {name}\n"
    "Location: {location}\n"
    "Total Amount: ${total}\n"
    "Line Items:\n{line_items}\n\n"
    "Exclusions: {exclusions}\n"
    "Memo: {memo}\n\n"
    "Identify potential risks (under-budgeting, missing scope), suggest recommendations, and "
    "provide an overall confidence score (0-100) for the bid's accuracy and competitiveness."
)

SUGGESTIONS_PROMPT = (
    "As an expert construction estimator, suggest 5-8 missing or complementary materials/labor "
    "items for the following project.\n\n"
    "Project Name: {name}\n"
    "Project Location: {location}\n"
    "Current Scope:\n{scope}\n\n"
    "Consider standard construction practices for this type of project.\n"
    "Provide realistic suggested quantities and rates based on typical market averages."
)

DOCUMENT_PROMPT = (
    "Extract construction line items from this document (invoice, quote, or site note).\n"
    "For each item, identify:\n"
    "1. Name/Title\n"
    "2. Detailed Description\n"
    "3. Quantity\n"
    "4. Unit Rate (Cost per unit)\n\n"
    "Return a list of items. If a value is missing, use reasonable defaults (Qty: 1, Rate: 0)."
)

SITE_REPORT_PROMPT = (
    "Generate a professional construction site daily report based on the following observations "
    'and/or image:\nUser Input: "{notes}"\n\n'
    "If an image is provided, analyze it for work in progress, safety hazards, and material usage.\n\n"
    "The report should include:\n"
    "1. Project Name (infer from context or provide a generic placeholder)\n"
    "2. Work Completed (array of items)\n"
    "3. Materials Used (array of items)\n"
    "4. Issues or Delays (array of items)\n"
    "5. Weather observations (infer if possible or use generic placeholder)\n"
    "6. Safety Observations (summarize findings)\n"
    "7. Overall Summary (1-2 sentences)"
)

SALES_SYSTEM_PROMPT = (
    'You are the "Closing Specialist," a world-class construction sales strategist.\n'
    "Your mission is to help the user win more projects, improve client relationships, and "
    "negotiate better margins.\n\n"
    "Current Portfolio Context:\n"
    "- Active Bids: {bid_count}\n"
    "- Total Pipeline Value: ${pipeline_value:,.0f}\n"
    "- Key Clients: {clients}\n\n"
    "Available Data (Project Details):\n{projects}\n\n"
    "Rules:\n"
    "1. Be professional, aggressive yet ethical, and highly strategic.\n"
    "2. Give specific advice based on the project names or client names if mentioned.\n"
    "3. Offer tactical tips for construction bidding (e.g., follow-up cadences, "
    '"value engineering" as a sales hook).\n'
    "4. Use bold text and bullet points for readability."
)

MARKET_QUERY = "Current construction material costs and labor rates in {location} for: {items}."


def _string_list(description: str) -> Dict[str, object]:
    return {"type": "array", "items": {"type": "string"}, "description": description}


def _object(properties: Dict[str, object]) -> Dict[str, object]:
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


AUDIT_SCHEMA = _object(
    {
        "score": {"type": "number", "description": "Confidence score 0-100"},
        "summary": {"type": "string", "description": "One-paragraph executive summary"},
        "risks": _string_list("List of identified risks"),
        "recommendations": _string_list("Actionable recommendations"),
    }
)

SUGGESTIONS_SCHEMA = _object(
    {
        "suggestions": {
            "type": "array",
            "items": _object(
                {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "suggestedQty": {"type": "number"},
                    "suggestedRate": {"type": "number"},
                    "reason": {"type": "string"},
                }
            ),
        }
    }
)

DOCUMENT_SCHEMA = _object(
    {
        "items": {
            "type": "array",
            "items": _object(
                {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "qty": {"type": "number"},
                    "rate": {"type": "number"},
                }
            ),
        }
    }
)

SITE_REPORT_SCHEMA = _object(
    {
        "projectName": {"type": "string"},
        "workCompleted": _string_list("Work completed"),
        "materialsUsed": _string_list("Materials used"),
        "issues": _string_list("Issues or delays"),
        "weather": {"type": "string"},
        "safetyObservations": {"type": "string"},
        "summary": {"type": "string"},
    }
)


def _amount(value: float) -> str:
    return f"{value:g}" if float(value).is_integer() else f"{value:.2f}"


def audit_prompt(estimate: Estimate) -> str:
    lines = "\n".join(
        f"- {item.name}: {_amount(item.qty)} units @ ${_amount(item.rate)} each (Total: ${_amount(item.amount)})"
        for item in estimate.line_items
    )
    return AUDIT_PROMPT.format(
        name=estimate.name,
        location=estimate.location,
        total=_amount(estimate.total),
        line_items=lines,
        exclusions=estimate.exclusions or "None provided",
        memo=estimate.memo or "None provided",
    )


def suggestions_prompt(estimate: Estimate) -> str:
    scope = "\n".join(f"- {item.name}: {item.description}" for item in estimate.line_items)
    return SUGGESTIONS_PROMPT.format(name=estimate.name, location=estimate.location, scope=scope)


def site_report_prompt(notes: str) -> str:
    return SITE_REPORT_PROMPT.format(notes=notes)


def sales_system_prompt(estimates: Sequence[Estimate], customers: Iterable[Customer]) -> str:
    projects = "\n".join(
        f"- Project: {est.name}, Status: {est.status}, Value: ${_amount(est.total)}" for est in estimates
    )
    return SALES_SYSTEM_PROMPT.format(
        bid_count=len(estimates),
        pipeline_value=sum(est.total for est in estimates),
        clients=", ".join(customer.name for customer in customers),
        projects=projects,
    )


def market_query(estimate: Estimate) -> str:
    names = ", ".join(item.name for item in estimate.line_items[:3])
    return MARKET_QUERY.format(location=estimate.location, items=names)


__all__ = [
    "AUDIT_SCHEMA",
    "SUGGESTIONS_SCHEMA",
    "DOCUMENT_SCHEMA",
    "SITE_REPORT_SCHEMA",
    "DOCUMENT_PROMPT",
    "audit_prompt",
    "suggestions_prompt",
    "site_report_prompt",
    "sales_system_prompt",
    "market_query",
]
