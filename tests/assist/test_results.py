from __future__ import annotations

import json

import pytest

from bidboard.assist.results import (
    parse_extracted_items,
    parse_insight,
    parse_site_report,
    parse_suggestions,
)
from bidboard.errors import AIServiceError


def test_parse_insight():
    insight = parse_insight(
        json.dumps({"score": 72, "summary": "Reasonable", "risks": ["Steel lead time"], "recommendations": []})
    )
    assert insight.score == 72
    assert insight.risks == ["Steel lead time"]


@pytest.mark.parametrize(
    "payload",
    [
        None,
        "   ",
        "not json",
        "[1, 2]",
        json.dumps({"score": 140, "summary": "", "risks": [], "recommendations": []}),
        json.dumps({"score": "high", "summary": "", "risks": [], "recommendations": []}),
        json.dumps({"score": 50, "summary": "", "risks": "none", "recommendations": []}),
        json.dumps({"summary": "", "risks": [], "recommendations": []}),
    ],
)
def test_parse_insight_rejects_bad_replies(payload):
    with pytest.raises(AIServiceError):
        parse_insight(payload)


def test_parse_suggestions_reads_camel_case_keys():
    items = parse_suggestions(
        json.dumps(
            {
                "suggestions": [
                    {
                        "name": "Vapor Barrier",
                        "description": "10 mil",
                        "suggestedQty": 5000,
                        "suggestedRate": 0.35,
                        "reason": "Slab on grade",
                    }
                ]
            }
        )
    )
    assert len(items) == 1
    assert (items[0].suggested_qty, items[0].suggested_rate) == (5000, 0.35)


def test_parse_suggestions_missing_field():
    with pytest.raises(AIServiceError):
        parse_suggestions(json.dumps({"suggestions": [{"name": "Only a name"}]}))


def test_parse_extracted_items_keeps_valid_fields_only():
    items = parse_extracted_items(
        json.dumps(
            {
                "items": [
                    {"name": "Rebar #5", "description": "Grade 60", "qty": 120, "rate": 14.5},
                    {"name": 7, "qty": "twelve", "rate": True},
                    {"description": "Anchor bolts"},
                ]
            }
        )
    )
    assert items == [
        {"name": "Rebar #5", "description": "Grade 60", "qty": 120.0, "rate": 14.5},
        {},
        {"description": "Anchor bolts"},
    ]


def test_parse_extracted_items_requires_item_list():
    with pytest.raises(AIServiceError):
        parse_extracted_items(json.dumps({"items": "none"}))


def test_parse_site_report():
    draft = parse_site_report(
        json.dumps(
            {
                "projectName": "QuikTrip #402",
                "workCompleted": ["Poured footings"],
                "materialsUsed": ["12 CY concrete"],
                "issues": [],
                "weather": "Clear, 78F",
                "safetyObservations": "All PPE in use",
                "summary": "Footings complete.",
            }
        )
    )
    assert draft.project_name == "QuikTrip #402"
    assert draft.issues == []
    assert draft.safety_observations == "All PPE in use"


def test_parse_insight_rejects_fields_outside_the_schema():
    reply = json.dumps({"score": 50, "summary": "x", "risks": [], "recommendations": [], "bogus": 1})
    with pytest.raises(AIServiceError, match="schema"):
        parse_insight(reply)


def test_parse_suggestions_rejects_boolean_quantities():
    entry = {"name": "Saw cutting", "description": "", "suggestedQty": True, "suggestedRate": 1.1, "reason": ""}
    with pytest.raises(AIServiceError):
        parse_suggestions(json.dumps({"suggestions": [entry]}))


def test_parse_site_report_rejects_non_text_issues():
    reply = {
        "projectName": "Annex",
        "workCompleted": [],
        "materialsUsed": [],
        "issues": [3],
        "weather": "Rain",
        "safetyObservations": "",
        "summary": "",
    }
    with pytest.raises(AIServiceError):
        parse_site_report(json.dumps(reply))
