from __future__ import annotations

from datetime import timedelta

import pytest

from bidboard.config import Config
from bidboard.errors import InvalidStatus, NotFound
from bidboard.models import DRAFT, LOST, WON
from bidboard.pricing import grand_total
from bidboard.seed import sample_store


def test_seeded_totals_match_line_items(store):
    for estimate in store.list():
        assert estimate.total == pytest.approx(grand_total(estimate.line_items, estimate.margin, estimate.tax))
    assert store.get("est1").total == pytest.approx(85200)


def test_create_estimate_defaults(store, clock):
    estimate = store.create_estimate()
    assert estimate.status == DRAFT
    assert estimate.line_items == ()
    assert (estimate.margin, estimate.tax) == (15, 8.5)
    assert estimate.total == 0
    assert estimate.customer_id == "c1"
    assert estimate.name == "New Project Proposal"
    assert estimate.location == "Tulsa, OK"
    assert estimate.due_date == estimate.updated_at.date() + timedelta(days=7)
    assert store.list()[0].id == estimate.id
    assert estimate.id in store


def test_create_estimate_uses_config(clock):
    store = sample_store(clock=clock, config=Config(default_margin=20, default_tax=0, due_in_days=14))
    estimate = store.create_estimate("c2")
    assert (estimate.margin, estimate.tax, estimate.customer_id) == (20, 0, "c2")
    assert estimate.due_date == estimate.updated_at.date() + timedelta(days=14)


def test_builder_flow_keeps_totals_consistent(store):
    estimate = store.create_estimate()
    estimate = store.add_line_item(estimate.id, {"name": "Demolition", "rate": 12000})
    item_id = estimate.line_items[0].id
    estimate = store.add_line_item(estimate.id, {"name": "Concrete", "qty": 450, "rate": 85})
    assert estimate.total == pytest.approx(62699.4375)

    estimate = store.update_line_item(estimate.id, item_id, {"qty": 2})
    assert estimate.line_items[0].amount == 24000
    assert store.get(estimate.id) is estimate
    assert estimate.total == pytest.approx(grand_total(estimate.line_items, 15, 8.5))

    estimate = store.remove_line_item(estimate.id, item_id)
    assert [item.name for item in estimate.line_items] == ["Concrete"]
    assert estimate.total == pytest.approx(grand_total(estimate.line_items, 15, 8.5))


def test_every_mutation_bumps_updated_at(store):
    before = store.get("est3")
    after_status = store.set_status("est3", "Submitted")
    after_fields = store.set_estimate_fields("est3", {"memo": "Revised"})
    after_add = store.add_line_item("est3")
    assert before.updated_at < after_status.updated_at < after_fields.updated_at < after_add.updated_at


def test_edits_from_two_surfaces_compose(store):
    store.set_status("est2", WON)
    store.update_line_item("est2", "l3", {"qty": 10})
    latest = store.get("est2")
    assert latest.status == WON
    assert latest.find_item("l3").amount == 85000


def test_previous_snapshots_are_untouched(store):
    before = store.get("est1")
    store.update_line_item("est1", "l1", {"rate": 1})
    assert before.find_item("l1").rate == 12000
    assert store.get("est1").find_item("l1").rate == 1


def test_bulk_import_through_store(store):
    updated = store.bulk_import("est3", [{"name": "Insulation"}, {}])
    assert [item.name for item in updated.line_items][-2:] == ["Insulation", "Extracted Item"]


def test_unknown_estimate_is_ignored_by_default(store, caplog):
    assert store.set_status("nope", LOST) is None
    assert store.add_line_item("nope") is None
    assert "not found" in caplog.text
    assert "nope" not in store


def test_unknown_item_returns_current_snapshot(store):
    current = store.get("est1")
    assert store.remove_line_item("est1", "missing") is current


def test_strict_lookups_raise(clock):
    store = sample_store(clock=clock, config=Config(strict_lookups=True))
    with pytest.raises(NotFound):
        store.set_status("nope", LOST)
    with pytest.raises(NotFound):
        store.update_line_item("est1", "missing", {"qty": 1})


def test_invalid_status_is_rejected_before_lookup(store):
    with pytest.raises(InvalidStatus):
        store.set_status("est1", "Pending")
    assert store.get("est1").status == WON


def test_customer_lookup_tolerates_unknown(store):
    estimate = store.create_estimate("c-missing")
    assert store.customer_for(estimate) is None
    assert store.customer_for(store.get("est2")).name == "Manhattan Construction"
    assert len(store.customers) == 4
