"""Sample clients and bids used by the CLI demo and the test-suite."""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import List, Optional

from .config import Config
from .models import DRAFT, SUBMITTED, WON, Customer, Estimate, LineItem, utc_now
from .store import Clock, EstimateStore


def sample_customers() -> List[Customer]:
    return [
        Customer("c1", "QuikTrip Corp", "Owner", email="bids@quiktrip.com", phone="918-615-7000"),
        Customer("c2", "Manhattan Construction", "GC", email="estimating@manhattan.com", phone="918-555-0100"),
        Customer("c3", "Legacy Development", "Developer", phone="918-222-3333"),
        Customer("c4", "Flintco, LLC", "GC", email="tulsa.bids@flintco.com", phone="918-587-8451"),
    ]


def sample_estimates(now: Optional[datetime] = None) -> List[Estimate]:
    now = now or utc_now()
    return [
        Estimate.create(
            estimate_id="est1",
            name="QuikTrip #1245 Remodel",
            customer_id="c1",
            location="Bixby, OK",
            status=WON,
            due_date=date(2024, 6, 15),
            memo="Full interior remodel including cold storage expansion.",
            exclusions="Permits and fees, landscape repair.",
            line_items=(
                LineItem.build("Demolition", "Internal walls and slab", 1, 12000, item_id="l1"),
                LineItem.build("Concrete", "Pad reinforcement", 450, 85, item_id="l2"),
                LineItem.build("Interior Finishes", "Painting and wall protection", 1, 34950, item_id="l5"),
            ),
            updated_at=now - timedelta(days=2),
        ),
        Estimate.create(
            estimate_id="est2",
            name="City Hall Annex",
            customer_id="c2",
            location="Tulsa, OK",
            status=SUBMITTED,
            due_date=date(2024, 7, 22),
            memo="Structure only bid for GC package.",
            exclusions="Interior finishes, HVAC, Electrical.",
            line_items=(
                LineItem.build("Structural Steel", "A36 Beams", 12, 8500, item_id="l3"),
                LineItem.build("Foundation", "Piers and grade beams", 1, 1143000, item_id="l6"),
            ),
            updated_at=now - timedelta(hours=12),
        ),
        Estimate.create(
            estimate_id="est3",
            name="Downtown Lofts Ph II",
            customer_id="c3",
            location="Tulsa, OK",
            status=DRAFT,
            due_date=date(2024, 8, 5),
            memo="Preliminary pricing for investor review.",
            exclusions="Structural engineering.",
            line_items=(
                LineItem.build("Framing", "Metal stud framing", 5200, 18, item_id="l4"),
                LineItem.build("Drywall", "Type X fire rated", 12000, 18.2, item_id="l7"),
            ),
            updated_at=now,
        ),
    ]


def sample_store(*, clock: Optional[Clock] = None, config: Optional[Config] = None) -> EstimateStore:
    now = clock() if clock else None
    return EstimateStore(sample_customers(), sample_estimates(now), clock=clock, config=config)


__all__ = ["sample_customers", "sample_estimates", "sample_store"]
