"""Dashboard roll-ups over the estimate pipeline."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import pandas as pd

from .models import DRAFT, LOST, STATUSES, SUBMITTED, UNKNOWN_CUSTOMER, WON, Customer, Estimate

FRAME_COLUMNS = ["ID", "NAME", "CUSTOMER", "STATUS", "TOTAL", "LINE_ITEMS", "UPDATED_AT"]


@dataclass(frozen=True)
class PipelineStats:
    total_pipeline: float
    won_value: float
    pending_count: int
    win_rate: int
    estimate_count: int


def estimates_frame(estimates: Iterable[Estimate], customers: Sequence[Customer] = ()) -> pd.DataFrame:
    names = {customer.id: customer.name for customer in customers}
    rows = [
        {
            "ID": est.id,
            "NAME": est.name,
            "CUSTOMER": names.get(est.customer_id, UNKNOWN_CUSTOMER),
            "STATUS": est.status,
            "TOTAL": float(est.total),
            "LINE_ITEMS": len(est.line_items),
            "UPDATED_AT": est.updated_at,
        }
        for est in estimates
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def pipeline_stats(estimates: Iterable[Estimate]) -> PipelineStats:
    """Headline numbers: open pipeline value excludes Lost bids."""
    df = estimates_frame(estimates)
    count = len(df)
    if count == 0:
        return PipelineStats(0.0, 0.0, 0, 0, 0)
    won = df["STATUS"] == WON
    return PipelineStats(
        total_pipeline=float(df.loc[df["STATUS"] != LOST, "TOTAL"].sum()),
        won_value=float(df.loc[won, "TOTAL"].sum()),
        pending_count=int(df["STATUS"].isin([DRAFT, SUBMITTED]).sum()),
        win_rate=int(math.floor(won.sum() / count * 100 + 0.5)),
        estimate_count=count,
    )


def status_distribution(estimates: Iterable[Estimate]) -> pd.DataFrame:
    """Count and value per status, zero-filled, in pipeline order."""
    df = estimates_frame(estimates)
    grouped = df.groupby("STATUS")["TOTAL"].agg(["count", "sum"])
    grouped = grouped.reindex(list(STATUSES), fill_value=0)
    grouped.index.name = "STATUS"
    return grouped.rename(columns={"count": "COUNT", "sum": "VALUE"}).astype({"COUNT": int, "VALUE": float})


def customer_pipeline(estimates: Iterable[Estimate], customers: Sequence[Customer]) -> pd.DataFrame:
    df = estimates_frame(estimates, customers)
    if df.empty:
        return pd.DataFrame(columns=["CUSTOMER", "VALUE", "COUNT"])
    grouped = (
        df.groupby("CUSTOMER")
        .agg(VALUE=("TOTAL", "sum"), COUNT=("ID", "count"))
        .sort_values("VALUE", ascending=False)
        .reset_index()
    )
    return grouped


def make_summary_text(estimates: Sequence[Estimate], customers: Sequence[Customer]) -> str:
    stats = pipeline_stats(estimates)
    dist = status_distribution(estimates)
    lines = [
        f"Active bids: {stats.estimate_count}",
        f"Pipeline value (excl. Lost): ${stats.total_pipeline:,.0f}",
        f"Won value: ${stats.won_value:,.0f}",
        f"Pending (Draft + Submitted): {stats.pending_count}",
        f"Win rate: {stats.win_rate}%",
        "",
        "By status:",
    ]
    for status, row in dist.iterrows():
        lines.append(f"  {status:<10} {int(row['COUNT']):>3}  ${row['VALUE']:,.0f}")
    top = customer_pipeline(estimates, customers).head(5)
    if not top.empty:
        lines.append("")
        lines.append("Top clients:")
        for _, row in top.iterrows():
            lines.append(f"  {row['CUSTOMER']}: ${row['VALUE']:,.0f} ({int(row['COUNT'])} bid(s))")
    return "\n".join(lines) + "\n"


__all__ = [
    "PipelineStats",
    "estimates_frame",
    "pipeline_stats",
    "status_distribution",
    "customer_pipeline",
    "make_summary_text",
]
