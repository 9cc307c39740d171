import argparse
import logging
import mimetypes
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from .assist import AIConfig, BidAssistant
from .config import Config
from .config import load_config as load_runtime_config
from .models import UNKNOWN_CUSTOMER, Estimate
from .pipeline import group_by_status, search
from .pricing import estimate_breakdown
from .reporting import make_summary_text
from .seed import sample_store
from .session import BidSession
from .store import EstimateStore

logger = logging.getLogger(__name__)


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _load_ai_config(runtime_cfg: Config) -> AIConfig:
    if runtime_cfg.ai_config_path:
        ai_cfg = AIConfig.load(runtime_cfg.ai_config_path)
    else:
        ai_cfg = AIConfig.from_env(os.environ)
    if runtime_cfg.disable_ai:
        ai_cfg.enabled = False
    return ai_cfg


def _describe(store: EstimateStore, estimate: Estimate) -> str:
    customer = store.customer_for(estimate)
    breakdown = estimate_breakdown(estimate)
    lines = [
        f"{estimate.name} [{estimate.id}]",
        f"  Client:   {customer.name if customer else UNKNOWN_CUSTOMER}",
        f"  Location: {estimate.location}",
        f"  Status:   {estimate.status}   Due: {estimate.due_date.isoformat()}",
        "",
    ]
    for item in estimate.line_items:
        lines.append(f"  - {item.name:<24} {item.qty:>10g} x {_money(item.rate):>14} = {_money(item.amount):>16}")
    lines.extend(
        [
            "",
            f"  Subtotal: {_money(breakdown.subtotal)}",
            f"  Margin ({estimate.margin or 0:g}%): {_money(breakdown.margin_amount)}",
            f"  Tax ({estimate.tax or 0:g}%):    {_money(breakdown.tax_amount)}",
            f"  Total:    {_money(estimate.total)}",
        ]
    )
    if estimate.exclusions:
        lines.append(f"  Exclusions: {estimate.exclusions}")
    return "\n".join(lines)


def _require_estimate(session: BidSession, estimate_id: str) -> Optional[Estimate]:
    estimate = session.select(estimate_id)
    if estimate is None:
        logger.error("Unknown estimate id: %s", estimate_id)
    return estimate


def _report_failure(session: BidSession) -> int:
    logger.error(session.notice or "AI request failed.")
    return 1


def cmd_summary(session: BidSession, args: argparse.Namespace) -> int:
    logger.info(make_summary_text(session.store.list(), session.store.customers))
    return 0


def cmd_pipeline(session: BidSession, args: argparse.Namespace) -> int:
    store = session.store
    estimates = search(store.list(), args.search or "", store.customers)
    for status, column in group_by_status(estimates).items():
        logger.info("%s (%d)", status, len(column))
        for estimate in column:
            customer = store.customer_for(estimate)
            logger.info(
                "  %-8s %-28s %-24s %s",
                estimate.id,
                estimate.name,
                customer.name if customer else UNKNOWN_CUSTOMER,
                _money(estimate.total),
            )
    return 0


def cmd_show(session: BidSession, args: argparse.Namespace) -> int:
    estimate = _require_estimate(session, args.estimate_id)
    if estimate is None:
        return 1
    logger.info(_describe(session.store, estimate))
    return 0


def cmd_audit(session: BidSession, args: argparse.Namespace) -> int:
    if _require_estimate(session, args.estimate_id) is None:
        return 1
    insight = session.run_audit()
    if insight is None:
        return _report_failure(session)
    logger.info("Confidence score: %g/100\n\n%s", insight.score, insight.summary)
    logger.info("\nRisks:")
    for risk in insight.risks:
        logger.info(" - %s", risk)
    logger.info("\nRecommendations:")
    for rec in insight.recommendations:
        logger.info(" - %s", rec)
    return 0


def cmd_suggest(session: BidSession, args: argparse.Namespace) -> int:
    if _require_estimate(session, args.estimate_id) is None:
        return 1
    suggestions = session.fetch_suggestions()
    if suggestions is None:
        return _report_failure(session)
    for index, item in enumerate(suggestions):
        logger.info(
            "[%d] %s: %g @ %s\n    %s\n    Why: %s",
            index,
            item.name,
            item.suggested_qty,
            _money(item.suggested_rate),
            item.description,
            item.reason,
        )
    for index in sorted(set(args.accept or []), reverse=True):
        updated = session.accept_suggestion(index)
        if updated is None:
            logger.error("Suggestion %d does not exist", index)
            return 1
        logger.info("Added suggestion %d; new total %s", index, _money(updated.total))
    return 0


def cmd_market(session: BidSession, args: argparse.Namespace) -> int:
    if _require_estimate(session, args.estimate_id) is None:
        return 1
    insight = session.fetch_market_intelligence()
    if insight is None:
        return _report_failure(session)
    logger.info(insight.text)
    if insight.sources:
        logger.info("\nSources:")
        for source in insight.sources:
            logger.info(" - %s <%s>", source.title, source.uri)
    return 0


def cmd_scan(session: BidSession, args: argparse.Namespace) -> int:
    image_path = Path(args.image)
    mime_type = mimetypes.guess_type(image_path.name)[0] or "image/jpeg"
    items = session.scan_document(image_path.read_bytes(), mime_type)
    if session.notice:
        return _report_failure(session)
    logger.info("Extracted %d item(s)", len(items))
    if args.estimate:
        updated = session.import_extracted(args.estimate)
        if updated is None:
            logger.error("Unknown estimate id: %s", args.estimate)
            return 1
        logger.info(_describe(session.store, updated))
    return 0


def cmd_report(session: BidSession, args: argparse.Namespace) -> int:
    image_bytes = None
    mime_type = None
    if args.image:
        image_path = Path(args.image)
        image_bytes = image_path.read_bytes()
        mime_type = mimetypes.guess_type(image_path.name)[0]
    report = session.generate_site_report(args.notes, image_bytes, mime_type)
    if report is None:
        return _report_failure(session)
    logger.info("%s  (%s)", report.project_name, report.created_at.isoformat(timespec="minutes"))
    logger.info("Weather: %s", report.weather)
    for heading, entries in (
        ("Work completed", report.work_completed),
        ("Materials used", report.materials_used),
        ("Issues", report.issues),
    ):
        logger.info("\n%s:", heading)
        for entry in entries:
            logger.info(" - %s", entry)
    logger.info("\nSafety: %s\n\n%s", report.safety_observations, report.summary)
    return 0


def cmd_chat(session: BidSession, args: argparse.Namespace) -> int:
    reply = session.ask_sales_assistant(" ".join(args.message))
    if reply is None:
        return 1
    logger.info(reply.text)
    return 0


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Construction bid pipeline and estimate builder")
    parser.add_argument("--disable-ai", action="store_true", help="Disable OpenAI-backed assistance")
    parser.add_argument("--ai-config", help="Path to an AI configuration file (JSON or YAML)")
    parser.add_argument("--strict", action="store_true", help="Fail on unknown estimate or line item ids")
    parser.add_argument("-v", "--verbose", action="store_true", help="Increase logging verbosity")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("summary", help="Dashboard totals").set_defaults(handler=cmd_summary)

    p = sub.add_parser("pipeline", help="Estimates grouped by status")
    p.add_argument("--search", help="Filter by project or client name")
    p.set_defaults(handler=cmd_pipeline)

    for name, handler, help_text in (
        ("show", cmd_show, "Show an estimate with its totals"),
        ("audit", cmd_audit, "AI risk audit of an estimate"),
        ("market", cmd_market, "Local material and labor market research"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("estimate_id")
        p.set_defaults(handler=handler)

    p = sub.add_parser("suggest", help="AI scope suggestions for an estimate")
    p.add_argument("estimate_id")
    p.add_argument("--accept", type=int, action="append", help="Add suggestion N to the estimate")
    p.set_defaults(handler=cmd_suggest)

    p = sub.add_parser("scan", help="Extract line items from a document image")
    p.add_argument("image")
    p.add_argument("--estimate", help="Import extracted items into this estimate")
    p.set_defaults(handler=cmd_scan)

    p = sub.add_parser("report", help="Generate a daily site report")
    p.add_argument("notes")
    p.add_argument("--image", help="Optional site photo")
    p.set_defaults(handler=cmd_report)

    p = sub.add_parser("chat", help="Ask the sales assistant")
    p.add_argument("message", nargs="+")
    p.set_defaults(handler=cmd_chat)

    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    runtime_cfg = load_runtime_config(os.environ, args)
    log_level = logging.DEBUG if runtime_cfg.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(message)s", stream=sys.stdout)
    store = sample_store(config=runtime_cfg)
    session = BidSession(store, BidAssistant(_load_ai_config(runtime_cfg)))
    try:
        return args.handler(session, args)
    except Exception:  # pragma: no cover
        logger.exception("Fatal error")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
