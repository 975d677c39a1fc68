import datetime
from decimal import Decimal
from pathlib import Path
from typing import List, Optional

import pytz
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .models import Failure, GameEntry, LookupStatus, Report, ReportRow, WishlistBatch

# Resolve template directory relative to this file
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)

STATUS_LABELS = {
    LookupStatus.PENDING: "not looked up",
    LookupStatus.NOT_FOUND: "not found",
    LookupStatus.PARSE_ERROR: "unparseable price",
}


def _price_to_str(price: Optional[Decimal]) -> str:
    if price is None:
        return "-"
    return f"{price:.2f} €"


env.filters["price"] = _price_to_str
env.filters["status_label"] = lambda status: STATUS_LABELS.get(status, status.value)


def _display_name(entry: GameEntry) -> str:
    return entry.name or f"app {entry.game_id}"


def finalize(batch: WishlistBatch, include_unresolved: bool = False) -> Report:
    """
    Sort resolved entries by ascending price and collect the rest as failures.
    Python's sort is stable, so equal prices keep their batch order.
    With include_unresolved, failed entries are also appended to the rows
    (after every priced row) with no price.
    """
    resolved = [e for e in batch if e.resolved]
    unresolved = [e for e in batch if not e.resolved]

    rows: List[ReportRow] = [
        ReportRow(name=_display_name(e), price=e.best_price)
        for e in sorted(resolved, key=lambda e: e.best_price)
    ]
    if include_unresolved:
        rows.extend(ReportRow(name=_display_name(e), price=None) for e in unresolved)

    failures = [Failure(name=_display_name(e), status=e.status, reason=e.reason) for e in unresolved]

    return Report(
        rows=rows,
        failures=failures,
        generated_at=datetime.datetime.now(tz=pytz.UTC),
    )


def _context(report: Report) -> dict:
    priced = [r for r in report.rows if r.price is not None]
    return {
        "generated_at": report.generated_at.strftime("%Y-%m-%d %H:%M:%S %Z"),
        "rows": report.rows,
        "failures": report.failures,
        "resolved_count": len(priced),
        "skipped": report.skipped,
        "name_width": max((len(r.name) for r in report.rows), default=0),
    }


def render_text(report: Report) -> str:
    text = env.get_template("report.txt").render(**_context(report))
    return text.rstrip("\n") + "\n"


def render_html(report: Report) -> str:
    html = env.get_template("report.html").render(**_context(report))
    return html.rstrip("\n") + "\n"
