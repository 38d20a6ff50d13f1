"""Report files for spreadsheets and the UI: applications, funnel, stats, activity, rankings."""

from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path
from typing import Any, Callable, Sequence

from applytrack.orchestrator import ApplyTrackService
from applytrack.valuation.scorer import RankedOffer

logger = logging.getLogger(__name__)

FORMATS = ("json", "csv")

# Each builder returns (JSON document, CSV rows).
_Builder = Callable[[ApplyTrackService, str], tuple[Any, list[dict[str, Any]]]]


def _applications(service: ApplyTrackService, since_date: str) -> tuple[Any, list[dict[str, Any]]]:
    rows = json.loads(service.tracker.export_json(since_date))
    return rows, rows


def _sankey(service: ApplyTrackService, since_date: str) -> tuple[Any, list[dict[str, Any]]]:
    graph = service.flow()
    payload = graph.to_dict()
    return {**payload, "empty": graph.is_empty}, payload["links"]


def _stats(service: ApplyTrackService, since_date: str) -> tuple[Any, list[dict[str, Any]]]:
    stats = service.stats()
    rows: list[dict[str, Any]] = [
        {"metric": "totalApplications", "value": stats.total_applications},
        {"metric": "recentApplications", "value": stats.recent_applications},
        {"metric": "totalInterviews", "value": stats.total_interviews},
        {"metric": "totalOffers", "value": stats.total_offers},
        {"metric": "rejectionRate", "value": round(stats.rejection_rate, 2)},
        {"metric": "successRate", "value": round(stats.success_rate, 2)},
        {"metric": "averageResponseDays", "value": stats.average_response_days},
    ]
    rows += [
        {"metric": f"status:{status}", "value": count}
        for status, count in sorted(stats.status_counts.items())
    ]
    rows += [
        {"metric": f"month:{month}", "value": count}
        for month, count in stats.applications_by_month
    ]
    return stats.to_dict(), rows


def _activity(service: ApplyTrackService, since_date: str) -> tuple[Any, list[dict[str, Any]]]:
    rows = [
        {"date": e.occurred_at.isoformat(), "type": e.kind, "details": e.details}
        for e in service.timeline()
    ]
    return rows, rows


_REPORTS: dict[str, _Builder] = {
    "applications": _applications,
    "stats": _stats,
    "sankey": _sankey,
    "activity": _activity,
}
REPORTS = tuple(_REPORTS)


def ranking_rows(ranked: Sequence[RankedOffer]) -> list[dict[str, Any]]:
    """Flatten a comparison result, one row per offer in rank order."""
    return [
        {
            "rank": r.rank,
            "company": r.offer.company,
            "role": r.offer.role,
            "location": r.offer.location,
            "scoreComputable": r.score_computable,
            "salaryBasis": r.salary_basis,
            "basisSalary": r.basis_salary,
            "costOfLivingIndex": r.cost_of_living_index,
            "adjustedSalary": r.adjusted_salary,
            "benefitValue": r.benefit_value,
            "totalScore": r.total_score,
            "marketSource": r.market_source,
        }
        for r in ranked
    ]


def _to_csv(rows: list[dict[str, Any]]) -> str:
    if not rows:
        return ""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=list(rows[0].keys()), lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buf.getvalue()


def _write(dest: Path, fmt: str, document: Any, rows: list[dict[str, Any]]) -> Path:
    if fmt not in FORMATS:
        raise ValueError(f"Unsupported export format: {fmt!r}")
    dest.parent.mkdir(parents=True, exist_ok=True)
    content = _to_csv(rows) if fmt == "csv" else json.dumps(document, indent=2)
    dest.write_text(content, encoding="utf-8")
    logger.info("Exported %s to %s.", fmt.upper(), dest)
    return dest


def export_report(
    service: ApplyTrackService,
    report: str,
    output_dir: str | Path,
    fmt: str = "json",
    since_date: str = "",
) -> Path:
    """Write one report file and return its path.

    *report* is one of :data:`REPORTS`; *since_date* only filters the
    ``applications`` report.
    """
    try:
        builder = _REPORTS[report]
    except KeyError:
        raise ValueError(f"Unknown report: {report!r}") from None
    if fmt not in FORMATS:
        raise ValueError(f"Unsupported export format: {fmt!r}")
    document, rows = builder(service, since_date)
    return _write(Path(output_dir) / f"{report}_export.{fmt}", fmt, document, rows)


def export_ranking(
    ranked: Sequence[RankedOffer],
    output_dir: str | Path,
    fmt: str = "json",
) -> Path:
    """Write an offer comparison; unscored offers keep ``totalScore`` empty."""
    rows = ranking_rows(ranked)
    return _write(Path(output_dir) / f"offer_ranking.{fmt}", fmt, rows, rows)
