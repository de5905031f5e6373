"""
Export helpers for spreadsheet and downstream analysis.

All functions write to disk and return the written ``Path``.
They accept generic ``list[dict]`` data to stay decoupled from
specific report shapes.

CSV exports are flat (no nested dicts) so they load directly in Excel or a
BI tool without any pre-processing step.  Scores stay on the 0–1 scale;
percentages are a display concern of ``formatters``.

``flatten_matches_for_export()`` is the main adapter function: it converts
each ``MatchResult`` into one row with every factor value as its own column.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import TYPE_CHECKING

from opportunity_engine.models.match import MatchResult
from opportunity_engine.models.projection import RevenueScenario

if TYPE_CHECKING:
    from opportunity_engine.engine import PortfolioSummary


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order.  If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records:
        path.write_text("", encoding="utf-8")
        return path
    cols = fieldnames or list(records[0].keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(
    data: dict | list,
    path: Path,
) -> Path:
    """Write ``data`` to a pretty-printed JSON file.

    Args:
        data: Dict or list to serialise.
        path: Destination file path (parent dirs created if missing).

    Returns:
        ``path`` as written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def flatten_matches_for_export(matches: list[MatchResult]) -> list[dict]:
    """Flatten match results into one row per opportunity/resource pair.

    Each row contains:
    - ``opportunity_id``, ``rank``, ``resource_id``, ``resource_variant``
    - ``overall_score``, ``confidence``
    - ``f_<factor_name>`` for every factor present in any match (blank when
      the factor was not scored for that pair)
    - ``missing_factors`` (``|``-separated)
    - ``engagement_weekly_cost``, ``engagement_total_cost`` (blank unless the
      resource is billed hourly)
    - ``reasoning``

    Factor columns are sorted by name so the header is stable across runs.

    Args:
        matches: Ranked output of ``rank()``, possibly for several
                 opportunities concatenated.

    Returns:
        List of flat row dicts.
    """
    factor_names = sorted(
        {fs.factor_name for m in matches for fs in m.factor_breakdown}
        | {name for m in matches for name in m.missing_factors}
    )

    rows: list[dict] = []
    ranks: dict[str, int] = {}
    for m in matches:
        ranks[m.opportunity_id] = ranks.get(m.opportunity_id, 0) + 1
        row: dict = {
            "opportunity_id":   m.opportunity_id,
            "rank":             ranks[m.opportunity_id],
            "resource_id":      m.resource_id,
            "resource_variant": m.resource_variant.value,
            "overall_score":    m.overall_score,
            "confidence":       m.confidence,
        }
        for name in factor_names:
            fs = m.factor(name)
            row[f"f_{name}"] = fs.value if fs is not None else ""
        row["missing_factors"] = "|".join(m.missing_factors)
        cost = m.engagement_cost
        row["engagement_weekly_cost"] = cost.weekly_cost if cost else ""
        row["engagement_total_cost"] = cost.total_cost if cost else ""
        row["reasoning"] = m.reasoning
        rows.append(row)

    return rows


def flatten_scenarios_for_export(
    opportunity_id: str,
    scenarios: list[RevenueScenario],
) -> list[dict]:
    """Return one row per (scenario, checkpoint) with the scenario financials repeated.

    Args:
        opportunity_id: Opportunity the scenarios belong to.
        scenarios:      Output of ``project_revenue()``.

    Returns:
        List of flat row dicts.
    """
    rows: list[dict] = []
    for s in scenarios:
        fin = s.financials
        for point in s.monthly_projection:
            rows.append(
                {
                    "opportunity_id":     opportunity_id,
                    "scenario":           s.name.value,
                    "probability":        s.probability,
                    "total_revenue":      s.total_revenue,
                    "period":             point.period,
                    "cumulative_revenue": point.cumulative_revenue,
                    "investment":         fin.investment,
                    "roi":                fin.roi,
                    "payback_months":     (
                        fin.payback_period_months
                        if fin.payback_period_months is not None else ""
                    ),
                    "npv":                fin.npv,
                    "risk_adjusted":      s.risk_adjusted,
                }
            )
    return rows


def flatten_portfolio_for_export(summary: "PortfolioSummary") -> list[dict]:
    """One row per analysed opportunity: top match, tier, risk, expected revenue.

    Opportunities with no scorable resource get blank match and tier columns.
    """
    rows: list[dict] = []
    for a in summary.analyses:
        top = a.top_match
        rec = a.recommendation
        rows.append(
            {
                "opportunity_id":   a.opportunity.opportunity_id,
                "title":            a.opportunity.title,
                "channel":          a.opportunity.channel.value,
                "top_resource_id":  top.resource_id if top else "",
                "overall_score":    top.overall_score if top else "",
                "confidence":       top.confidence if top else "",
                "risk_score":       a.risk.overall_risk_score,
                "risk_level":       a.risk.overall_level.value,
                "expected_revenue": a.expected_revenue,
                "tier":             rec.tier.value if rec else "",
                "next_actions":     "|".join(n.title for n in rec.next_actions) if rec else "",
            }
        )
    return rows
