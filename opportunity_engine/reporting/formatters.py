"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept engine output models and return plain multi-line
strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).

Scores are stored on the 0–1 scale everywhere in the engine; these
formatters are the only place they are rendered as percentages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from opportunity_engine.models.match import MatchResult
from opportunity_engine.models.opportunity import Opportunity
from opportunity_engine.models.projection import RevenueScenario
from opportunity_engine.models.recommendation import Recommendation
from opportunity_engine.models.risk import RiskProfile

if TYPE_CHECKING:
    from opportunity_engine.engine import OpportunityAnalysis, PortfolioSummary


def _pct(value: float) -> str:
    return f"{value:.0%}"


def _money(value: float) -> str:
    return f"${value:,.0f}"


# ── Matches ──────────────────────────────────────────────────────────────────


def format_match_table(opportunity: Opportunity, matches: list[MatchResult]) -> str:
    """Format ranked matches for one opportunity as an ASCII table::

        === Matches: opp-1 (Breakfast menu refresh) ===
          Rank  Resource              Variant    Score  Conf.  Missing
          ------------------------------------------------------------
             1  prod-01               product      84%    91%  -
    """
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== Matches: {opportunity.opportunity_id} ({opportunity.title}) ===")
    lines.append(f"  Channel: {opportunity.channel.value}   Region: {opportunity.region}")

    if not matches:
        lines.append("")
        lines.append("  (no resources could be scored for this opportunity)")
        return "\n".join(lines)

    header = (
        f"  {'Rank':>4}  {'Resource':<22}  {'Variant':<9}  "
        f"{'Score':>5}  {'Conf.':>5}  Missing"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for i, m in enumerate(matches, start=1):
        missing = ", ".join(m.missing_factors) or "-"
        lines.append(
            f"  {i:>4}  {m.resource_id[:22]:<22}  {m.resource_variant.value:<9}  "
            f"{_pct(m.overall_score):>5}  {_pct(m.confidence):>5}  {missing}"
        )
    return "\n".join(lines)


def format_factor_breakdown(match: MatchResult) -> str:
    """One line per factor with value and weight, then the reasoning string."""
    lines = [f"  Factors for {match.resource_id}:"]
    for fs in match.factor_breakdown:
        lines.append(f"    {fs.factor_name:<22} {_pct(fs.value):>5}  (weight {fs.weight:.2f})")
    for name in match.missing_factors:
        lines.append(f"    {name:<22} {'n/a':>5}")
    if match.engagement_cost is not None:
        cost = match.engagement_cost
        lines.append(
            f"  Engagement: {_money(cost.hourly_rate)}/h x {cost.hours_per_week:g} h/wk "
            f"x {cost.duration_weeks} wks = {_money(cost.total_cost)} "
            f"({_money(cost.monthly_cost)}/month, + {_money(cost.expense_estimate)} expenses)"
        )
    if match.reasoning:
        lines.append(f"  Reasoning: {match.reasoning}")
    return "\n".join(lines)


# ── Scenarios ─────────────────────────────────────────────────────────────────


def format_scenario_table(opportunity_id: str, scenarios: list[RevenueScenario]) -> str:
    """Format revenue scenarios with checkpoint revenue and financials."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== Revenue Scenarios: {opportunity_id} ===")
    if scenarios and scenarios[0].risk_adjusted:
        lines.append("  (risk-adjusted)")

    periods = [p.period for p in scenarios[0].monthly_projection] if scenarios else []
    period_cols = "".join(f"  {'M' + str(p):>12}" for p in periods)
    header = f"  {'Scenario':<12}  {'Prob.':>5}  {'Total':>12}{period_cols}  {'ROI':>6}  {'Payback':>7}"
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for s in scenarios:
        point_cols = "".join(f"  {_money(p.cumulative_revenue):>12}" for p in s.monthly_projection)
        payback = s.financials.payback_period_months
        payback_str = f"{payback}m" if payback is not None else "beyond"
        lines.append(
            f"  {s.name.value:<12}  {_pct(s.probability):>5}  {_money(s.total_revenue):>12}"
            f"{point_cols}  {s.financials.roi:>6.2f}  {payback_str:>7}"
        )
    return "\n".join(lines)


# ── Risk ──────────────────────────────────────────────────────────────────────


def format_risk_profile(opportunity_id: str, profile: RiskProfile) -> str:
    """Format every risk category with level, drivers, and mitigation."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== Risk Profile: {opportunity_id} ===")
    lines.append(
        f"  Overall: {_pct(profile.overall_risk_score)} [{profile.overall_level.value.upper()}]"
    )
    header = f"  {'Category':<12}  {'Score':>5}  {'Level':<6}  Drivers"
    lines.append(header)
    lines.append("  " + "-" * 60)
    for cat in profile.categories:
        lines.append(
            f"  {cat.name.value:<12}  {_pct(cat.score):>5}  {cat.level.value:<6}  "
            f"{', '.join(cat.contributing_factors)}"
        )
        lines.append(f"  {'':<12}  {'':>5}  {'':<6}  -> {cat.mitigation} ({cat.mitigation_timeframe})")
    return "\n".join(lines)


# ── Recommendation ────────────────────────────────────────────────────────────


def format_recommendation(recommendation: Recommendation | None) -> str:
    """Format the tier, rationale, and numbered next actions."""
    if recommendation is None:
        return "  Recommendation: (none; no scorable resources)"
    lines = [
        f"  Recommendation: {recommendation.tier.value.upper()}",
        f"  Rationale: {recommendation.rationale}",
    ]
    if recommendation.next_actions:
        lines.append("  Next actions:")
        for i, action in enumerate(recommendation.next_actions, start=1):
            lines.append(
                f"    {i}. [{action.priority.value}] {action.title} ({action.timeframe})"
            )
    return "\n".join(lines)


def format_analysis(analysis: "OpportunityAnalysis") -> str:
    """Full text report for one opportunity analysis."""
    parts = [format_match_table(analysis.opportunity, analysis.matches)]
    if analysis.top_match is not None:
        parts.append(format_factor_breakdown(analysis.top_match))
    parts.append(format_scenario_table(analysis.opportunity.opportunity_id, analysis.scenarios))
    parts.append(format_risk_profile(analysis.opportunity.opportunity_id, analysis.risk))
    parts.append("")
    parts.append(format_recommendation(analysis.recommendation))
    return "\n".join(parts)


# ── Portfolio ─────────────────────────────────────────────────────────────────


def format_portfolio_summary(summary: "PortfolioSummary") -> str:
    """Portfolio rollup: one line per opportunity, then resource usage."""
    lines: list[str] = []
    lines.append("")
    lines.append("=== Portfolio Summary ===")
    lines.append(
        f"  Opportunities: {len(summary.analyses)}   "
        f"Matched: {summary.matched_count}   Unmatched: {summary.unmatched_count}"
    )
    lines.append("")
    header = f"  {'Opportunity':<16}  {'Top resource':<16}  {'Score':>5}  {'Risk':<6}  {'Expected':>12}  Tier"
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for a in summary.analyses:
        top = a.top_match
        rec = a.recommendation
        lines.append(
            f"  {a.opportunity.opportunity_id[:16]:<16}  "
            f"{(top.resource_id if top else '-')[:16]:<16}  "
            f"{(_pct(top.overall_score) if top else '-'):>5}  "
            f"{a.risk.overall_level.value:<6}  {_money(a.expected_revenue):>12}  "
            f"{rec.tier.value if rec else '-'}"
        )

    if summary.resource_usage:
        lines.append("")
        lines.append("  Resource usage:")
        for u in summary.resource_usage:
            lines.append(
                f"    {u.resource_id:<16}  {len(u.opportunity_ids)} opp(s)  "
                f"{_money(u.total_expected_revenue):>12}  avg score {_pct(u.average_score)}"
            )
    return "\n".join(lines)
