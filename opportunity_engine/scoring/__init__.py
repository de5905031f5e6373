"""
Opportunity scoring engine: matches resources to opportunities, projects
revenue, assesses risk, and derives pursue/evaluate/pass recommendations.

Modules
-------
factors     : FactorScorer + BUILTIN_FACTORS + score() — per-factor [0, 1]
              values; None when inputs are missing.
aggregator  : aggregate() + rank() + build_match_reasoning() — weighted
              overall score, confidence, deterministic ranking.
revenue     : project_revenue() + ramp_fraction() + compute_roi() +
              payback_period() + net_present_value().
risk        : assess_risk() + classify_level() + risk_adjustments().
recommender : determine_tier() + recommend().

All functions are pure: no I/O, no clock, no randomness, no shared state.
"""
