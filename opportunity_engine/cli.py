"""
AFH Opportunity Engine — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Load and validate the input file.
  4. Run the engine with ``config.policy``.
  5. Report result to stdout.

Install and run::

    pip install -e .
    opportunity-engine --help
    opportunity-engine validate-config
    opportunity-engine rank --input data/inputs/pipeline.json --top 5
    opportunity-engine project --input data/inputs/pipeline.json --opportunity opp-1
    opportunity-engine assess --input data/inputs/pipeline.json
    opportunity-engine analyze --input data/inputs/pipeline.json --output out.json --csv out.csv

Input file: JSON object with ``opportunities`` and ``resources`` arrays
(see ``opportunity_engine.inputs``).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from opportunity_engine.errors import EngineError

app = typer.Typer(
    name="opportunity-engine",
    help="AFH Opportunity Engine — match, project, assess, and recommend.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from opportunity_engine.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from opportunity_engine.utils.logging import configure_logging
    configure_logging(config.logging)


def _load_input_or_exit(input_file: str):
    """Load and validate the input file, exiting on any input error."""
    from opportunity_engine.inputs import load_input_file

    try:
        return load_input_file(Path(input_file))
    except (FileNotFoundError, EngineError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


def _select_opportunities(batch, opportunity_id: Optional[str]):
    """All opportunities, or just the one named by ``--opportunity``."""
    if opportunity_id is None:
        return batch.opportunities
    try:
        return [batch.find_opportunity(opportunity_id)]
    except EngineError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


def _engine(config):
    from opportunity_engine.engine import OpportunityEngine
    return OpportunityEngine(config.policy)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including the complete engine policy.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config or its engine policy fails validation.
    """
    config = _load_config_or_exit(config_path)
    policy = config.policy

    weights = ", ".join(f"{k}={v:.2f}" for k, v in sorted(policy.match.weights.items()))
    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Factor weights:   {weights}")
    typer.echo(f"  Horizon (months): {policy.scenarios.horizon_months}")
    typer.echo(f"  Ramp strategy:    {policy.scenarios.ramp}")
    typer.echo(
        f"  Risk thresholds:  low < {policy.risk.thresholds.low_max}, "
        f"medium < {policy.risk.thresholds.medium_max}"
    )
    typer.echo(
        f"  Pursue / evaluate: {policy.recommendation.pursue_min_score} / "
        f"{policy.recommendation.evaluate_min_score}"
    )
    typer.echo(f"  Output dir:       {config.output.output_dir}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(mode="json"), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("rank")
def rank(
    input_file: str = typer.Option(
        ...,
        "--input",
        "-i",
        help="Path to input JSON with 'opportunities' and 'resources'.",
    ),
    opportunity_id: Optional[str] = typer.Option(
        None,
        "--opportunity",
        help="Rank resources for this opportunity only.",
    ),
    top: Optional[int] = typer.Option(
        None,
        "--top",
        min=1,
        help="Rows to display per opportunity. Uses config default if omitted.",
    ),
    show_factors: bool = typer.Option(
        False,
        "--factors",
        help="Print the factor breakdown of the top match.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Rank every resource against each opportunity."""
    from opportunity_engine.reporting.formatters import (
        format_factor_breakdown,
        format_match_table,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    batch = _load_input_or_exit(input_file)
    engine = _engine(config)
    limit = top if top is not None else config.output.top_n_display

    try:
        for opp in _select_opportunities(batch, opportunity_id):
            matches = engine.rank(opp, batch.resources)
            typer.echo(format_match_table(opp, matches[:limit]))
            if show_factors and matches:
                typer.echo(format_factor_breakdown(matches[0]))
    except EngineError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


@app.command("project")
def project(
    input_file: str = typer.Option(
        ...,
        "--input",
        "-i",
        help="Path to input JSON with 'opportunities' and 'resources'.",
    ),
    opportunity_id: Optional[str] = typer.Option(
        None,
        "--opportunity",
        help="Project revenue for this opportunity only.",
    ),
    risk_adjusted: bool = typer.Option(
        False,
        "--risk-adjusted",
        help="Scale scenarios by the opportunity's assessed risk.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Project conservative / expected / optimistic revenue scenarios."""
    from opportunity_engine.reporting.formatters import format_scenario_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    batch = _load_input_or_exit(input_file)
    engine = _engine(config)

    try:
        for opp in _select_opportunities(batch, opportunity_id):
            risk = engine.assess_risk(opp) if risk_adjusted else None
            scenarios = engine.project_revenue(opp, risk)
            typer.echo(format_scenario_table(opp.opportunity_id, scenarios))
    except EngineError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


@app.command("assess")
def assess(
    input_file: str = typer.Option(
        ...,
        "--input",
        "-i",
        help="Path to input JSON with 'opportunities' and 'resources'.",
    ),
    opportunity_id: Optional[str] = typer.Option(
        None,
        "--opportunity",
        help="Assess risk for this opportunity only.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Assess market, operational, financial, regulatory, and strategic risk."""
    from opportunity_engine.reporting.formatters import format_risk_profile

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    batch = _load_input_or_exit(input_file)
    engine = _engine(config)

    for opp in _select_opportunities(batch, opportunity_id):
        typer.echo(format_risk_profile(opp.opportunity_id, engine.assess_risk(opp)))


@app.command("analyze")
def analyze(
    input_file: str = typer.Option(
        ...,
        "--input",
        "-i",
        help="Path to input JSON with 'opportunities' and 'resources'.",
    ),
    output_file: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the full portfolio analysis as JSON to this path.",
    ),
    csv_file: Optional[str] = typer.Option(
        None,
        "--csv",
        help="Write one flat row per opportunity as CSV to this path.",
    ),
    risk_adjusted: bool = typer.Option(
        False,
        "--risk-adjusted",
        help="Scale scenarios by each opportunity's assessed risk.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Run the full pipeline for every opportunity and summarise the portfolio.

    Text reports go to stdout; ``--output`` and ``--csv`` additionally write
    machine-readable files.
    """
    from opportunity_engine.reporting.export import (
        export_to_csv,
        export_to_json,
        flatten_portfolio_for_export,
    )
    from opportunity_engine.reporting.formatters import (
        format_analysis,
        format_portfolio_summary,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    batch = _load_input_or_exit(input_file)
    engine = _engine(config)

    try:
        summary = engine.analyze_portfolio(
            batch.opportunities, batch.resources, risk_adjusted=risk_adjusted
        )
    except EngineError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    for analysis in summary.analyses:
        typer.echo(format_analysis(analysis))
    typer.echo(format_portfolio_summary(summary))

    if output_file:
        path = export_to_json(summary.to_dict(), Path(output_file))
        typer.echo(f"  JSON written: {path}")
    if csv_file:
        path = export_to_csv(flatten_portfolio_for_export(summary), Path(csv_file))
        typer.echo(f"  CSV written:  {path}")

    typer.echo("")
    typer.echo(f"[OK] Analysed {len(summary.analyses)} opportunities.")


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
