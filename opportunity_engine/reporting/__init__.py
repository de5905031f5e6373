"""
opportunity_engine.reporting — Result formatting and flat-file export.

This package turns engine outputs (match results, scenarios, risk profiles,
analyses) into terminal text or files on disk.  It performs no scoring.

Modules:
  formatters — ASCII terminal table formatters for Typer CLI commands.
  export     — CSV/JSON flat-file export helpers.
"""
