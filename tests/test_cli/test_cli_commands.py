"""
Tests for the ``opportunity-engine`` Typer CLI.

What we test
------------
- validate-config prints the policy summary; --full dumps JSON; a bad
  policy exits 1 with [ERROR].
- rank / project / assess print tables for every or one opportunity.
- analyze prints the portfolio summary and writes --output JSON and --csv.
- Input and engine errors exit 1 with [ERROR] instead of a traceback.
"""

from __future__ import annotations

import csv
import json
import logging

import pytest
from typer.testing import CliRunner

from opportunity_engine.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_root_logging():
    """The CLI reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "engine.toml"
    path.write_text('[logging]\nlevel = "WARNING"\n', encoding="utf-8")
    return str(path)


@pytest.fixture
def valid_input(sample_input_document, input_file):
    return str(input_file(sample_input_document))


class TestValidateConfig:
    def test_ok(self, config_file):
        result = runner.invoke(app, ["validate-config", "--config", config_file])
        assert result.exit_code == 0, result.output
        assert "[OK] Config valid." in result.output
        assert "channel_relevance=0.25" in result.output

    def test_full_dump(self, config_file):
        result = runner.invoke(app, ["validate-config", "--config", config_file, "--full"])
        assert result.exit_code == 0, result.output
        assert '"pursue_min_score": 0.8' in result.output

    def test_bad_policy_exits_1(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[policy.risk.thresholds]\nlow_max = 0.7\nmedium_max = 0.5\n", encoding="utf-8")
        result = runner.invoke(app, ["validate-config", "--config", str(path)])
        assert result.exit_code == 1
        assert "[ERROR]" in result.output

    def test_missing_config_exits_1(self, tmp_path):
        result = runner.invoke(app, ["validate-config", "--config", str(tmp_path / "none.toml")])
        assert result.exit_code == 1
        assert "Config file not found" in result.output


class TestRank:
    def test_all_opportunities(self, config_file, valid_input):
        result = runner.invoke(app, ["rank", "--input", valid_input, "--config", config_file])
        assert result.exit_code == 0, result.output
        assert "=== Matches: opp-1" in result.output
        assert result.output.index("prod-01") < result.output.index("exp-01")

    def test_top_and_factors(self, config_file, valid_input):
        result = runner.invoke(
            app,
            ["rank", "--input", valid_input, "--opportunity", "opp-1", "--top", "1",
             "--factors", "--config", config_file],
        )
        assert result.exit_code == 0, result.output
        assert "pb-01" not in result.output
        assert "Factors for prod-01" in result.output

    def test_unknown_opportunity(self, config_file, valid_input):
        result = runner.invoke(
            app, ["rank", "--input", valid_input, "--opportunity", "nope", "--config", config_file]
        )
        assert result.exit_code == 1
        assert "[ERROR]" in result.output

    def test_invalid_input(self, config_file, input_file):
        path = input_file({"opportunities": [{"opportunity_id": "x"}]})
        result = runner.invoke(app, ["rank", "--input", str(path), "--config", config_file])
        assert result.exit_code == 1
        assert "[ERROR] Invalid opportunity" in result.output

    def test_top_zero_rejected(self, config_file, valid_input):
        result = runner.invoke(
            app, ["rank", "--input", valid_input, "--top", "0", "--config", config_file]
        )
        assert result.exit_code == 2
        assert "=== Matches" not in result.output

    def test_missing_input_file(self, config_file, tmp_path):
        result = runner.invoke(
            app, ["rank", "--input", str(tmp_path / "none.json"), "--config", config_file]
        )
        assert result.exit_code == 1
        assert "Input file not found" in result.output


class TestProjectAndAssess:
    def test_project(self, config_file, valid_input):
        result = runner.invoke(app, ["project", "--input", valid_input, "--config", config_file])
        assert result.exit_code == 0, result.output
        assert "$2,800,000" in result.output

    def test_project_risk_adjusted(self, config_file, valid_input):
        result = runner.invoke(
            app, ["project", "--input", valid_input, "--risk-adjusted", "--config", config_file]
        )
        assert result.exit_code == 0, result.output
        assert "(risk-adjusted)" in result.output

    def test_project_missing_revenue_exits_1(self, config_file, sample_input_document, input_file):
        sample_input_document["opportunities"][0]["revenue_potential"] = None
        path = input_file(sample_input_document)
        result = runner.invoke(app, ["project", "--input", str(path), "--config", config_file])
        assert result.exit_code == 1
        assert "revenue_potential" in result.output

    def test_project_nan_revenue_exits_1(self, config_file, sample_input_document, input_file):
        sample_input_document["opportunities"][0]["revenue_potential"] = float("nan")
        path = input_file(sample_input_document)
        result = runner.invoke(app, ["project", "--input", str(path), "--config", config_file])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "[ERROR] Invalid opportunity" in result.output

    def test_assess(self, config_file, valid_input):
        result = runner.invoke(app, ["assess", "--input", valid_input, "--config", config_file])
        assert result.exit_code == 0, result.output
        assert "=== Risk Profile: opp-1 ===" in result.output
        assert "regulatory" in result.output


class TestAnalyze:
    def test_writes_json_and_csv(self, config_file, valid_input, tmp_path):
        out_json = tmp_path / "out" / "analysis.json"
        out_csv = tmp_path / "out" / "analysis.csv"
        result = runner.invoke(
            app,
            ["analyze", "--input", valid_input, "--output", str(out_json),
             "--csv", str(out_csv), "--config", config_file],
        )
        assert result.exit_code == 0, result.output
        assert "=== Portfolio Summary ===" in result.output
        assert "[OK] Analysed 1 opportunities." in result.output

        data = json.loads(out_json.read_text(encoding="utf-8"))
        assert data["matched_opportunities"] == 1
        assert data["analyses"][0]["matches"][0]["resource_id"] == "prod-01"

        with out_csv.open(encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["opportunity_id"] == "opp-1"
        assert rows[0]["tier"] == "evaluate"

    def test_engine_error_exits_1(self, config_file, sample_input_document, input_file):
        sample_input_document["opportunities"][0]["revenue_potential"] = 0
        path = input_file(sample_input_document)
        result = runner.invoke(app, ["analyze", "--input", str(path), "--config", config_file])
        assert result.exit_code == 1
        assert "[ERROR]" in result.output
