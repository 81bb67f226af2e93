"""
Tests for the command-line interface.
"""

import csv
import json

import click
import pytest

from loan_analyzer.main import cli, parse_amount


class TestParseAmount:
    """Test the k/m amount shorthand."""

    @pytest.mark.parametrize(
        "text,expected",
        [("500000", 500_000.0), ("500k", 500_000.0), ("3m", 3_000_000.0), ("1,250.50", 1250.5)],
    )
    def test_valid(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", ["lots", "nan", "inf", "-infk"])
    def test_invalid(self, text):
        with pytest.raises(click.BadParameter):
            parse_amount(text)


class TestScheduleCommand:
    """Test the schedule command."""

    def test_prints_summary_and_rows(self, runner):
        result = runner.invoke(
            cli,
            ["schedule", "-p", "1200", "-r", "12", "-m", "12", "--type", "equal_principal", "-s", "2024-01-01"],
        )
        assert result.exit_code == 0, result.output
        assert "Monthly payment    : 112.00" in result.output
        assert "Total interest     : 78.00" in result.output
        assert "1\t2024-01-01\t112.00\t100.00\t12.00\t1100.00" in result.output
        assert "omitted" not in result.output

    def test_long_schedule_is_compacted(self, runner):
        result = runner.invoke(cli, ["schedule", "-p", "3m", "-r", "3", "-y", "30", "-s", "2024-01"])
        assert result.exit_code == 0, result.output
        assert "... 345 months omitted ..." in result.output
        assert "\t2053-12-01\t" in result.output

    def test_full_flag_prints_every_month(self, runner):
        result = runner.invoke(cli, ["schedule", "-p", "3m", "-r", "3", "-y", "30", "-s", "2024-01", "--full"])
        assert result.exit_code == 0, result.output
        assert "omitted" not in result.output
        assert "\t2030-06-01\t" in result.output

    def test_json_export(self, runner, tmp_path):
        path = tmp_path / "schedule.json"
        result = runner.invoke(
            cli,
            [
                "schedule", "-p", "1200", "-r", "12", "-m", "12",
                "--type", "equal_principal", "-s", "2024-01-01", "--output", str(path),
            ],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["monthly_payment"] == 112.0
        assert data["totals"] == {"total_payment": 1278.0, "total_interest": 78.0}
        assert len(data["schedule"]) == 12
        assert data["schedule"][-1]["remaining_balance"] == 0.0

    def test_csv_export(self, runner, tmp_path):
        path = tmp_path / "schedule.csv"
        result = runner.invoke(
            cli, ["schedule", "-p", "1200", "-r", "0", "-m", "12", "-s", "2024-01-01", "--output", str(path)]
        )
        assert result.exit_code == 0, result.output
        with path.open(encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0][0] == "Month"
        assert len(rows) == 13
        assert rows[1] == ["1", "2024-01-01", "100.00", "100.00", "0.00", "1100.00"]

    def test_unsupported_export_format(self, runner, tmp_path):
        result = runner.invoke(
            cli, ["schedule", "-p", "1200", "-r", "3", "-m", "12", "--output", str(tmp_path / "out.xlsx")]
        )
        assert result.exit_code == 2

    def test_zero_term_rejected(self, runner):
        result = runner.invoke(cli, ["schedule", "-p", "1200", "-r", "3"])
        assert result.exit_code == 2

    def test_engine_error_reported(self, runner):
        result = runner.invoke(cli, ["schedule", "-p", "1200", "-r", "-3", "-m", "12"])
        assert result.exit_code == 1
        assert "Annual rate must not be negative" in result.output

    def test_non_finite_rate_reported(self, runner):
        result = runner.invoke(cli, ["schedule", "-p", "1200", "-r", "nan", "-m", "12"])
        assert result.exit_code == 1
        assert "Invalid annual rate" in result.output


class TestDetailsCommand:
    """Test the details command."""

    def test_prints_month(self, runner):
        result = runner.invoke(
            cli,
            ["details", "-p", "1200", "-r", "12", "-m", "12", "--type", "equal_principal", "-s", "2024-01-31", "--month", "2"],
        )
        assert result.exit_code == 0, result.output
        assert "Payment date       : 2024-02-29" in result.output
        assert "Payment            : 111.00" in result.output

    def test_out_of_range(self, runner):
        result = runner.invoke(cli, ["details", "-p", "1200", "-r", "3", "-m", "12", "--month", "13"])
        assert result.exit_code == 1
        assert "outside 1..12" in result.output


class TestRateCommands:
    """Test estimate-rate and principal."""

    def test_estimate_rate(self, runner):
        result = runner.invoke(cli, ["estimate-rate", "--payment", "12652.36", "-p", "3m", "--months", "360"])
        assert result.exit_code == 0, result.output
        assert "Estimated rate     : 3.00%" in result.output

    def test_estimate_rate_invalid(self, runner):
        result = runner.invoke(cli, ["estimate-rate", "--payment", "0", "-p", "3m", "--months", "360"])
        assert result.exit_code == 1

    def test_principal(self, runner):
        result = runner.invoke(cli, ["principal", "--payment", "100", "-r", "0", "-m", "12"])
        assert result.exit_code == 0, result.output
        assert "Principal          : 1200.00" in result.output


class TestAnalyzeCommand:
    """Test the analyze command."""

    def test_prints_analysis(self, runner):
        result = runner.invoke(cli, ["analyze", "-s", "2023-01-01", "--payment", "100", "-p", "1200"])
        assert result.exit_code == 0, result.output
        assert "Payoff date        : 2024-01-01" in result.output
        assert "Convention         : equal_payment" in result.output

    def test_json_export(self, runner, tmp_path):
        path = tmp_path / "analysis.json"
        result = runner.invoke(
            cli,
            ["analyze", "-s", "2020-01-01", "--payment", "12652.36", "-p", "3m", "--months", "360", "--output", str(path)],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(path.read_text(encoding="utf-8"))["analysis"]
        assert abs(data["estimated_rate"] - 3.0) <= 0.02
        assert data["payoff_date"] == "2050-01-01"
        assert data["principal_amount"] == 3_000_000.0

    def test_requires_principal_or_balance(self, runner):
        result = runner.invoke(cli, ["analyze", "-s", "2023-01-01", "--payment", "100"])
        assert result.exit_code == 2

    def test_failure_is_reported(self, runner):
        result = runner.invoke(cli, ["analyze", "-s", "2024-01-01", "--payment", "1000", "-p", "1m"])
        assert result.exit_code == 1
        assert "Analysis failed" in result.output
