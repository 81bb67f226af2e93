"""Command‑line interface for the loan analyzer.

This module uses the ``click`` library to implement a multi‑command
interface. Users can compute amortization schedules, look up a single month,
estimate the interest rate behind an observed payment or analyse an existing
loan. Results can be printed to the terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
import math
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

import click

from .analyzer import analyze_current_loan, derive_principal, estimate_interest_rate
from .data_models import InversionResult, LoanObservation, ScheduleEntry, Totals
from .engine import calculate_totals, compute_monthly_payment, generate_schedule, get_monthly_details
from .exceptions import LoanAnalyzerError
from .formatter import print_analysis, print_entry, print_schedule, print_totals
from .utils import parse_date, round_money, to_decimal

logger = logging.getLogger(__name__)

CONVENTION_CHOICES = ["equal_payment", "equal_principal"]

T = TypeVar("T")


def parse_amount(value: str) -> float:
    """Parse a numeric string with optional suffixes.

    Accepts plain floats ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000). Returns a float.
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = 1.0
    if value.endswith("k"):
        factor = 1_000.0
        value = value[:-1]
    elif value.endswith("m"):
        factor = 1_000_000.0
        value = value[:-1]
    try:
        amount = float(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")
    if not math.isfinite(amount):
        raise click.BadParameter(f"Invalid amount: {value}")
    return amount


def parse_start_date(value: Optional[str]) -> date:
    """Parse a start date option; today when omitted."""
    if not value:
        return date.today()
    try:
        return parse_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def term_in_months(years: int, months: int) -> int:
    total = years * 12 + months
    if total <= 0:
        raise click.BadParameter("Loan term must be at least one month")
    return total


def run_engine(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call an engine function, reporting engine errors as click errors."""
    try:
        return func(*args, **kwargs)
    except LoanAnalyzerError as exc:
        logger.debug("Engine call %s failed", func.__name__, exc_info=True)
        raise click.ClickException(str(exc))


def entry_to_dict(entry: ScheduleEntry) -> Dict[str, Any]:
    return {
        "month": entry.month,
        "payment_date": entry.payment_date.isoformat(),
        "payment": float(entry.payment),
        "principal": float(entry.principal),
        "interest": float(entry.interest),
        "remaining_balance": float(entry.remaining_balance),
    }


def totals_to_dict(totals: Totals) -> Dict[str, float]:
    return {
        "total_payment": float(totals.total_payment),
        "total_interest": float(totals.total_interest),
    }


def result_to_dict(result: InversionResult) -> Dict[str, Any]:
    return {
        "estimated_rate": float(result.estimated_rate),
        "payoff_date": result.payoff_date.isoformat(),
        "remaining_months": result.remaining_months,
        "principal_amount": float(result.principal_amount),
        "convention": result.convention.value,
    }


def export_to_json(path: Path, data: Dict[str, Any]) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: List[ScheduleEntry]) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Month",
        "Payment_Date",
        "Payment",
        "Principal",
        "Interest",
        "Remaining_Balance",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule:
            writer.writerow(
                [
                    e.month,
                    e.payment_date.isoformat(),
                    f"{e.payment:.2f}",
                    f"{e.principal:.2f}",
                    f"{e.interest:.2f}",
                    f"{e.remaining_balance:.2f}",
                ]
            )


def loan_options(func: Callable) -> Callable:
    """Attach the options describing a loan's terms."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (accepts k/m suffixes)"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)"),
        click.option("--years", "-y", "years", type=int, default=0, show_default=True, help="Loan term in years"),
        click.option("--months", "-m", "months", type=int, default=0, show_default=True, help="Additional months of term"),
        click.option("--type", "convention", type=click.Choice(CONVENTION_CHOICES), default="equal_payment", help="Repayment convention"),
        click.option("--start-date", "-s", "start_date", help="First payment date (YYYY-MM-DD or YYYY-MM); defaults to today"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Loan amortization and interest-rate analysis."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--full", is_flag=True, help="Print every month instead of a compact table")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: float,
    years: int,
    months: int,
    convention: str,
    start_date: Optional[str],
    full: bool,
    output: Optional[str],
) -> None:
    """Compute and print the amortization schedule."""
    amount = parse_amount(principal)
    term = term_in_months(years, months)
    start = parse_start_date(start_date)

    payment = run_engine(compute_monthly_payment, amount, rate, term, convention)
    entries = run_engine(generate_schedule, amount, rate, term, start, convention)
    totals = calculate_totals(entries)

    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(
                path,
                {
                    "monthly_payment": float(round_money(payment)),
                    "totals": totals_to_dict(totals),
                    "schedule": [entry_to_dict(e) for e in entries],
                },
            )
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, entries)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
        return

    print_totals(round_money(payment), totals, term)
    print_schedule(entries, compact=not full)


@cli.command()
@loan_options
@click.option("--month", "target_month", required=True, type=int, help="Month to show (1-based)")
def details(
    principal: str,
    rate: float,
    years: int,
    months: int,
    convention: str,
    start_date: Optional[str],
    target_month: int,
) -> None:
    """Show the payment breakdown for a single month."""
    entry = run_engine(
        get_monthly_details,
        parse_amount(principal),
        rate,
        term_in_months(years, months),
        target_month,
        parse_start_date(start_date),
        convention,
    )
    print_entry(entry)


@cli.command("estimate-rate")
@click.option("--payment", "payment", required=True, help="Observed monthly payment")
@click.option("--principal", "-p", "principal", required=True, help="Loan amount (accepts k/m suffixes)")
@click.option("--months", "-m", "months", required=True, type=int, help="Loan term in months")
@click.option("--type", "convention", type=click.Choice(CONVENTION_CHOICES), default="equal_payment", help="Repayment convention")
def estimate_rate(payment: str, principal: str, months: int, convention: str) -> None:
    """Estimate the annual interest rate behind a monthly payment."""
    rate = run_engine(
        estimate_interest_rate, parse_amount(payment), parse_amount(principal), months, convention
    )
    click.echo(f"Estimated rate     : {round_money(rate):.2f}%")


@cli.command("principal")
@click.option("--payment", "payment", required=True, help="Monthly payment")
@click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)")
@click.option("--months", "-m", "months", required=True, type=int, help="Loan term in months")
def principal_command(payment: str, rate: float, months: int) -> None:
    """Derive the principal of an equal-payment loan."""
    amount = run_engine(derive_principal, parse_amount(payment), rate, months)
    click.echo(f"Principal          : {round_money(amount):.2f}")


@cli.command()
@click.option("--start-date", "-s", "start_date", required=True, help="Loan start date (YYYY-MM-DD or YYYY-MM)")
@click.option("--payment", "payment", required=True, help="Observed monthly payment")
@click.option("--principal", "-p", "principal", help="Original loan amount")
@click.option("--remaining-balance", "remaining_balance", help="Balance still owed")
@click.option("--months", "-m", "months", type=int, help="Observed or assumed term in months")
@click.option("--type", "convention", type=click.Choice(["auto"] + CONVENTION_CHOICES), default="auto", help="Repayment convention")
@click.option("--output", "output", type=str, help="Output file path (.json)")
def analyze(
    start_date: str,
    payment: str,
    principal: Optional[str],
    remaining_balance: Optional[str],
    months: Optional[int],
    convention: str,
    output: Optional[str],
) -> None:
    """Estimate rate, payoff date and remaining term of an existing loan."""
    if not principal and not remaining_balance:
        raise click.BadParameter("Provide --principal or --remaining-balance")
    observation = LoanObservation(
        start_date=parse_start_date(start_date),
        monthly_payment=to_decimal(parse_amount(payment)),
        principal=to_decimal(parse_amount(principal)) if principal else None,
        remaining_balance=to_decimal(parse_amount(remaining_balance)) if remaining_balance else None,
        term_months=months,
    )
    result = run_engine(analyze_current_loan, observation, convention)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Analysis export must use .json extension")
        export_to_json(path, {"analysis": result_to_dict(result)})
        click.echo(f"Analysis exported to {path}")
    else:
        print_analysis(result)


if __name__ == "__main__":
    cli()
