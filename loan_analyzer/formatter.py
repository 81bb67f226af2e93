"""Output helpers for the loan analyzer.

This module provides simple functions to render schedules, totals and
analysis results in a tabular text format using built-in printing and string
formatting.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Sequence

from .data_models import InversionResult, ScheduleEntry, Totals

# Rows shown at each end of a long schedule.
HEAD_ROWS = 12
TAIL_ROWS = 3


def print_totals(monthly_payment: Decimal, totals: Totals, term_months: int) -> None:
    """Print the payment and aggregate totals of a loan."""
    print("Summary")
    print("-" * 72)
    print(f"Monthly payment    : {monthly_payment:.2f}")
    print(f"Total payment      : {totals.total_payment:.2f}")
    print(f"Total interest     : {totals.total_interest:.2f}")
    print(f"Term (months)      : {term_months}")
    print("-" * 72)


def _schedule_row(entry: ScheduleEntry) -> str:
    return "\t".join(
        [
            str(entry.month),
            entry.payment_date.isoformat(),
            f"{entry.payment:.2f}",
            f"{entry.principal:.2f}",
            f"{entry.interest:.2f}",
            f"{entry.remaining_balance:.2f}",
        ]
    )


def print_schedule(schedule: Sequence[ScheduleEntry], compact: bool = True) -> None:
    """Print the amortization schedule as a simple table.

    Parameters
    ----------
    schedule: Sequence[ScheduleEntry]
        The schedule entries to print.
    compact: bool
        When True and the schedule is longer than fifteen months, only the
        first twelve and the last three rows are printed, with a marker for
        the months left out.
    """
    print("\t".join(["Month", "Date", "Payment", "Principal", "Interest", "Balance"]))
    rows: List[ScheduleEntry] = list(schedule)
    if compact and len(rows) > HEAD_ROWS + TAIL_ROWS:
        for entry in rows[:HEAD_ROWS]:
            print(_schedule_row(entry))
        print(f"... {len(rows) - HEAD_ROWS - TAIL_ROWS} months omitted ...")
        for entry in rows[-TAIL_ROWS:]:
            print(_schedule_row(entry))
        return
    for entry in rows:
        print(_schedule_row(entry))


def print_entry(entry: ScheduleEntry) -> None:
    print(f"Month {entry.month}")
    print("-" * 72)
    print(f"Payment date       : {entry.payment_date.isoformat()}")
    print(f"Payment            : {entry.payment:.2f}")
    print(f"Principal          : {entry.principal:.2f}")
    print(f"Interest           : {entry.interest:.2f}")
    print(f"Remaining balance  : {entry.remaining_balance:.2f}")
    print("-" * 72)


def print_analysis(result: InversionResult) -> None:
    """Print the outcome of an existing-loan analysis."""
    print("Analysis")
    print("-" * 72)
    print(f"Estimated rate     : {result.estimated_rate:.2f}%")
    print(f"Payoff date        : {result.payoff_date.isoformat()}")
    print(f"Remaining months   : {result.remaining_months}")
    print(f"Convention         : {result.convention.value}")
    print(f"Principal          : {result.principal_amount:.2f}")
    print("-" * 72)
