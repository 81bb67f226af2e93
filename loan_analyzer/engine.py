"""Forward calculation engine for the loan analyzer.

This module implements the closed-form amortization logic for the two
supported repayment conventions. Given the terms of a loan it computes the
monthly payment, the full month-by-month schedule and aggregate totals. It
also provides a heuristic that guesses the repayment convention from a
history of observed payments.

All functions are pure: amounts go in as numbers and come back as ``Decimal``
values or frozen dataclasses.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from decimal import Decimal, getcontext
from typing import Iterable, List, Sequence, Union

from .data_models import LoanTerms, RepaymentConvention, ScheduleEntry, Totals
from .exceptions import InvalidInputError, OutOfRangeError
from .utils import Number, add_months, round_money, to_decimal, to_int

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

# Coefficient of variation below which payments count as "constant".
CONSTANT_PAYMENT_CV_THRESHOLD = 0.05

ConventionLike = Union[RepaymentConvention, str]


def decimal_input(value: Number, name: str) -> Decimal:
    """Convert an engine argument to ``Decimal``, raising ``InvalidInputError``."""
    try:
        return to_decimal(value)
    except ValueError as exc:
        raise InvalidInputError(f"Invalid {name}: {value}") from exc


def months_input(value: Number, name: str = "term") -> int:
    try:
        return to_int(value)
    except ValueError as exc:
        raise InvalidInputError(f"The {name} must be a whole number of months: {value}") from exc


def annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the annuity (equal installment) monthly payment for a loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if rate_per_month == 0:
        return principal / Decimal(term)
    factor = (1 + rate_per_month) ** term
    return principal * (rate_per_month * factor) / (factor - 1)


def first_principal_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the first (largest) payment of an equal-principal loan."""
    return principal / Decimal(term) + principal * rate_per_month


def _build_terms(
    principal: Number,
    annual_rate: Number,
    term_months: int,
    start_date: date,
    convention: ConventionLike,
) -> LoanTerms:
    terms = LoanTerms(
        principal=decimal_input(principal, "principal"),
        annual_rate=decimal_input(annual_rate, "annual rate"),
        term_months=months_input(term_months),
        start_date=start_date,
        convention=RepaymentConvention.parse(convention),
    )
    terms.validate()
    return terms


def compute_monthly_payment(
    principal: Number,
    annual_rate: Number,
    term_months: int,
    convention: ConventionLike,
) -> Decimal:
    """Return the monthly payment for a loan.

    For ``EQUAL_PAYMENT`` this is the constant installment. For
    ``EQUAL_PRINCIPAL`` payments decline every month, so the first-month
    payment is returned as the representative value.

    Raises
    ------
    InvalidInputError
        If the principal or term is not positive or the rate is negative.
    UnsupportedConventionError
        If ``convention`` is not recognised.
    """
    terms = _build_terms(principal, annual_rate, term_months, date.min, convention)
    rate = terms.monthly_rate
    if terms.convention is RepaymentConvention.EQUAL_PAYMENT:
        return annuity_payment(terms.principal, rate, terms.term_months)
    return first_principal_payment(terms.principal, rate, terms.term_months)


def generate_schedule(
    principal: Number,
    annual_rate: Number,
    term_months: int,
    start_date: date,
    convention: ConventionLike,
) -> List[ScheduleEntry]:
    """Compute the amortization schedule for a loan.

    Parameters
    ----------
    principal: Number
        Amount borrowed.
    annual_rate: Number
        Annual interest rate in percent.
    term_months: int
        Number of monthly payments.
    start_date: date
        Date of the first payment. Later payments fall on the same day of
        each following month, clamped to the month's last day.
    convention: RepaymentConvention or str
        ``equal_payment`` or ``equal_principal``.

    Returns
    -------
    List[ScheduleEntry]
        One entry per month. The running balance is carried unrounded and
        entries are rounded to cents when emitted. The last entry repays
        exactly what the earlier rounded principal parts left over, so they
        sum to the principal, and its balance is zero.
    """
    terms = _build_terms(principal, annual_rate, term_months, start_date, convention)
    rate = terms.monthly_rate
    n = terms.term_months

    if terms.convention is RepaymentConvention.EQUAL_PAYMENT:
        fixed_payment = annuity_payment(terms.principal, rate, n)
    else:
        constant_principal = terms.principal / Decimal(n)

    schedule: List[ScheduleEntry] = []
    balance = terms.principal
    repaid = Decimal("0.00")
    for month in range(1, n + 1):
        interest_payment = balance * rate
        if terms.convention is RepaymentConvention.EQUAL_PAYMENT:
            payment = fixed_payment
            principal_payment = payment - interest_payment
        else:
            principal_payment = constant_principal
            payment = principal_payment + interest_payment

        balance -= principal_payment
        principal_cents = round_money(principal_payment)
        interest_cents = round_money(interest_payment)
        payment_cents = round_money(payment)
        if month == n:
            # last row takes whatever the rounded rows left unpaid
            balance = Decimal("0")
            principal_cents = round_money(terms.principal) - repaid
            payment_cents = principal_cents + interest_cents
        repaid += principal_cents

        schedule.append(
            ScheduleEntry(
                month=month,
                payment_date=add_months(terms.start_date, month - 1),
                payment=payment_cents,
                principal=principal_cents,
                interest=interest_cents,
                remaining_balance=max(Decimal("0.00"), round_money(balance)),
            )
        )

    logger.debug(
        "Generated %d-month %s schedule for principal %s",
        n,
        terms.convention.value,
        terms.principal,
    )
    return schedule


def get_monthly_details(
    principal: Number,
    annual_rate: Number,
    term_months: int,
    target_month: int,
    start_date: date,
    convention: ConventionLike,
) -> ScheduleEntry:
    """Return the schedule entry for ``target_month`` (1-based).

    The full schedule is recomputed on every call.
    """
    if target_month < 1 or target_month > term_months:
        raise OutOfRangeError(f"Month {target_month} is outside 1..{term_months}")
    schedule = generate_schedule(principal, annual_rate, term_months, start_date, convention)
    return schedule[target_month - 1]


def calculate_totals(schedule: Iterable[ScheduleEntry]) -> Totals:
    """Sum the payments and interest of a schedule."""
    total_payment = Decimal("0")
    total_interest = Decimal("0")
    for entry in schedule:
        total_payment += entry.payment
        total_interest += entry.interest
    return Totals(
        total_payment=round_money(total_payment),
        total_interest=round_money(total_interest),
    )


def detect_convention(payment_history: Sequence[Number]) -> RepaymentConvention:
    """Guess the repayment convention from observed payments.

    Payments whose coefficient of variation (population standard deviation
    over mean) stays below 5 % are treated as an equal-payment loan; anything
    more variable is treated as equal-principal. With fewer than two samples
    there is nothing to compare and equal-payment is assumed.
    """
    if not payment_history or len(payment_history) < 2:
        return RepaymentConvention.EQUAL_PAYMENT

    values = [float(p) for p in payment_history]
    mean = sum(values) / len(values)
    if mean <= 0:
        return RepaymentConvention.EQUAL_PAYMENT
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    coefficient_of_variation = math.sqrt(variance) / mean

    if coefficient_of_variation < CONSTANT_PAYMENT_CV_THRESHOLD:
        return RepaymentConvention.EQUAL_PAYMENT
    return RepaymentConvention.EQUAL_PRINCIPAL
