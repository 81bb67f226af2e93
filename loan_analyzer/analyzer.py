"""Inverse calculations on an existing loan.

Given what a borrower can observe about a loan (the monthly payment, the
amount borrowed or still owed, roughly how long it runs) this module
estimates the implied interest rate by Newton-Raphson iteration on the
payment formula, then simulates the remaining payments to find the payoff
date.

The equal-principal rate fit only matches the *first* month's payment. Real
equal-principal payments decline every month, so an observed later payment
will bias the estimate low. This is the intended model, not a bug.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from .data_models import InversionResult, LoanObservation, RepaymentConvention
from .engine import (
    ConventionLike,
    annuity_payment,
    decimal_input,
    first_principal_payment,
    months_input,
)
from .exceptions import (
    AnalysisFailedError,
    ExcessiveTermError,
    InvalidInputError,
    UnpayableLoanError,
)
from .utils import Number, add_months, round_money, to_decimal

logger = logging.getLogger(__name__)

INITIAL_MONTHLY_RATE = Decimal("0.005")
TOLERANCE = Decimal("1e-8")
MAX_ITERATIONS = 100
DERIVATIVE_STEP = Decimal("1e-8")
MIN_DERIVATIVE = Decimal("1e-10")
MIN_MONTHLY_RATE = Decimal("1e-10")
MAX_MONTHLY_RATE = Decimal("0.5")

MAX_PAYOFF_MONTHS = 600  # 50 years
DAYS_PER_MONTH = 30.44
DEFAULT_ASSUMED_TERM_MONTHS = 12

# Residual balances below half a cent are treated as paid off.
_RESIDUAL = Decimal("0.005")


def estimate_interest_rate(
    monthly_payment: Number,
    principal: Number,
    months: int,
    convention: ConventionLike,
) -> Decimal:
    """Estimate the annual interest rate (percent) implied by a payment.

    Solves ``payment(r) - monthly_payment = 0`` for the monthly rate ``r``
    with Newton-Raphson, starting from 0.5 % a month. After every step ``r``
    is clamped to ``[1e-10, 0.5]``. Failing to converge is not an error: the
    last estimate is returned.

    Raises
    ------
    InvalidInputError
        If the payment, principal or months is not positive.
    UnsupportedConventionError
        If ``convention`` is not recognised.
    """
    payment = decimal_input(monthly_payment, "monthly payment")
    amount = decimal_input(principal, "principal")
    months = months_input(months, "months")
    if payment <= 0 or amount <= 0 or months <= 0:
        raise InvalidInputError("Payment, principal and months must be positive")
    convention = RepaymentConvention.parse(convention)

    if convention is RepaymentConvention.EQUAL_PAYMENT:
        def model(r: Decimal) -> Decimal:
            return annuity_payment(amount, r, months)

        def slope(r: Decimal, error: Decimal) -> Decimal:
            return (model(r + DERIVATIVE_STEP) - payment - error) / DERIVATIVE_STEP
    else:
        def model(r: Decimal) -> Decimal:
            return first_principal_payment(amount, r, months)

        def slope(r: Decimal, error: Decimal) -> Decimal:
            return amount

    r = INITIAL_MONTHLY_RATE
    converged = False
    iterations = 0
    for iterations in range(1, MAX_ITERATIONS + 1):
        error = model(r) - payment
        if abs(error) < TOLERANCE:
            converged = True
            break
        derivative = slope(r, error)
        if abs(derivative) < MIN_DERIVATIVE:
            break
        r = r - error / derivative
        r = min(max(r, MIN_MONTHLY_RATE), MAX_MONTHLY_RATE)

    logger.debug(
        "Rate estimate for %s: r=%s after %d iterations (converged=%s)",
        convention.value,
        r,
        iterations,
        converged,
    )
    return max(Decimal("0"), r * 12 * 100)


def simulate_payoff(
    principal: Number,
    monthly_payment: Number,
    annual_rate: Number,
    start_date: date,
    convention: ConventionLike,
) -> date:
    """Return the date on which a fixed monthly payment clears the balance.

    Interest accrues on the running balance at ``annual_rate``; whatever the
    payment leaves over reduces the balance. Both conventions are simulated
    with the same fixed payment.

    Raises
    ------
    UnpayableLoanError
        If in some month the payment does not exceed the interest.
    ExcessiveTermError
        If the balance is still outstanding after 600 months.
    """
    balance = decimal_input(principal, "principal")
    payment = decimal_input(monthly_payment, "monthly payment")
    rate = decimal_input(annual_rate, "annual rate") / Decimal(100) / Decimal(12)
    RepaymentConvention.parse(convention)
    if balance <= 0:
        raise InvalidInputError("Principal must be positive")
    if payment <= 0:
        raise InvalidInputError("Monthly payment must be positive")
    if rate < 0:
        raise InvalidInputError("Annual rate must not be negative")

    month = 0
    while balance > 0 and month < MAX_PAYOFF_MONTHS:
        month += 1
        interest_payment = balance * rate
        principal_payment = payment - interest_payment
        if principal_payment <= 0:
            raise UnpayableLoanError(
                f"Monthly payment {payment} does not cover interest {round_money(interest_payment)}"
            )
        balance -= principal_payment
        if balance < _RESIDUAL:
            balance = Decimal("0")

    if balance > 0:
        raise ExcessiveTermError(f"Loan is not repaid within {MAX_PAYOFF_MONTHS} months")

    logger.debug("Simulated payoff after %d months", month)
    return add_months(start_date, month)


def detect_convention_from_trend(payment_history: Sequence[Number]) -> RepaymentConvention:
    """Guess the convention from the direction payments move in.

    A consistently falling payment (mean month-over-month change below
    -0.001) points to equal-principal; anything else is equal-payment.
    """
    if not payment_history or len(payment_history) < 2:
        return RepaymentConvention.EQUAL_PAYMENT

    values = [to_decimal(p) for p in payment_history]
    differences = [b - a for a, b in zip(values, values[1:])]
    average_change = sum(differences, Decimal("0")) / len(differences)
    if average_change < Decimal("-0.001"):
        return RepaymentConvention.EQUAL_PRINCIPAL
    return RepaymentConvention.EQUAL_PAYMENT


def derive_principal(monthly_payment: Number, annual_rate: Number, term_months: int) -> Decimal:
    """Return the principal an equal-payment loan with these terms must have."""
    payment = decimal_input(monthly_payment, "monthly payment")
    rate = decimal_input(annual_rate, "annual rate")
    term_months = months_input(term_months)
    if payment <= 0 or term_months <= 0:
        raise InvalidInputError("Payment and term must be positive")
    if rate < 0:
        raise InvalidInputError("Annual rate must not be negative")
    rate_per_month = rate / Decimal(100) / Decimal(12)
    if rate_per_month == 0:
        return payment * term_months
    # annuity_payment is linear in principal
    return payment / annuity_payment(Decimal(1), rate_per_month, term_months)


def _resolve_convention(convention: ConventionLike) -> RepaymentConvention:
    # No payment history is available here, so "auto" cannot run either
    # detector and falls back to equal-payment.
    if isinstance(convention, str) and convention.strip().lower() == "auto":
        return RepaymentConvention.EQUAL_PAYMENT
    return RepaymentConvention.parse(convention)


def analyze_current_loan(
    params: LoanObservation,
    convention: ConventionLike = "auto",
    today: Optional[date] = None,
) -> InversionResult:
    """Estimate the rate, payoff date and remaining term of an existing loan.

    When ``params.principal`` is known the rate is fitted over
    ``params.term_months`` (12 if omitted) and payoff is simulated from the
    loan's start date. Otherwise ``params.remaining_balance`` is used with a
    12-month fit and payoff is simulated from ``today``.

    Any failure in the estimation or simulation is re-raised as
    ``AnalysisFailedError`` carrying the original exception as its cause.
    """
    if not params.start_date or not params.monthly_payment:
        raise InvalidInputError("Start date and monthly payment are required")

    resolved = _resolve_convention(convention)
    today = today or date.today()

    try:
        if params.principal:
            basis = to_decimal(params.principal)
            months = params.term_months or DEFAULT_ASSUMED_TERM_MONTHS
            simulation_start = params.start_date
        elif params.remaining_balance is not None:
            basis = to_decimal(params.remaining_balance)
            months = DEFAULT_ASSUMED_TERM_MONTHS
            simulation_start = today
        else:
            raise InvalidInputError("Either principal or remaining balance is required")

        estimated_rate = estimate_interest_rate(params.monthly_payment, basis, months, resolved)
        payoff_date = simulate_payoff(
            basis, params.monthly_payment, estimated_rate, simulation_start, resolved
        )
    except ValueError as exc:
        raise AnalysisFailedError(f"Analysis failed: {exc}") from exc

    remaining_months = math.ceil((payoff_date - today).days / DAYS_PER_MONTH)

    return InversionResult(
        estimated_rate=round_money(estimated_rate),
        payoff_date=payoff_date,
        remaining_months=remaining_months,
        principal_amount=round_money(basis),
        convention=resolved,
    )
