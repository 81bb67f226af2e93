"""Data models for the loan analyzer.

This module defines the value objects passed between the engines and their
callers: the repayment convention, the terms of a loan, the individual
schedule entries, aggregate totals and the inputs/outputs of the rate
inversion. All of them are frozen dataclasses; nothing here outlives a single
calculation call.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from .exceptions import InvalidInputError, UnsupportedConventionError


class RepaymentConvention(str, Enum):
    """How each monthly payment is split between principal and interest.

    ``EQUAL_PAYMENT`` keeps the total payment constant (annuity).
    ``EQUAL_PRINCIPAL`` keeps the principal portion constant, so the total
    payment declines as the balance shrinks.
    """

    EQUAL_PAYMENT = "equal_payment"
    EQUAL_PRINCIPAL = "equal_principal"

    @classmethod
    def parse(cls, value: Union["RepaymentConvention", str]) -> "RepaymentConvention":
        """Return the convention matching ``value``.

        Accepts an enum member, its tag (case-insensitive) or one of the
        aliases ``annuity``/``decreasing``. Anything else raises
        ``UnsupportedConventionError``.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise UnsupportedConventionError(f"Unsupported repayment convention: {value!r}")
        normalized = value.strip().lower()
        if normalized in ("equal_payment", "annuity"):
            return cls.EQUAL_PAYMENT
        if normalized in ("equal_principal", "decreasing"):
            return cls.EQUAL_PRINCIPAL
        raise UnsupportedConventionError(f"Unsupported repayment convention: {value!r}")


@dataclass(frozen=True)
class LoanTerms:
    """Terms of a fixed-rate loan.

    Attributes
    ----------
    principal: Decimal
        Amount borrowed. Must be positive.
    annual_rate: Decimal
        Annual nominal interest rate in percent (``3.0`` means 3 %).
    term_months: int
        Number of monthly payments.
    start_date: date
        Date of the first payment.
    convention: RepaymentConvention
        Repayment convention used to build the schedule.
    """

    principal: Decimal
    annual_rate: Decimal
    term_months: int
    start_date: date
    convention: RepaymentConvention

    def validate(self) -> None:
        if self.principal <= 0:
            raise InvalidInputError("Principal must be positive")
        if self.annual_rate < 0:
            raise InvalidInputError("Annual rate must not be negative")
        if self.term_months <= 0:
            raise InvalidInputError("Term must be positive")

    @property
    def monthly_rate(self) -> Decimal:
        return self.annual_rate / Decimal(100) / Decimal(12)


@dataclass(frozen=True)
class ScheduleEntry:
    """One month of an amortization schedule.

    Monetary fields are rounded to two decimal places when the entry is
    created; the final entry of a schedule always has a zero balance.
    """

    month: int
    payment_date: date
    payment: Decimal
    principal: Decimal
    interest: Decimal
    remaining_balance: Decimal


@dataclass(frozen=True)
class Totals:
    total_payment: Decimal
    total_interest: Decimal


@dataclass(frozen=True)
class LoanObservation:
    """What is known about an existing loan.

    ``start_date`` and ``monthly_payment`` are required. Either ``principal``
    or ``remaining_balance`` should be given; ``principal`` wins when both are
    present. ``term_months`` is the observed or assumed number of months used
    when fitting the rate; it defaults to 12 when omitted.
    """

    start_date: Optional[date]
    monthly_payment: Optional[Decimal]
    principal: Optional[Decimal] = None
    remaining_balance: Optional[Decimal] = None
    term_months: Optional[int] = None


@dataclass(frozen=True)
class InversionResult:
    estimated_rate: Decimal  # annual percent, two decimals
    payoff_date: date
    remaining_months: int
    principal_amount: Decimal
    convention: RepaymentConvention
