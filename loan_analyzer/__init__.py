"""Loan amortization and interest-rate inversion engines.

Common imports:
    from loan_analyzer import generate_schedule, estimate_interest_rate, analyze_current_loan
"""

from .analyzer import (
    analyze_current_loan,
    derive_principal,
    detect_convention_from_trend,
    estimate_interest_rate,
    simulate_payoff,
)
from .data_models import (
    InversionResult,
    LoanObservation,
    LoanTerms,
    RepaymentConvention,
    ScheduleEntry,
    Totals,
)
from .engine import (
    calculate_totals,
    compute_monthly_payment,
    detect_convention,
    generate_schedule,
    get_monthly_details,
)
from .exceptions import (
    AnalysisFailedError,
    ExcessiveTermError,
    InvalidInputError,
    LoanAnalyzerError,
    OutOfRangeError,
    UnpayableLoanError,
    UnsupportedConventionError,
)

__all__ = [
    "AnalysisFailedError",
    "ExcessiveTermError",
    "InvalidInputError",
    "InversionResult",
    "LoanAnalyzerError",
    "LoanObservation",
    "LoanTerms",
    "OutOfRangeError",
    "RepaymentConvention",
    "ScheduleEntry",
    "Totals",
    "UnpayableLoanError",
    "UnsupportedConventionError",
    "analyze_current_loan",
    "calculate_totals",
    "compute_monthly_payment",
    "derive_principal",
    "detect_convention",
    "detect_convention_from_trend",
    "estimate_interest_rate",
    "generate_schedule",
    "get_monthly_details",
    "simulate_payoff",
]
