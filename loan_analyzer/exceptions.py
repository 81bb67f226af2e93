"""Error types raised by the loan engines.

All errors derive from ``LoanAnalyzerError``, which is itself a ``ValueError``
so callers that only care about "bad input" can keep catching ``ValueError``.
The ``kind`` attribute is a stable identifier used by the presentation layers.
"""


class LoanAnalyzerError(ValueError):
    """Base class for every error raised by the calculation engines."""

    kind = "loan_error"


class InvalidInputError(LoanAnalyzerError):
    """A non-positive amount or term, or a negative rate, was supplied."""

    kind = "invalid_input"


class UnsupportedConventionError(LoanAnalyzerError):
    """The repayment convention tag is not recognised."""

    kind = "unsupported_convention"


class OutOfRangeError(LoanAnalyzerError):
    """A requested month lies outside ``[1, term_months]``."""

    kind = "out_of_range"


class UnpayableLoanError(LoanAnalyzerError):
    """The payment does not cover the accruing interest."""

    kind = "unpayable_loan"


class ExcessiveTermError(LoanAnalyzerError):
    """The simulated payoff needs more months than the simulation ceiling."""

    kind = "excessive_term"


class AnalysisFailedError(LoanAnalyzerError):
    """Wraps any failure raised while analysing an existing loan.

    The original exception is kept as ``__cause__``.
    """

    kind = "analysis_failed"
