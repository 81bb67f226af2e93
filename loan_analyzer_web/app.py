import os
from datetime import date
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from loan_analyzer.analyzer import analyze_current_loan, estimate_interest_rate
from loan_analyzer.data_models import LoanObservation
from loan_analyzer.engine import (
    calculate_totals,
    compute_monthly_payment,
    generate_schedule,
    get_monthly_details,
)
from loan_analyzer.exceptions import (
    AnalysisFailedError,
    ExcessiveTermError,
    LoanAnalyzerError,
    UnpayableLoanError,
)
from loan_analyzer.main import entry_to_dict, result_to_dict, totals_to_dict
from loan_analyzer.utils import parse_date, round_money, to_decimal, to_int

app = Flask(__name__)
app.config["MAX_SCHEDULE_ROWS"] = int(os.environ.get("LOAN_ANALYZER_MAX_SCHEDULE_ROWS", "600"))

# Loans that were valid input but cannot be amortized.
UNPROCESSABLE_ERRORS = (UnpayableLoanError, ExcessiveTermError, AnalysisFailedError)


class InvalidRequest(ValueError):
    """The request body is missing a field or holds a malformed value."""

    kind = "invalid_request"


def _payload() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidRequest("Request body must be a JSON object")
    return data


def _required(data: Dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise InvalidRequest(f"Missing required field: {key}")
    return value


def _optional_number(data: Dict[str, Any], key: str):
    value = data.get(key)
    if value is None or value == "":
        return None
    return _number(value, key)


def _number(value: Any, key: str):
    try:
        return to_decimal(value)
    except ValueError as exc:
        raise InvalidRequest(f"Invalid number for {key}: {value}") from exc


def _integer(value: Any, key: str) -> int:
    try:
        return to_int(value)
    except ValueError as exc:
        raise InvalidRequest(f"Invalid integer for {key}: {value}") from exc


def _date(value: Any, key: str) -> date:
    try:
        return parse_date(str(value))
    except ValueError as exc:
        raise InvalidRequest(f"Invalid date for {key}: {value}") from exc


def _start_date(data: Dict[str, Any]) -> date:
    value = data.get("start_date")
    return _date(value, "start_date") if value else date.today()


def _truncate(schedule: list) -> tuple[list, Optional[int]]:
    max_rows = app.config["MAX_SCHEDULE_ROWS"]
    if max_rows <= 0 or len(schedule) <= max_rows:
        return schedule, None
    return schedule[:max_rows], len(schedule) - max_rows


@app.errorhandler(InvalidRequest)
def _handle_invalid_request(exc: InvalidRequest):
    app.logger.info("Rejected request to %s: %s", request.path, exc)
    return jsonify({"error": exc.kind, "message": str(exc)}), 400


@app.errorhandler(LoanAnalyzerError)
def _handle_engine_error(exc: LoanAnalyzerError):
    status = 422 if isinstance(exc, UNPROCESSABLE_ERRORS) else 400
    app.logger.info("Engine rejected request to %s: %s", request.path, exc)
    return jsonify({"error": exc.kind, "message": str(exc)}), status


@app.get("/healthz")
def healthz():
    return jsonify({"status": "ok"})


@app.post("/api/schedule")
def schedule_view():
    data = _payload()
    principal = _number(_required(data, "principal"), "principal")
    rate = _number(_required(data, "rate"), "rate")
    term = _integer(_required(data, "term_months"), "term_months")
    convention = data.get("convention", "equal_payment")
    start = _start_date(data)

    payment = compute_monthly_payment(principal, rate, term, convention)
    entries = generate_schedule(principal, rate, term, start, convention)
    totals = calculate_totals(entries)
    shown, truncated = _truncate(entries)

    body: Dict[str, Any] = {
        "monthly_payment": float(round_money(payment)),
        "totals": totals_to_dict(totals),
        "schedule": [entry_to_dict(e) for e in shown],
    }
    if truncated:
        body["truncated"] = truncated
    return jsonify(body)


@app.post("/api/details")
def details_view():
    data = _payload()
    entry = get_monthly_details(
        _number(_required(data, "principal"), "principal"),
        _number(_required(data, "rate"), "rate"),
        _integer(_required(data, "term_months"), "term_months"),
        _integer(_required(data, "target_month"), "target_month"),
        _start_date(data),
        data.get("convention", "equal_payment"),
    )
    return jsonify(entry_to_dict(entry))


@app.post("/api/estimate-rate")
def estimate_rate_view():
    data = _payload()
    rate = estimate_interest_rate(
        _number(_required(data, "monthly_payment"), "monthly_payment"),
        _number(_required(data, "principal"), "principal"),
        _integer(_required(data, "months"), "months"),
        data.get("convention", "equal_payment"),
    )
    return jsonify({"estimated_rate": float(round_money(rate))})


@app.post("/api/analyze")
def analyze_view():
    data = _payload()
    term = data.get("term_months")
    observation = LoanObservation(
        start_date=_date(_required(data, "start_date"), "start_date"),
        monthly_payment=_number(_required(data, "monthly_payment"), "monthly_payment"),
        principal=_optional_number(data, "principal"),
        remaining_balance=_optional_number(data, "remaining_balance"),
        term_months=_integer(term, "term_months") if term not in (None, "") else None,
    )
    result = analyze_current_loan(observation, data.get("convention", "auto"))
    return jsonify(result_to_dict(result))


if __name__ == "__main__":
    print("Starting Loan Analyzer web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
