"""
Pytest configuration and shared fixtures.
"""

from datetime import date

import pytest
from click.testing import CliRunner

from loan_analyzer_web.app import app as flask_app


@pytest.fixture
def start_date():
    """First payment date used by most schedule tests."""
    return date(2024, 1, 1)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def app():
    flask_app.config.update(TESTING=True)
    original_rows = flask_app.config["MAX_SCHEDULE_ROWS"]
    yield flask_app
    flask_app.config["MAX_SCHEDULE_ROWS"] = original_rows


@pytest.fixture
def client(app):
    return app.test_client()
