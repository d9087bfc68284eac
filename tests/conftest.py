"""Global test fixtures for Kastle Tools."""

from pathlib import Path
from unittest.mock import Mock

import pytest
from pytest import fixture
from requests import Response
from requests.structures import CaseInsensitiveDict

from kastle_tools.session import (
    ADD_VISITORS_URL,
    LOGIN_CLICK_URL,
    LOGIN_URL,
    KastleSession,
)

SERVER_DATE = "Tue, 01 Jul 2025 03:30:00 GMT"


def pytest_addoption(parser):
    """Add custom pytest command line options."""
    parser.addoption(
        "--e2e",
        action="store_true",
        default=False,
        help="run end-to-end tests against the live portal",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "e2e: mark test as end-to-end test")


def pytest_collection_modifyitems(config, items):
    """Skip end-to-end tests unless --e2e option is used."""
    if config.getoption("--e2e"):
        return

    skip_e2e = pytest.mark.skip(reason="need --e2e option to run")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


@fixture(scope="session")
def fixtures_dir() -> Path:
    """Return path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@fixture(scope="session")
def login_page_html(fixtures_dir) -> str:
    return (fixtures_dir / "login_page.html").read_text()


@fixture(scope="session")
def submit_success_text(fixtures_dir) -> str:
    return (fixtures_dir / "submit_success.txt").read_text()


@fixture(scope="session")
def submit_failure_text(fixtures_dir) -> str:
    return (fixtures_dir / "submit_failure.txt").read_text()


@fixture(scope="session")
def submit_login_redirect_text(fixtures_dir) -> str:
    return (fixtures_dir / "submit_login_redirect.txt").read_text()


def create_mock_response(
    status_code: int = 200,
    text: str = "",
    headers: dict = None,
    url: str = LOGIN_URL,
    history: list = None,
) -> Mock:
    """Create a mock ``requests.Response``."""
    response = Mock(spec=Response)
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    response.text = text
    response.content = text.encode()
    response.headers = CaseInsensitiveDict(headers or {})
    response.url = url
    response.history = history or []
    return response


@fixture
def make_response():
    """Factory fixture for mock responses."""
    return create_mock_response


@fixture
def portal(login_page_html, submit_success_text):
    """Scripted portal: one canned response per (method, URL) in the login flow.

    Each step issues a new cookie, and the prelogin step folds two cookies
    into a single header. Tests may replace entries in ``portal.responses``
    before running the flow; every request is recorded in ``portal.calls``.
    """

    class Portal:
        def __init__(self):
            self.calls = []
            self.responses = {
                ("GET", LOGIN_URL): create_mock_response(
                    text=login_page_html,
                    headers={
                        "Date": SERVER_DATE,
                        "Set-Cookie": "ASP.NET_SessionId=s1; path=/; HttpOnly; SameSite=Lax",
                    },
                ),
                ("POST", LOGIN_URL): create_mock_response(
                    text="<html>password</html>",
                    headers={
                        "Date": SERVER_DATE,
                        "Set-Cookie": "KastleUser=p2; path=/, "
                        "__RequestVerificationToken=v2; path=/; HttpOnly",
                    },
                ),
                ("POST", LOGIN_CLICK_URL): create_mock_response(
                    text='{"d":"OK"}',
                    url=LOGIN_CLICK_URL,
                    headers={
                        "Set-Cookie": ".ASPXAUTH=a3; expires=Wed, 01-Jul-2026 12:00:00 GMT; "
                        "path=/; HttpOnly",
                    },
                ),
                ("POST", ADD_VISITORS_URL): create_mock_response(
                    text=submit_success_text, url=ADD_VISITORS_URL
                ),
            }

        def request(self, method, url, **kwargs):
            self.calls.append((method, url, kwargs))
            return self.responses[(method, url)]

        def session(self, timeout: float = 30):
            session = KastleSession(timeout=timeout)
            session.request = Mock(side_effect=self.request)
            return session

    return Portal()
