"""Tests for the visitor submission and its success check."""

from pytest import raises

from kastle_tools import submit_visit
from kastle_tools.errors import AuthenticationRejectedError, AuthorizationRejectedError
from kastle_tools.session import ADD_VISITORS_URL, LOGIN_URL
from kastle_tools.submitter import check_submission


def test_success_marker(make_response, submit_success_text):
    response = make_response(text=submit_success_text, url=ADD_VISITORS_URL)
    assert check_submission(response) == submit_success_text


def test_plain_marker_substring_counts(make_response):
    response = make_response(text="<a href='PreAuthorizedVisitors.aspx'>", url=ADD_VISITORS_URL)
    assert check_submission(response)


def test_http_200_without_marker_is_rejected(make_response, submit_failure_text):
    # the failure body still echoes the form's own AddPreAuthorizedVisitors.aspx URL
    response = make_response(text=submit_failure_text, url=ADD_VISITORS_URL)

    with raises(AuthorizationRejectedError) as excinfo:
        check_submission(response)

    assert excinfo.value.stage == "submit"
    assert excinfo.value.response is response


def test_error_status_is_rejected(make_response, submit_success_text):
    response = make_response(500, text=submit_success_text, url=ADD_VISITORS_URL)
    with raises(AuthorizationRejectedError):
        check_submission(response)


def test_redirect_to_login_means_not_authenticated(
    make_response, submit_login_redirect_text
):
    response = make_response(text=submit_login_redirect_text, url=ADD_VISITORS_URL)
    with raises(AuthenticationRejectedError) as excinfo:
        check_submission(response)
    assert excinfo.value.stage == "submit"


def test_followed_redirect_to_login_page(make_response, login_page_html):
    response = make_response(text=login_page_html, url=f"{LOGIN_URL}?ReturnUrl=%2f")
    with raises(AuthenticationRejectedError):
        check_submission(response)


def test_submit_visit_posts_form(portal):
    session = portal.session()

    body = submit_visit(session, "a=1; b=2", "field=value&other=")

    assert "PreAuthorizedVisitors.aspx" in body
    [(method, url, kwargs)] = portal.calls
    assert (method, url) == ("POST", ADD_VISITORS_URL)
    assert kwargs["data"] == "field=value&other="
    assert kwargs["headers"]["cookie"] == "a=1; b=2"
    assert kwargs["headers"]["x-microsoftajax"] == "Delta=true"
    assert kwargs["headers"]["content-type"].startswith(
        "application/x-www-form-urlencoded"
    )
