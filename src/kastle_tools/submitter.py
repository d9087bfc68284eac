"""Final visitor submission and interpretation of its response.

The portal answers the save post-back with HTTP 200 whether or not the visitor
was created. The only reliable success signal is the redirect to the visitor
list page, ``PreAuthorizedVisitors.aspx``, inside the response body.
"""

import logging
from re import compile

from requests import Response

from .errors import AuthenticationRejectedError, AuthorizationRejectedError
from .parser import find_page_redirect, is_login_page
from .session import ADD_VISITORS_URL, KastleSession, is_success

logger = logging.getLogger(__name__)

# The form's own URL, AddPreAuthorizedVisitors.aspx, is echoed on failure.
SUCCESS_MARKER = compile(r"(?<!Add)PreAuthorizedVisitors\.aspx")


def check_submission(response: Response) -> str:
    """Classify a submission response and return its body on success.

    Raises:
        AuthorizationRejectedError: On a non-2xx status or no success marker
        AuthenticationRejectedError: If the portal bounced the post-back to
            the login page, i.e. the session was never authenticated
    """
    stage = "submit"
    if not is_success(response):
        raise AuthorizationRejectedError(
            f"Visitor submission returned {response.status_code}", response, stage
        )
    body = response.text
    redirect = find_page_redirect(body)
    if is_login_page(response.url) or (redirect and is_login_page(redirect)):
        raise AuthenticationRejectedError(
            "Visitor submission was redirected to the login page", response, stage
        )
    if not SUCCESS_MARKER.search(body):
        raise AuthorizationRejectedError(
            "Visitor submission response lacks the success marker", response, stage
        )
    return body


def submit_visit(session: KastleSession, cookie_header: str, form_body: str) -> str:
    """POST the visitor form with the signed-in cookies.

    Returns:
        The raw response body, for the caller's audit log
    """
    headers = KastleSession.xhr_headers("*/*", ADD_VISITORS_URL)
    headers.update(
        {
            "cache-control": "no-cache",
            "content-type": "application/x-www-form-urlencoded; charset=UTF-8",
            "x-microsoftajax": "Delta=true",
        }
    )
    response = session.send_step(
        "POST",
        ADD_VISITORS_URL,
        "submit",
        cookie_header=cookie_header,
        headers=headers,
        data=form_body,
    )
    body = check_submission(response)
    logger.info("Visitor submission accepted")
    return body
