"""Three-step sign-in to the MyKastle portal.

The portal is an ASP.NET WebForms application. Signing in takes three
strictly ordered round trips:

1. GET ``Login.aspx`` to obtain the first cookies and the view-state tokens
2. POST the user name back to ``Login.aspx`` together with those tokens
3. POST the credentials as JSON to the ``Login.aspx/LoginClick`` page method

Each step threads the cookies of every earlier step. A failing step aborts the
sign-in; nothing is retried, because replaying a half-finished login with
stale tokens trips the portal's brute-force checks.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from requests import Response

from .cookies import CookieJar
from .errors import (
    AuthenticationRejectedError,
    LoginPageUnavailableError,
    MissingTokenError,
    PreloginRejectedError,
)
from .models import Credentials
from .parser import HiddenFormState, extract_hidden_fields
from .payload import BUSINESS_TIMEZONE
from .session import LOGIN_CLICK_URL, LOGIN_URL, ORIGIN, KastleSession, is_success

logger = logging.getLogger(__name__)

JSON_ACCEPT = "application/json, text/javascript, */*; q=0.01"


@dataclass
class LoginContext:
    """State threaded through one sign-in; never shared between attempts.

    Args:
        jar: Cookies accumulated so far
        hidden: View-state tokens from the login page, once fetched
        server_time: Time reported by the portal's last ``Date`` header
    """

    jar: CookieJar = field(default_factory=CookieJar)
    hidden: HiddenFormState | None = None
    server_time: datetime | None = None


def server_time(response: Response) -> datetime:
    """Return the time in the response's ``Date`` header.

    Falls back to the local clock when the header is missing or malformed.
    """
    value = response.headers.get("Date")
    if value:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
    logger.warning(f"Unusable Date header {value!r}; using local clock")
    return datetime.now(timezone.utc)


def format_login_timestamp(when: datetime) -> str:
    """Render ``when`` the way the login page's script fills ``setDateTime``.

    Business-timezone wall clock, ``YYYY/M/D H:M:S`` without zero padding.
    """
    t = when.astimezone(BUSINESS_TIMEZONE)
    return f"{t.year}/{t.month}/{t.day} {t.hour}:{t.minute}:{t.second}"


def fetch_login_page(session: KastleSession, context: LoginContext) -> None:
    """Step 1: load the login page, its cookies and its hidden tokens.

    Raises:
        LoginPageUnavailableError: On a non-2xx status
        MissingTokenError: If a view-state token is absent
    """
    stage = "login-page"
    response = session.send_step(
        "GET",
        LOGIN_URL,
        stage,
        jar=context.jar,
        headers=KastleSession.document_headers("none"),
    )
    if not is_success(response):
        raise LoginPageUnavailableError(
            f"Login page returned {response.status_code}", response, stage
        )
    try:
        context.hidden = extract_hidden_fields(response.text)
    except MissingTokenError as e:
        e.response = response
        raise
    context.server_time = server_time(response)


def prelogin_form(hidden: HiddenFormState, username: str, timestamp: str) -> dict:
    """Form fields of the "Next" post-back that submits the user name."""
    return {
        "__EVENTTARGET": "",
        "__EVENTARGUMENT": "",
        "__VIEWSTATE": hidden.view_state,
        "__VIEWSTATEGENERATOR": hidden.view_state_generator,
        "__VIEWSTATEENCRYPTED": "",
        "__EVENTVALIDATION": hidden.event_validation,
        "hdnBruteForceCheck": "true",
        "ScriptManager1": "",
        "txtUserName": username,
        "chkPersistCookie": "on",
        "btnNext": "Next",
        "setDateTime": timestamp,
    }


def prelogin(session: KastleSession, context: LoginContext, username: str) -> None:
    """Step 2: post the user name back to the login page.

    Raises:
        PreloginRejectedError: On a non-2xx status
    """
    if context.hidden is None:
        raise RuntimeError("prelogin requires the login page tokens")
    stage = "prelogin"
    headers = KastleSession.document_headers("same-origin")
    headers.update(
        {
            "cache-control": "max-age=0",
            "origin": ORIGIN,
            "referer": LOGIN_URL,
        }
    )
    timestamp = format_login_timestamp(context.server_time)
    response = session.send_step(
        "POST",
        LOGIN_URL,
        stage,
        jar=context.jar,
        headers=headers,
        data=prelogin_form(context.hidden, username, timestamp),
    )
    if not is_success(response):
        raise PreloginRejectedError(
            f"User name post-back returned {response.status_code}", response, stage
        )
    context.server_time = server_time(response)


def login(session: KastleSession, context: LoginContext, credentials: Credentials) -> None:
    """Step 3: submit the credentials to the ``LoginClick`` page method.

    The page method does not reliably report a bad password; that surfaces
    when the final submission is bounced back to the login page.

    Raises:
        AuthenticationRejectedError: On a non-2xx status
    """
    stage = "login"
    response = session.send_step(
        "POST",
        LOGIN_CLICK_URL,
        stage,
        jar=context.jar,
        headers=KastleSession.xhr_headers(JSON_ACCEPT, LOGIN_URL),
        json={
            "password": credentials.password,
            "userName": credentials.username,
            "isPersistentCookie": True,
        },
    )
    if not is_success(response):
        raise AuthenticationRejectedError(
            f"Login returned {response.status_code}", response, stage
        )


def sign_in(session: KastleSession, credentials: Credentials) -> LoginContext:
    """Run the three sign-in steps and return the resulting fresh context."""
    context = LoginContext()
    logger.info(f"Signing in to {LOGIN_URL} as {credentials.username}")
    fetch_login_page(session, context)
    prelogin(session, context, credentials.username)
    login(session, context, credentials)
    logger.info(f"Signed in with cookies: {', '.join(context.jar.names())}")
    return context
