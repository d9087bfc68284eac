"""Scraping helpers for the portal's ASP.NET WebForms pages.

This module isolates everything that depends on the portal's markup:

- Hidden view-state tokens embedded in the login page
- Redirect targets embedded in ASP.NET AJAX partial post-back responses

If the portal's rendering changes, only this module should need updating.
"""

from dataclasses import dataclass
from logging import getLogger
from re import IGNORECASE, compile, search
from urllib.parse import unquote

from bs4 import BeautifulSoup
from bs4.element import Tag

from .errors import MissingTokenError

logger = getLogger(__name__)

VIEWSTATE = "__VIEWSTATE"
VIEWSTATE_GENERATOR = "__VIEWSTATEGENERATOR"
EVENT_VALIDATION = "__EVENTVALIDATION"
REQUIRED_TOKENS = (VIEWSTATE, VIEWSTATE_GENERATOR, EVENT_VALIDATION)

PAGE_REDIRECT = compile(r"\|pageRedirect\|\|([^|]*)\|")


@dataclass(frozen=True)
class HiddenFormState:
    """View-state tokens that must be echoed back on the next post-back.

    Args:
        view_state: Value of the ``__VIEWSTATE`` input
        view_state_generator: Value of the ``__VIEWSTATEGENERATOR`` input
        event_validation: Value of the ``__EVENTVALIDATION`` input
    """

    view_state: str
    view_state_generator: str
    event_validation: str

    def __repr__(self) -> str:
        # token values are not secret, but they are long and useless in logs
        return (
            f"HiddenFormState(view_state=<{len(self.view_state)} chars>, "
            f"view_state_generator={self.view_state_generator!r}, "
            f"event_validation=<{len(self.event_validation)} chars>)"
        )


def find_hidden_value(soup: BeautifulSoup, field_id: str) -> str | None:
    """Return the ``value`` of the ``<input>`` whose id is exactly ``field_id``."""
    element = soup.find("input", id=field_id)
    if isinstance(element, Tag):
        return element.get("value")
    return None


def extract_hidden_fields(html: str) -> HiddenFormState:
    """Extract the three view-state tokens from a WebForms page.

    Args:
        html: Raw HTML of the page

    Returns:
        HiddenFormState with all three tokens

    Raises:
        MissingTokenError: If any token is absent or empty; the error names
            the first missing field in ``REQUIRED_TOKENS`` order
    """
    soup = BeautifulSoup(html, "html.parser")
    values = {}
    for field_id in REQUIRED_TOKENS:
        value = find_hidden_value(soup, field_id)
        if not value:
            raise MissingTokenError(field_id)
        logger.debug(f"found {field_id} ({len(value)} chars)")
        values[field_id] = value

    return HiddenFormState(
        view_state=values[VIEWSTATE],
        view_state_generator=values[VIEWSTATE_GENERATOR],
        event_validation=values[EVENT_VALIDATION],
    )


def find_page_redirect(text: str) -> str | None:
    """Return the decoded target of a ``pageRedirect`` in a partial post-back.

    ASP.NET AJAX answers an async post-back with a pipe-delimited delta
    (``length|type|id|content|...``). A server-side redirect shows up as
    ``|pageRedirect||<url-encoded target>|``.
    """
    m = PAGE_REDIRECT.search(text)
    if not m:
        return None
    return unquote(m.group(1))


def is_login_page(url: str) -> bool:
    """True if ``url`` points at the portal's login page."""
    return bool(search(r"/Login\.aspx(?:$|[?#/])", url or "", IGNORECASE))
