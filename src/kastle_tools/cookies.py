"""Cookie accumulation across the sequential requests of one login attempt.

Only name/value pairs are tracked. Attributes such as ``Path`` or ``Expires``
are dropped because the jar never outlives a single authorization attempt.
"""

import logging
from collections.abc import Iterable
from re import compile

from requests import Response

logger = logging.getLogger(__name__)

# Attribute names defined by RFC 6265 plus the common extensions.
COOKIE_ATTRIBUTES = frozenset(
    {
        "domain",
        "expires",
        "httponly",
        "max-age",
        "partitioned",
        "path",
        "priority",
        "samesite",
        "secure",
    }
)

# A folded header joins cookies with ", ". Commas inside Expires dates are not
# followed by a "name=" token, so they are left alone.
FOLDED_COOKIE_BOUNDARY = compile(r",\s*(?=[^;,=\s]+=)")


def split_set_cookie_header(header: str) -> list[tuple[str, str]]:
    """Split one raw ``Set-Cookie`` value into ``(name, value)`` pairs.

    Handles a single cookie with attributes as well as several cookies folded
    into one header by the transport, joined with commas or semicolons.
    """
    pairs = []
    for chunk in FOLDED_COOKIE_BOUNDARY.split(header):
        for segment in chunk.split(";"):
            name, sep, value = segment.partition("=")
            name = name.strip()
            if not sep or not name:
                continue  # flag attribute such as HttpOnly
            if name.lower() in COOKIE_ATTRIBUTES:
                continue
            pairs.append((name, value.strip()))
    return pairs


def set_cookie_headers(response: Response) -> list[str]:
    """Return every ``Set-Cookie`` value seen while producing ``response``.

    Redirect hops are included so that cookies issued on a 302 are kept.
    """
    values = []
    for hop in [*response.history, response]:
        header = hop.headers.get("Set-Cookie")
        if header:
            values.append(header)
    return values


class CookieJar:
    """Name to value mapping fed from ``Set-Cookie`` headers; last write wins."""

    def __init__(self):
        self._cookies: dict[str, str] = {}

    def store(self, header_values: Iterable[str] | str) -> list[str]:
        """Merge raw ``Set-Cookie`` values into the jar.

        Cookies with an empty value are ignored. Returns the names stored.
        """
        if isinstance(header_values, str):
            header_values = [header_values]
        stored = []
        for header in header_values:
            for name, value in split_set_cookie_header(header):
                if not value:
                    logger.debug(f"Ignoring empty cookie {name}")
                    continue
                self._cookies[name] = value
                stored.append(name)
        return stored

    def store_response(self, response: Response) -> list[str]:
        """Merge all cookies issued by ``response`` (including redirect hops)."""
        stored = self.store(set_cookie_headers(response))
        if stored:
            logger.debug(f"Stored cookies: {', '.join(stored)}")
        return stored

    def to_header(self) -> str:
        """Render the jar as a ``Cookie`` request header value."""
        return "; ".join(f"{name}={value}" for name, value in self._cookies.items())

    def get(self, name: str, default: str = None) -> str | None:
        return self._cookies.get(name, default)

    def names(self) -> list[str]:
        return list(self._cookies)

    def __contains__(self, name: str) -> bool:
        return name in self._cookies

    def __len__(self) -> int:
        return len(self._cookies)

    def __repr__(self) -> str:
        # values are session secrets
        return f"CookieJar(names={self.names()!r})"
