"""KastleSession class for talking to the MyKastle web portal."""

import http.cookiejar as cookiejar
import logging
from urllib.parse import urljoin

from requests import RequestException, Response, Session

from .cookies import CookieJar
from .errors import TransportError
from .utils import log_response

logger = logging.getLogger(__name__)

ORIGIN = "https://www.mykastle.com"
BASE_URL = f"{ORIGIN}/mykastleweb"
LOGIN_URL = f"{BASE_URL}/Login.aspx"
LOGIN_CLICK_URL = f"{LOGIN_URL}/LoginClick"
ADD_VISITORS_URL = f"{BASE_URL}/VisitorManagement/AddPreAuthorizedVisitors.aspx"

DEFAULT_TIMEOUT = 30
REDIRECT_CODES = (301, 302, 303, 307, 308)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/138.0.0.0 Safari/537.36"
)
DEFAULT_HEADERS = {
    "user-agent": USER_AGENT,
    "accept-language": "en-US,en;q=0.9",
    "sec-ch-ua": '"Not)A;Brand";v="8", "Chromium";v="138", "Google Chrome";v="138"',
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": '"macOS"',
}
DOCUMENT_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,"
    "image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
)


class KastleSession(Session):
    """Session for one authorization attempt against the MyKastle portal.

    The ``requests`` cookie jar is disabled: cookies live only in the caller's
    per-attempt ``CookieJar`` and are sent as an explicit ``Cookie`` header.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        super().__init__()
        self.timeout = timeout
        self.headers.update(DEFAULT_HEADERS)
        self.cookies.set_policy(cookiejar.DefaultCookiePolicy(allowed_domains=[]))

    def send_step(
        self,
        method: str,
        url: str,
        stage: str,
        jar: CookieJar = None,
        cookie_header: str = "",
        **kwargs,
    ) -> Response:
        """Perform one request of the flow with a bounded timeout.

        With ``jar``, the ``Cookie`` header is rendered from it on every hop
        and each hop's ``Set-Cookie`` values are merged back into it. Without
        it, ``cookie_header`` is sent as is. Redirects are followed here, not
        by ``requests``, so that no hop falls back to the session's own jar.

        Raises:
            TransportError: If the request fails at the network layer or
                redirects too many times
        """
        headers = dict(kwargs.pop("headers", None) or {})
        kwargs.setdefault("timeout", self.timeout)
        history = []
        while True:
            cookies = jar.to_header() if jar is not None else cookie_header
            if cookies:
                headers["cookie"] = cookies
            else:
                headers.pop("cookie", None)
            try:
                response = self.request(
                    method, url, headers=dict(headers), allow_redirects=False, **kwargs
                )
            except RequestException as e:
                raise TransportError(f"{stage}: {method} {url} failed: {e}", stage=stage) from e
            logger.info(f"{stage}: {method} {url} -> {response.status_code}")
            log_response(response)
            if jar is not None:
                jar.store_response(response)

            location = response.headers.get("Location")
            if response.status_code not in REDIRECT_CODES or not location:
                break
            if len(history) >= self.max_redirects:
                raise TransportError(
                    f"{stage}: more than {self.max_redirects} redirects", response, stage
                )
            history.append(response)
            url = urljoin(url, location)
            if response.status_code in (301, 302, 303) and method != "HEAD":
                method = "GET"
                kwargs.pop("data", None)
                kwargs.pop("json", None)
                headers.pop("content-type", None)

        response.history = history
        return response

    @staticmethod
    def document_headers(fetch_site: str) -> dict[str, str]:
        """Headers a browser sends when navigating to a page."""
        return {
            "accept": DOCUMENT_ACCEPT,
            "priority": "u=0, i",
            "sec-fetch-dest": "document",
            "sec-fetch-mode": "navigate",
            "sec-fetch-site": fetch_site,
            "sec-fetch-user": "?1",
            "upgrade-insecure-requests": "1",
        }

    @staticmethod
    def xhr_headers(accept: str, referer: str) -> dict[str, str]:
        """Headers a browser sends for a same-origin XMLHttpRequest."""
        return {
            "accept": accept,
            "origin": ORIGIN,
            "priority": "u=1, i",
            "referer": referer,
            "sec-fetch-dest": "empty",
            "sec-fetch-mode": "cors",
            "sec-fetch-site": "same-origin",
            "x-requested-with": "XMLHttpRequest",
        }


def is_success(response: Response) -> bool:
    """True for a 2xx status."""
    return 200 <= response.status_code < 300
