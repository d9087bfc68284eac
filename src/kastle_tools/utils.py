"""Utility functions for Kastle tools."""

import logging
import os
from collections.abc import Mapping

from requests import Response

from .errors import CredentialsNotConfiguredError
from .models import Credentials

logger = logging.getLogger(__name__)

USERNAME_VARIABLE = "KASTLE_USERNAME"
PASSWORD_VARIABLE = "KASTLE_PASSWORD"


def load_credentials(environ: Mapping[str, str] = None) -> Credentials:
    """Read portal credentials from the environment.

    Raises:
        CredentialsNotConfiguredError: If either variable is unset or blank
    """
    if environ is None:
        environ = os.environ
    username = environ.get(USERNAME_VARIABLE, "").strip()
    password = environ.get(PASSWORD_VARIABLE, "")
    missing = [
        name
        for name, value in ((USERNAME_VARIABLE, username), (PASSWORD_VARIABLE, password))
        if not value
    ]
    if missing:
        raise CredentialsNotConfiguredError(
            f"Kastle credentials are not configured: set {' and '.join(missing)}"
        )
    logger.debug(f"Loaded credentials for {username} from environment")
    return Credentials(username=username, password=password)


def log_response(response: Response) -> None:
    """Log response details at DEBUG; bodies and cookie values are left out."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(f"Response URL: {response.url}")
    logger.debug(f"Status: {response.status_code} {response.reason}")
    logger.debug("Response headers:")
    for k, v in response.headers.items():
        if k.lower() == "set-cookie":
            v = "<redacted>"
        logger.debug(f"  {k}: {v}")
