"""Kastle Tools package for pre-authorizing visitors on the MyKastle portal."""

from importlib.metadata import PackageNotFoundError, version

from .client import authorize_visit
from .cookies import CookieJar
from .errors import (
    AuthenticationRejectedError,
    AuthorizationRejectedError,
    CredentialsNotConfiguredError,
    KastleError,
    LoginPageUnavailableError,
    MissingTokenError,
    PreloginRejectedError,
    TransportError,
)
from .login import LoginContext, sign_in
from .models import Credentials, VisitorDetails
from .parser import HiddenFormState, extract_hidden_fields
from .payload import FormTemplate, build_visit_form, load_template, split_name
from .session import KastleSession
from .submitter import submit_visit
from .utils import load_credentials

try:
    __version__ = version("kastle-tools")
except PackageNotFoundError:
    # Package is not installed, use fallback version
    __version__ = "UNKNOWN"

__all__ = [
    "AuthenticationRejectedError",
    "AuthorizationRejectedError",
    "CookieJar",
    "Credentials",
    "CredentialsNotConfiguredError",
    "FormTemplate",
    "HiddenFormState",
    "KastleError",
    "KastleSession",
    "LoginContext",
    "LoginPageUnavailableError",
    "MissingTokenError",
    "PreloginRejectedError",
    "TransportError",
    "VisitorDetails",
    "authorize_visit",
    "build_visit_form",
    "extract_hidden_fields",
    "load_credentials",
    "load_template",
    "sign_in",
    "split_name",
    "submit_visit",
]
