"""Entry point: pre-authorize one visitor on the MyKastle portal."""

import logging
from contextlib import nullcontext

from .login import sign_in
from .models import Credentials, VisitorDetails
from .payload import FormTemplate, build_visit_form, load_template
from .session import DEFAULT_TIMEOUT, KastleSession
from .submitter import submit_visit

logger = logging.getLogger(__name__)


def authorize_visit(
    credentials: Credentials,
    visitor: VisitorDetails,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    template: FormTemplate = None,
    session: KastleSession = None,
) -> str:
    """Sign in with ``credentials`` and pre-authorize ``visitor``.

    Every call signs in from scratch with an empty cookie jar; no session is
    cached or reused. Any failure raises a ``KastleError`` subclass naming the
    stage that failed, and nothing is retried.

    Args:
        credentials: Portal user name and password
        visitor: Visitor name, email and visit time
        timeout: Per-request timeout in seconds
        template: Submission template; the bundled one by default
        session: Session to send requests with; a new one by default

    Returns:
        The raw body of the portal's response to the submission
    """
    if template is None:
        template = load_template()
    # Bad visitor data fails here, before any request is made.
    form_body = build_visit_form(template, visitor)

    logger.info(f"Authorizing visit for {visitor.email} at {visitor.scheduled_for}")
    owned = KastleSession(timeout=timeout) if session is None else nullcontext(session)
    with owned as session:
        context = sign_in(session, credentials)
        body = submit_visit(session, context.jar.to_header(), form_body)
    logger.info(f"Authorized visit for {visitor.email}")
    return body
