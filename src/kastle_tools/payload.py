"""Build the AddPreAuthorizedVisitors form body for one visitor.

The portal's save post-back carries ~80 fields. They are kept in a versioned
template asset (``templates/add_pre_authorized_visitors.form``); only the fields
in ``OVERRIDE_FIELDS`` are rewritten per visitor.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from importlib.resources import files
from pathlib import Path
from urllib.parse import parse_qsl, urlencode
from zoneinfo import ZoneInfo

from .models import VisitorDetails

logger = logging.getLogger(__name__)

TEMPLATE_NAME = "add_pre_authorized_visitors.form"

# The portal interprets dates in the building's local time.
BUSINESS_TIMEZONE = ZoneInfo("America/New_York")
DATE_FORMAT = "%m/%d/%Y"
EARLIEST_TIME = "08:00 AM"
LATEST_TIME = "06:00 PM"

PLACEHOLDER_FIRST_NAME = "Visitor"
PLACEHOLDER_LAST_NAME = "Guest"

START_DATE_FIELD = "ctl00$PC$txtVisitorStartDate"
END_DATE_FIELD = "ctl00$PC$txtVisitorEndDate"
EARLIEST_TIME_FIELD = "ctl00$PC$txtVisitorEarliestTime"
LATEST_TIME_FIELD = "ctl00$PC$txtVisitorLatestTime"
NOTIFY_EMAIL_FIELD = "ctl00$PC$txtVisitorEmailAddress"
# Labelled "first name" on the page but holds the visitor's last name.
FIRST_NAME_FIELD = "first_name_0"
LAST_NAME_FIELD = "last_name_0"
VISITOR_EMAIL_FIELD = "email_0"
VISITOR_DETAILS_FIELD = "ctl00$PC$hdnMultipleVisitorDetails"

OVERRIDE_FIELDS = frozenset(
    {
        START_DATE_FIELD,
        END_DATE_FIELD,
        EARLIEST_TIME_FIELD,
        LATEST_TIME_FIELD,
        NOTIFY_EMAIL_FIELD,
        FIRST_NAME_FIELD,
        LAST_NAME_FIELD,
        VISITOR_EMAIL_FIELD,
        VISITOR_DETAILS_FIELD,
    }
)


@dataclass(frozen=True)
class FormTemplate:
    """Parsed submission template.

    Args:
        version: Value of the ``# version:`` header line, "UNKNOWN" if absent
        fields: Decoded ``(name, value)`` pairs in submission order
    """

    version: str
    fields: tuple[tuple[str, str], ...]

    def as_dict(self) -> dict[str, str]:
        return dict(self.fields)


def parse_template(text: str) -> FormTemplate:
    """Parse template text: ``#`` comment lines, then one url-encoded pair per line."""
    version = "UNKNOWN"
    fields = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith("#"):
            key, sep, value = line[1:].partition(":")
            if sep and key.strip().lower() == "version":
                version = value.strip()
            continue
        fields.extend(parse_qsl(line, keep_blank_values=True, strict_parsing=True))

    missing = OVERRIDE_FIELDS - {name for name, _ in fields}
    if missing:
        raise ValueError(f"Template lacks override fields: {', '.join(sorted(missing))}")
    return FormTemplate(version=version, fields=tuple(fields))


def load_template(path: str | Path = None) -> FormTemplate:
    """Load the bundled template, or the one at ``path`` when given."""
    if path is None:
        text = files("kastle_tools").joinpath("templates", TEMPLATE_NAME).read_text(
            encoding="utf-8"
        )
    else:
        text = Path(path).read_text(encoding="utf-8")
    template = parse_template(text)
    logger.debug(f"Loaded form template version {template.version}")
    return template


def split_name(full_name: str) -> tuple[str, str]:
    """Split a full name into ``(first, last)``.

    The last whitespace-separated token is the last name and everything before
    it is the first name. A single token fills both slots. Blank input yields
    the placeholder pair so that empty names never reach the portal.
    """
    tokens = (full_name or "").split()
    if not tokens:
        return PLACEHOLDER_FIRST_NAME, PLACEHOLDER_LAST_NAME
    if len(tokens) == 1:
        return tokens[0], tokens[0]
    return " ".join(tokens[:-1]), tokens[-1]


def format_visit_date(when: datetime) -> str:
    """Format ``when`` as mm/dd/yyyy in the business timezone."""
    return when.astimezone(BUSINESS_TIMEZONE).strftime(DATE_FORMAT)


def visitor_overrides(visitor: VisitorDetails) -> dict[str, str]:
    """Return the override values for ``visitor``, keyed by field name."""
    first_name, last_name = split_name(visitor.name)
    visit_date = format_visit_date(visitor.scheduled_at())
    details = [{"lName": last_name, "fName": first_name, "email": visitor.email}]
    return {
        START_DATE_FIELD: visit_date,
        END_DATE_FIELD: visit_date,
        EARLIEST_TIME_FIELD: EARLIEST_TIME,
        LATEST_TIME_FIELD: LATEST_TIME,
        NOTIFY_EMAIL_FIELD: visitor.email,
        FIRST_NAME_FIELD: last_name,
        LAST_NAME_FIELD: first_name,
        VISITOR_EMAIL_FIELD: visitor.email,
        VISITOR_DETAILS_FIELD: json.dumps(
            details, separators=(",", ":"), ensure_ascii=False
        ),
    }


def visit_form_fields(
    template: FormTemplate, visitor: VisitorDetails
) -> list[tuple[str, str]]:
    """Overlay the visitor's values onto the template pairs."""
    overrides = visitor_overrides(visitor)
    return [(name, overrides.get(name, value)) for name, value in template.fields]


def build_visit_form(template: FormTemplate, visitor: VisitorDetails) -> str:
    """Return the url-encoded form body for ``visitor``."""
    return urlencode(visit_form_fields(template, visitor))
