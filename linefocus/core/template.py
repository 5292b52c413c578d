"""Date template resolution for filter patterns.

Patterns may embed ``{{variable}}`` or ``{{variable:format}}`` placeholders
that are expanded before the pattern is compiled:

    {{today}}              -> 2026-10-18
    {{yesterday:DD/MM}}    -> 17/10
    {{this-week}}          -> (2026-10-12|2026-10-13|...|2026-10-18)

Formats use moment-style tokens (YYYY, MM, DD, dddd, ...) rendered by arrow.
Range variables expand to a group with one alternative per calendar day.
Format output is not regex-escaped; pick formats that are safe in a pattern.
"""

from __future__ import annotations

import logging
import re
import warnings
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Literal, Optional, Union

import arrow

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "YYYY-MM-DD"

TEMPLATE_RE = re.compile(r"\{\{(.*?)\}\}")

Clock = Union[arrow.Arrow, datetime, date, None]

# Single-date variables and their offset in days from the reference time.
DATE_VARIABLES: dict[str, int] = {
    "today": 0,
    "date": 0,
    "yesterday": -1,
    "tomorrow": 1,
}

# Range variables: (arrow span frame, number of frames to shift).
RANGE_VARIABLES: dict[str, tuple[str, int]] = {
    "this-week": ("week", 0),
    "last-week": ("week", -1),
    "next-week": ("week", 1),
    "this-month": ("month", 0),
    "last-month": ("month", -1),
    "next-month": ("month", 1),
    "this-year": ("year", 0),
    "last-year": ("year", -1),
    "next-year": ("year", 1),
}


class TemplateFormatWarning(UserWarning):
    """Warning emitted when a template format cannot be applied.

    Resolution still succeeds using DEFAULT_FORMAT.

    Attributes:
        variable: The template variable name.
        format: The format string that was rejected.
        reason: Why the format was rejected.
    """

    def __init__(self, variable: str, format: str, reason: str):
        self.variable = variable
        self.format = format
        self.reason = reason
        super().__init__(
            f"Cannot apply format '{format}' to '{{{{{variable}}}}}' ({reason}); "
            f"using {DEFAULT_FORMAT}"
        )


@dataclass(frozen=True)
class TemplateVariable:
    """A recognized template placeholder.

    Attributes:
        name: Lower-cased variable name (e.g. "today", "last-week").
        format: Format string given after the colon, if any.
        kind: "date" for single-date variables, "range" for periods.
    """

    name: str
    format: Optional[str] = None
    kind: Literal["date", "range"] = "date"

    @property
    def effective_format(self) -> str:
        return self.format or DEFAULT_FORMAT


def to_arrow(now: Clock = None) -> arrow.Arrow:
    """Normalize a reference time to an Arrow instance.

    Args:
        now: Reference time. None means the current local time.

    Returns:
        Arrow instance for the reference time.
    """
    if now is None:
        return arrow.now()
    if isinstance(now, arrow.Arrow):
        return now
    return arrow.get(now)


def parse_variable(content: str) -> Optional[TemplateVariable]:
    """Parse the text between ``{{`` and ``}}``.

    The name is split from the format at the first colon so formats such
    as ``HH:mm`` survive intact.

    Args:
        content: Placeholder body, e.g. "today" or "last-week:DD.MM".

    Returns:
        TemplateVariable if the name is recognized, None otherwise.
    """
    name, _, fmt = content.partition(":")
    name = name.strip().lower()
    fmt = fmt.strip() or None

    if name in DATE_VARIABLES:
        return TemplateVariable(name=name, format=fmt, kind="date")
    if name in RANGE_VARIABLES:
        return TemplateVariable(name=name, format=fmt, kind="range")
    return None


def find_variables(template: str) -> list[TemplateVariable]:
    """Return the recognized placeholders in a template, in order."""
    variables = []
    for match in TEMPLATE_RE.finditer(template):
        variable = parse_variable(match.group(1))
        if variable is not None:
            variables.append(variable)
    return variables


def has_templates(pattern: str) -> bool:
    """Check whether a pattern contains any placeholder syntax."""
    return TEMPLATE_RE.search(pattern) is not None


def dates_for(variable: TemplateVariable, now: Clock = None) -> list[arrow.Arrow]:
    """Return the calendar days a variable stands for.

    Weeks are ISO weeks (Monday to Sunday). Months and years follow the
    calendar, so a month yields 28-31 days and a year 365 or 366.

    Args:
        variable: The parsed template variable.
        now: Reference time.

    Returns:
        List of Arrow instances, one per day, in ascending order.
    """
    reference = to_arrow(now)

    if variable.kind == "date":
        return [reference.shift(days=DATE_VARIABLES[variable.name])]

    frame, offset = RANGE_VARIABLES[variable.name]
    anchor = reference.shift(**{f"{frame}s": offset})
    start, end = anchor.span(frame)
    return list(arrow.Arrow.range("day", start, end))


def _format_dates(variable: TemplateVariable, days: list[arrow.Arrow]) -> list[str]:
    """Format days with the variable's format, falling back to the default."""
    fmt = variable.format
    if not fmt:
        return [day.format(DEFAULT_FORMAT) for day in days]

    try:
        rendered = [day.format(fmt) for day in days]
    except (ValueError, TypeError) as e:
        reason = str(e)
    else:
        if rendered and rendered[0] != fmt:
            return rendered
        reason = "no date tokens in format"

    logger.warning(
        "Invalid date format %r for template variable %r: %s", fmt, variable.name, reason
    )
    warnings.warn(TemplateFormatWarning(variable.name, fmt, reason), stacklevel=4)
    return [day.format(DEFAULT_FORMAT) for day in days]


def expand(variable: TemplateVariable, now: Clock = None) -> str:
    """Expand a single recognized variable to its text.

    Args:
        variable: The parsed template variable.
        now: Reference time.

    Returns:
        A formatted date for single-date variables, or a group of the form
        ``(d1|d2|...|dn)`` for range variables.
    """
    rendered = _format_dates(variable, dates_for(variable, now))
    if variable.kind == "range":
        return f"({'|'.join(rendered)})"
    return rendered[0]


def resolve(template: str, now: Clock = None) -> str:
    """Resolve every date placeholder in a template.

    Unrecognized placeholders are left untouched.

    Args:
        template: Pattern text possibly containing placeholders.
        now: Reference time (injectable for deterministic output).

    Returns:
        The template with recognized placeholders expanded.
    """
    if "{{" not in template:
        return template

    reference = to_arrow(now)

    def _replace(match: re.Match[str]) -> str:
        variable = parse_variable(match.group(1))
        if variable is None:
            return match.group(0)
        return expand(variable, reference)

    return TEMPLATE_RE.sub(_replace, template)


def resolve_all(
    patterns: Iterable[str],
    now: Clock = None,
    enabled: bool = True,
) -> list[str]:
    """Resolve a sequence of patterns against one reference time.

    Args:
        patterns: Raw filter strings.
        now: Reference time shared by all patterns.
        enabled: When False, patterns pass through unchanged.

    Returns:
        Resolved patterns in the same order.
    """
    if not enabled:
        return list(patterns)
    reference = to_arrow(now)
    return [resolve(pattern, reference) for pattern in patterns]
