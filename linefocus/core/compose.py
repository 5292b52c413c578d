"""Composition of resolved filter patterns into a single matcher.

Active patterns are joined into one alternation so every line is tested
with exactly one regex search, however many filters are active.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from linefocus.core.template import Clock, resolve


class CompositionError(Exception):
    """Raised when the joined alternation of active patterns fails to compile.

    Attributes:
        expression: The joined expression that failed.
        invalid_patterns: Patterns that also fail on their own (best effort;
            may be empty when the failure only appears once they are joined).
    """

    def __init__(
        self,
        message: str,
        expression: Optional[str] = None,
        invalid_patterns: Optional[list[str]] = None,
    ):
        self.expression = expression
        self.invalid_patterns = list(invalid_patterns or [])

        if self.invalid_patterns:
            culprits = ", ".join(f"/{p}/" for p in self.invalid_patterns)
            full_message = f"{message} (invalid: {culprits})"
        else:
            full_message = message

        super().__init__(full_message)


class PatternValidationError(ValueError):
    """Raised when a pattern is rejected at input time.

    Attributes:
        pattern: The raw pattern that was rejected.
    """

    def __init__(self, message: str, pattern: Optional[str] = None):
        self.pattern = pattern
        super().__init__(message)


def _wrap(pattern: str) -> str:
    return f"(?:{pattern})"


def usable_patterns(patterns: Iterable[str]) -> list[str]:
    """Drop blank and whitespace-only entries, keeping order."""
    return [p for p in patterns if p and p.strip()]


def join_patterns(patterns: Iterable[str]) -> Optional[str]:
    """Join patterns as ``(?:p1)|(?:p2)|...``.

    Returns:
        The joined expression, or None if no usable pattern remains.
    """
    usable = usable_patterns(patterns)
    if not usable:
        return None
    return "|".join(_wrap(p) for p in usable)


def find_invalid_patterns(patterns: Iterable[str]) -> list[str]:
    """Return the usable patterns that fail to compile individually."""
    invalid = []
    for pattern in usable_patterns(patterns):
        try:
            re.compile(_wrap(pattern))
        except re.error:
            invalid.append(pattern)
    return invalid


def compose(resolved_patterns: Iterable[str]) -> Optional[re.Pattern[str]]:
    """Build one matcher from resolved patterns.

    Args:
        resolved_patterns: Template-expanded filter strings.

    Returns:
        Compiled matcher, or None when no usable pattern remains (filtering
        disabled).

    Raises:
        CompositionError: If the joined expression does not compile.
    """
    patterns = list(resolved_patterns)
    expression = join_patterns(patterns)
    if expression is None:
        return None

    try:
        return re.compile(expression)
    except re.error as e:
        raise CompositionError(
            f"Could not compose active filters: {e}",
            expression=expression,
            invalid_patterns=find_invalid_patterns(patterns),
        ) from e


def validate_pattern(
    pattern: Optional[str],
    enable_template_variables: bool = False,
    now: Clock = None,
) -> str:
    """Check a pattern before it is accepted from the user.

    The resolved form is checked when template variables are enabled, and it
    is checked wrapped in a group, the way it will be composed, so a pattern
    such as ``(?i)todo`` (global flag not at the start once joined) is
    rejected here rather than failing later.

    Args:
        pattern: Raw pattern text.
        enable_template_variables: Whether to resolve templates first.
        now: Reference time for template resolution.

    Returns:
        The resolved pattern.

    Raises:
        PatternValidationError: If the pattern is blank or does not compile.
    """
    if pattern is None or not pattern.strip():
        raise PatternValidationError("Pattern cannot be empty", pattern=pattern)

    resolved = resolve(pattern, now) if enable_template_variables else pattern

    try:
        re.compile(_wrap(resolved))
    except re.error as e:
        raise PatternValidationError(f"Invalid regex pattern: {e}", pattern=pattern) from e

    return resolved
