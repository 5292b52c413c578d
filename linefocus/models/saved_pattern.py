"""SavedPattern data model for linefocus.

A saved pattern is a reusable, optionally named filter. Pinned patterns are
offered as standing toggles (number keys in the viewer, ``--saved`` on the
command line).
"""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


def new_pattern_id() -> str:
    """Generate a short random identifier for a saved pattern."""
    return uuid.uuid4().hex[:8]


class SavedPattern(BaseModel):
    """A user-named, reusable filter pattern.

    The pattern is validated when the model is built. Pass
    ``context={"enable_template_variables": True}`` to ``model_validate`` to
    validate the template-resolved form instead of the raw text.

    Attributes:
        id: Stable identifier, kept across edits.
        name: Optional display name.
        pattern: Raw pattern text (may contain date templates).
        pinned: Whether the pattern is exposed as a standing toggle.
    """

    model_config = ConfigDict(frozen=False)

    id: str = Field(default_factory=new_pattern_id)
    name: Optional[str] = None
    pattern: str
    pinned: bool = False

    @field_validator("pattern")
    @classmethod
    def validate_regex(cls, v: str, info: ValidationInfo) -> str:
        """Validate that the pattern (or its resolved form) is a usable regex."""
        from linefocus.core.compose import validate_pattern

        context = info.context or {}
        validate_pattern(
            v,
            enable_template_variables=context.get("enable_template_variables", False),
            now=context.get("now"),
        )
        return v

    @property
    def display_name(self) -> str:
        return self.name or self.pattern
