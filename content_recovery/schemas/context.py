"""
Caller-supplied business context consumed by default generators

The context mirrors the strategy data a caller already holds (audience,
objectives, key messages and the week being planned). It is validated once
with Pydantic and then shared read-only by every default generator.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

_LIST_SEPARATOR_RE = re.compile(r"\r?\n")


def _as_text_tuple(value: Any) -> Any:
    """Accept a newline-separated string or any iterable of strings."""
    if value is None:
        return ()
    if isinstance(value, str):
        value = _LIST_SEPARATOR_RE.split(value)
    if isinstance(value, list | tuple):
        return tuple(str(item).strip() for item in value if str(item).strip())
    return value


class AudienceSegment(BaseModel):
    """One audience segment from an enhanced strategy."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    segment: str = Field(min_length=1, description="Segment name")
    channels: tuple[str, ...] = ()
    content_types: tuple[str, ...] = Field(default=(), alias="contentTypes")

    @field_validator("channels", "content_types", mode="before")
    @classmethod
    def split_lists(cls, v: Any) -> Any:
        return _as_text_tuple(v)


class StrategyContext(BaseModel):
    """Business context that default generators derive their values from.

    Field names accept both snake_case and the camelCase spelling used by
    stored strategy documents (``weekTheme``, ``keyMessages``...).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    business_description: str = Field(
        default="Fitness business",
        alias="businessDescription",
        description="Short description of the business",
    )
    business_type: str = Field(default="fitness", alias="businessType")
    target_audience: tuple[str, ...] = Field(default=(), alias="targetAudience")
    objectives: tuple[str, ...] = ()
    key_messages: tuple[str, ...] = Field(default=(), alias="keyMessages")
    audiences: tuple[AudienceSegment, ...] = ()
    week_number: int | None = Field(default=None, ge=1, alias="weekNumber")
    week_theme: str | None = Field(default=None, alias="weekTheme")
    channel: str | None = None

    @field_validator("target_audience", "objectives", "key_messages", mode="before")
    @classmethod
    def split_lists(cls, v: Any) -> Any:
        """Stored strategies sometimes keep lists as newline-separated text."""
        return _as_text_tuple(v)

    @field_validator("business_description", "business_type", mode="before")
    @classmethod
    def default_blank_text(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("week_theme", "channel", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def segment_at(self, index: int) -> str | None:
        """Name of the enhanced audience segment at ``index``, if there is one."""
        if 0 <= index < len(self.audiences):
            return self.audiences[index].segment
        return None

    def audience_at(self, index: int) -> str | None:
        """Target audience at ``index`` without wrapping around."""
        if 0 <= index < len(self.target_audience):
            return self.target_audience[index]
        return None

    @property
    def theme(self) -> str:
        """Theme of the week being planned, or a generic one."""
        return self.week_theme or f"{self.business_type.capitalize()} content"
