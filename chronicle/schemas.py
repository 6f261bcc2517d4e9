"""
chronicle.schemas — Pydantic input schemas
===========================================

Drafts, edits and search filters are validated here before any store
access.  Pydantic failures are re-raised as
:class:`chronicle.errors.ValidationError`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from chronicle.database.models import EntryStatus, EntryType, MilestoneType, Mood
from chronicle.errors import ValidationError


class EntryDraft(BaseModel):
    """A contribution as submitted by the actor."""

    model_config = ConfigDict(extra="forbid")

    type: EntryType
    title: str = Field(min_length=1, max_length=200)
    content: str = ""
    mood: Mood | None = None
    energy: int | None = Field(default=None, ge=1, le=10)
    tags: set[str] = Field(default_factory=set)
    skills_learned: set[str] = Field(default_factory=set)
    is_public: bool = True
    is_milestone: bool = False
    milestone_type: MilestoneType | None = None
    time_spent: int | None = Field(default=None, ge=0)


class EntryUpdate(BaseModel):
    """Author edits.  Only fields explicitly set are applied."""

    model_config = ConfigDict(extra="forbid")

    type: EntryType | None = None
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = None
    mood: Mood | None = None
    energy: int | None = Field(default=None, ge=1, le=10)
    tags: set[str] | None = None
    skills_learned: set[str] | None = None
    is_public: bool | None = None
    is_milestone: bool | None = None
    milestone_type: MilestoneType | None = None
    time_spent: int | None = Field(default=None, ge=0)


class EntryFilter(BaseModel):
    project_id: str | None = None
    author_id: str | None = None
    type: EntryType | None = None
    mood: Mood | None = None
    status: EntryStatus | None = None
    is_milestone: bool | None = None
    is_public: bool | None = None
    start: datetime | None = None
    end: datetime | None = None
    tags: set[str] = Field(default_factory=set)
    skills_learned: set[str] = Field(default_factory=set)


def _coerce(model: type[BaseModel], data: Any) -> Any:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            f"Invalid {model.__name__}",
            details={"errors": exc.errors(include_url=False)},
        ) from exc


def parse_draft(data: EntryDraft | dict[str, Any]) -> EntryDraft:
    return _coerce(EntryDraft, data)


def parse_update(data: EntryUpdate | dict[str, Any]) -> EntryUpdate:
    return _coerce(EntryUpdate, data)


def parse_filter(data: EntryFilter | dict[str, Any] | None) -> EntryFilter:
    if data is None:
        return EntryFilter()
    return _coerce(EntryFilter, data)
