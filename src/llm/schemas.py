from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vocal_clerk.models import DEFAULT_CATEGORY_NAME, TaskPriority


class TaskCandidate(BaseModel):
    """One task as extracted from text, before it is persisted.

    Field aliases follow the camelCase keys the prompt asks the model for;
    unknown keys are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(..., min_length=1)
    description: str = ""
    due_date: Optional[datetime] = Field(default=None, alias="dueDate")
    reminder_time: Optional[datetime] = Field(default=None, alias="reminderTime")
    priority: TaskPriority = TaskPriority.MEDIUM
    category: str = DEFAULT_CATEGORY_NAME
    tags: List[str] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def title_as_text(cls, v: Any) -> str:
        if v is None:
            raise ValueError("title is required")
        return str(v).strip()

    @field_validator("description", mode="before")
    @classmethod
    def description_as_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("due_date", "reminder_time", mode="before")
    @classmethod
    def lenient_datetime(cls, v: Any) -> Optional[datetime]:
        if v is None or isinstance(v, datetime):
            return v
        if not isinstance(v, str) or not v.strip():
            return None
        try:
            return datetime.fromisoformat(v.strip().replace("Z", "+00:00"))
        except ValueError:
            return None

    @field_validator("due_date", "reminder_time")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("priority", mode="before")
    @classmethod
    def lenient_priority(cls, v: Any) -> TaskPriority:
        if isinstance(v, TaskPriority):
            return v
        try:
            return TaskPriority(str(v).strip().upper())
        except ValueError:
            return TaskPriority.MEDIUM

    @field_validator("category", mode="before")
    @classmethod
    def category_or_default(cls, v: Any) -> str:
        if v is None:
            return DEFAULT_CATEGORY_NAME
        name = str(v).strip()
        return name or DEFAULT_CATEGORY_NAME

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v: Any) -> List[str]:
        if not isinstance(v, list):
            return []
        out: List[str] = []
        for item in v:
            if item is None:
                continue
            name = str(item).strip()
            if name and name not in out:
                out.append(name)
        return out
