from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CATEGORY_NAME = "General"
DEFAULT_CATEGORY_COLOR = "#808080"
DEFAULT_CATEGORY_ICON = "folder"


def _new_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InputType(str, Enum):
    TEXT = "TEXT"
    VOICE = "VOICE"


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class UserSettings(BaseModel):
    ai_model: str = "ollama"
    preferred_language: str = "en"
    reminder_lead_time_min: int = Field(15, ge=0)


class User(BaseModel):
    id: str
    username: str
    settings: UserSettings = Field(default_factory=UserSettings)


class RawInput(BaseModel):
    """The user's original submission. Never mutated once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    content: str
    type: InputType = InputType.TEXT
    owner_id: str
    created_at: datetime = Field(default_factory=utcnow)

    # filled on the copy handed back after materialization
    generated_task_ids: Tuple[str, ...] = ()


class AIProcessingResult(BaseModel):
    """Audit record written once per ingestion, success or fallback."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    raw_input_id: str
    processed_content_summary: str = ""
    ai_model_used: str
    processing_time_ms: int = Field(0, ge=0)
    confidence_score: float = Field(0.0, ge=0.0, le=1.0)
    created_at: datetime = Field(default_factory=utcnow)


class Category(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str = Field(..., min_length=1)
    color: str = DEFAULT_CATEGORY_COLOR
    icon: str = DEFAULT_CATEGORY_ICON
    owner_id: str
    is_default: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class Tag(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str = Field(..., min_length=1)
    owner_id: str
    created_at: datetime = Field(default_factory=utcnow)


class Task(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str = Field(..., min_length=1)
    description: str = ""

    due_date: Optional[datetime] = None
    reminder_time: Optional[datetime] = None
    priority: TaskPriority = TaskPriority.MEDIUM

    category: Category
    owner_id: str
    raw_input_id: Optional[str] = None
    original_input_text: Optional[str] = None
    tags: List[Tag] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=utcnow)
    completed: bool = False
    completed_at: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("title must not be blank")
        return v2

    def mark_completed(self) -> None:
        if not self.completed:
            self.completed = True
            self.completed_at = utcnow()

    def mark_not_completed(self) -> None:
        self.completed = False
        self.completed_at = None
