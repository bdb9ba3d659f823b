import pytest

from vocal_clerk.models import (
    Category,
    RawInput,
    Task,
    TaskPriority,
    UserSettings,
)


def _category():
    return Category(name="General", owner_id="alice", is_default=True)


def test_task_defaults():
    t = Task(title="Test", category=_category(), owner_id="alice")
    assert t.priority == TaskPriority.MEDIUM
    assert t.completed is False
    assert t.completed_at is None
    assert t.tags == []


def test_task_completion_toggle():
    t = Task(title="Test", category=_category(), owner_id="alice")
    t.mark_completed()
    assert t.completed and t.completed_at is not None
    first = t.completed_at
    t.mark_completed()
    assert t.completed_at == first
    t.mark_not_completed()
    assert not t.completed and t.completed_at is None


def test_task_empty_title():
    with pytest.raises(Exception):
        Task(title="   ", category=_category(), owner_id="alice")


def test_raw_input_is_immutable():
    raw = RawInput(content="call mom", owner_id="alice")
    with pytest.raises(Exception):
        raw.content = "something else"
    assert raw.generated_task_ids == ()


def test_settings_defaults():
    s = UserSettings()
    assert s.ai_model == "ollama"
    assert s.preferred_language == "en"
