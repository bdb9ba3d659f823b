from datetime import timedelta

from extraction.fallback import FallbackGenerator
from vocal_clerk.models import TaskPriority


def test_short_input_is_kept_as_title(fixed_clock):
    c = FallbackGenerator(clock=fixed_clock).generate("Call the plumber")
    assert c.title == "Call the plumber"
    assert c.description == "Call the plumber"
    assert c.priority == TaskPriority.MEDIUM
    assert c.category == "General"


def test_long_input_is_truncated_with_ellipsis(fixed_clock):
    text = "word " * 60
    c = FallbackGenerator(clock=fixed_clock).generate(text)
    assert len(c.title) <= 100
    assert c.title.endswith("...")
    assert c.description == text


def test_exactly_100_chars_is_not_truncated(fixed_clock):
    text = "a" * 100
    assert FallbackGenerator(clock=fixed_clock).generate(text).title == text


def test_title_strips_fences_brackets_and_quotes(fixed_clock):
    c = FallbackGenerator(clock=fixed_clock).generate('```json [{"title": "oops"}] ```')
    for ch in "`[]{}\"'":
        assert ch not in c.title
    assert "oops" in c.title


def test_title_never_empty(fixed_clock):
    assert FallbackGenerator(clock=fixed_clock).generate("```[]```").title == "Untitled note"


def test_due_and_reminder_times(fixed_clock):
    c = FallbackGenerator(clock=fixed_clock).generate("anything")
    assert c.due_date == fixed_clock() + timedelta(hours=24)
    assert c.reminder_time == c.due_date - timedelta(minutes=15)


def test_tags_from_capitalized_words(fixed_clock):
    c = FallbackGenerator(clock=fixed_clock).generate(
        "Ask Sarah about the Quarterly report for Amazon, then Berlin trip. Also Sarah again"
    )
    assert c.tags == ["Sarah", "Quarterly", "Amazon"]


def test_short_or_lowercase_words_are_not_tags(fixed_clock):
    c = FallbackGenerator(clock=fixed_clock).generate("Call Bob at home about things")
    assert c.tags == []
