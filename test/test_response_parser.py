import pytest

from extraction.response_parser import ResponseParser
from vocal_clerk.errors import MalformedExtraction
from vocal_clerk.models import TaskPriority

ARRAY = '[{"title":"Meeting with AWS","priority":"HIGH","category":"Meeting","tags":["aws"]}]'


def test_plain_array():
    out = ResponseParser().parse(ARRAY)
    assert len(out) == 1
    assert out[0].title == "Meeting with AWS"
    assert out[0].priority == TaskPriority.HIGH
    assert out[0].category == "Meeting"
    assert out[0].tags == ["aws"]


def test_fenced_block_parses_like_plain_array():
    parser = ResponseParser()
    fenced = "```json\n" + ARRAY + "\n```"
    assert parser.parse(fenced) == parser.parse(ARRAY)
    assert parser.parse("```\n" + ARRAY + "\n```") == parser.parse(ARRAY)


def test_prose_around_array():
    out = ResponseParser().parse("Sure! Here are your tasks:\n" + ARRAY + "\nLet me know if ...")
    assert out[0].title == "Meeting with AWS"


def test_defaults_for_missing_fields():
    out = ResponseParser().parse('[{"title":"Call mom","unknown":42}]')
    c = out[0]
    assert c.description == ""
    assert c.priority == TaskPriority.MEDIUM
    assert c.category == "General"
    assert c.tags == []
    assert c.due_date is None and c.reminder_time is None


def test_dates_are_parsed_and_assumed_utc():
    out = ResponseParser().parse(
        '[{"title":"Dentist","dueDate":"2026-03-03T14:00:00","reminderTime":"not a date"}]'
    )
    assert out[0].due_date.isoformat() == "2026-03-03T14:00:00+00:00"
    assert out[0].reminder_time is None


def test_lenient_field_values():
    out = ResponseParser().parse(
        '[{"title":"X","priority":"whenever","category":null,"tags":"solo","description":null}]'
    )
    assert out[0].priority == TaskPriority.MEDIUM
    assert out[0].category == "General"
    assert out[0].tags == []
    assert out[0].description == ""


def test_bad_items_are_skipped_not_fatal():
    out = ResponseParser().parse('[{"title":"Keep me"}, "junk", {"description":"no title"}, 7]')
    assert [c.title for c in out] == ["Keep me"]


@pytest.mark.parametrize(
    "raw",
    [
        "THIS IS NOT JSON AT ALL",
        '{"tasks": "object not array"}',
        "[{'title': 'single quotes'}]",
        "[]",
        '["just", "strings"]',
        "]backwards[",
    ],
)
def test_malformed_responses(raw):
    with pytest.raises(MalformedExtraction):
        ResponseParser().parse(raw)


def test_deeply_nested_array_is_malformed():
    with pytest.raises(MalformedExtraction):
        ResponseParser().parse("[" * 100000 + "]" * 100000)
