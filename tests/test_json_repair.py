"""
Tests for the layered JSON repair used on LLM responses.
"""

import pytest

from utils.parsing.json import repair_and_parse_json

KILLER = {"title": "Weak CTA", "detail": "Generic label"}


@pytest.mark.parametrize(
    "name, text",
    [
        ("valid", '{"totalFound": 1, "killers": [{"title": "Weak CTA", "detail": "Generic label"}]}'),
        ("trailing comma", '{"totalFound": 1, "killers": [{"title": "Weak CTA", "detail": "Generic label",},],}'),
        (
            "single-line comment",
            '{"totalFound": 1, // one is enough\n"killers": [{"title": "Weak CTA", "detail": "Generic label"}]}',
        ),
        (
            "multi-line comment",
            '{"totalFound": 1, /* counted */ "killers": [{"title": "Weak CTA", "detail": "Generic label"}]}',
        ),
        (
            "markdown code block",
            '```json\n{"totalFound": 1, "killers": [{"title": "Weak CTA", "detail": "Generic label"}]}\n```',
        ),
        (
            "trailing comma and comment",
            '{"totalFound": 1, // one\n"killers": [{"title": "Weak CTA", "detail": "Generic label",}]}',
        ),
        (
            "surrounding prose",
            'Here is my analysis:\n{"totalFound": 1, "killers": [{"title": "Weak CTA", "detail": "Generic label"}]}\nLet me know!',
        ),
    ],
)
def test_repairs(name, text):
    assert repair_and_parse_json(text) == {"totalFound": 1, "killers": [KILLER]}


def test_single_quotes():
    assert repair_and_parse_json("{'totalFound': 0, 'killers': []}") == {"totalFound": 0, "killers": []}


def test_top_level_list_is_rejected():
    with pytest.raises(ValueError):
        repair_and_parse_json('[{"title": "A", "detail": "B"}]')


def test_garbage_raises():
    with pytest.raises(ValueError):
        repair_and_parse_json("I am sorry, I cannot analyze this page.")
