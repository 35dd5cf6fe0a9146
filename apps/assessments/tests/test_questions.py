import pytest
from django.core.exceptions import ValidationError

from apps.assessments.questions import parse_questions


def test_parse_accepts_camel_case_correct_index():
    (question,) = parse_questions([{"question": " Which? ", "options": ["x", "y"], "correctIndex": 1}])

    assert question.prompt == "Which?"
    assert question.correct_index == 1
    assert question.to_public_dict() == {"prompt": "Which?", "options": ["x", "y"]}


@pytest.mark.parametrize(
    "raw",
    [
        [{"prompt": "", "options": ["x", "y"], "correct_index": 0}],
        [{"prompt": "Q", "options": ["x"], "correct_index": 0}],
        [{"prompt": "Q", "options": ["x", "y"], "correct_index": 2}],
        [{"prompt": "Q", "options": ["x", "y"], "correct_index": True}],
        ["not an object"],
        {"prompt": "Q"},
    ],
)
def test_parse_rejects_invalid_questions(raw):
    with pytest.raises(ValidationError):
        parse_questions(raw)
