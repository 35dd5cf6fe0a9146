"""Typed view over the question list stored on an assessment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from django.core.exceptions import ValidationError


@dataclass(frozen=True)
class Question:
    prompt: str
    options: tuple[str, ...]
    correct_index: int
    explanation: str = ""

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], *, position: int) -> "Question":
        if not isinstance(raw, Mapping):
            raise ValidationError(f"Question {position} must be an object.")

        prompt = raw.get("prompt") or raw.get("question")
        options = raw.get("options")
        correct_index = raw.get("correct_index", raw.get("correctIndex"))

        if not isinstance(prompt, str) or not prompt.strip():
            raise ValidationError(f"Question {position} requires a prompt.")
        if not isinstance(options, (list, tuple)) or len(options) < 2:
            raise ValidationError(f"Question {position} requires at least two options.")
        if isinstance(correct_index, bool) or not isinstance(correct_index, int):
            raise ValidationError(f"Question {position} requires an integer correct_index.")
        if not 0 <= correct_index < len(options):
            raise ValidationError(f"Question {position} correct_index is out of range.")

        return cls(
            prompt=prompt.strip(),
            options=tuple(str(option) for option in options),
            correct_index=correct_index,
            explanation=str(raw.get("explanation") or ""),
        )

    def to_public_dict(self) -> dict[str, Any]:
        """Return the learner-facing view with answers stripped."""

        return {"prompt": self.prompt, "options": list(self.options)}

    def to_dict(self) -> dict[str, Any]:
        return {
            "prompt": self.prompt,
            "options": list(self.options),
            "correct_index": self.correct_index,
            "explanation": self.explanation,
        }


def parse_questions(raw: Iterable[Mapping[str, Any]] | None) -> list[Question]:
    """Validate and convert a stored question list."""

    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise ValidationError("Questions must be stored as a list.")
    return [Question.from_mapping(item, position=index) for index, item in enumerate(raw)]
