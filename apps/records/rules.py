"""Typed completion rule configurations.

Each rule type has its own frozen dataclass. Raw JSON configs are parsed into
one of them when a rule is written, so malformed configs are rejected up
front instead of failing silently at evaluation time.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Mapping, Union

from apps.core.errors import InvalidCompletionRule


def _require_int(raw: Mapping[str, Any], key: str, *, minimum: int, maximum: int | None = None, default=None) -> int | None:
    value = raw.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidCompletionRule(f"'{key}' must be an integer.")
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f"between {minimum} and {maximum}" if maximum is not None else f"at least {minimum}"
        raise InvalidCompletionRule(f"'{key}' must be {bounds}.")
    return value


def _alias(raw: Mapping[str, Any], key: str, alias: str) -> dict[str, Any]:
    data = dict(raw)
    if key not in data and alias in data:
        data[key] = data.pop(alias)
    return data


@dataclass(frozen=True)
class QuizPassConfig:
    rule_type: ClassVar[str] = "quiz_pass"

    quiz_id: int
    min_score: int | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "QuizPassConfig":
        data = _alias(_alias(raw, "quiz_id", "quizId"), "min_score", "minScore")
        quiz_id = _require_int(data, "quiz_id", minimum=1)
        if quiz_id is None:
            raise InvalidCompletionRule("quiz_pass rules require 'quiz_id'.")
        return cls(quiz_id=quiz_id, min_score=_require_int(data, "min_score", minimum=0, maximum=100))


@dataclass(frozen=True)
class EvidenceUploadConfig:
    rule_type: ClassVar[str] = "evidence_upload"

    min_files: int = 1
    required_types: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "EvidenceUploadConfig":
        data = _alias(_alias(raw, "min_files", "minFiles"), "required_types", "requiredTypes")
        min_files = _require_int(data, "min_files", minimum=1, default=1)
        required = data.get("required_types") or ()
        if isinstance(required, str) or not all(isinstance(item, str) for item in required):
            raise InvalidCompletionRule("'required_types' must be a list of file types.")
        return cls(
            min_files=min_files,
            required_types=tuple(item.strip().lower() for item in required if item.strip()),
        )


@dataclass(frozen=True)
class WatchTimeConfig:
    rule_type: ClassVar[str] = "watch_time"

    min_watch_percent: int

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "WatchTimeConfig":
        data = _alias(raw, "min_watch_percent", "minWatchPercent")
        percent = _require_int(data, "min_watch_percent", minimum=0, maximum=100)
        if percent is None:
            raise InvalidCompletionRule("watch_time rules require 'min_watch_percent'.")
        return cls(min_watch_percent=percent)


@dataclass(frozen=True)
class AttendanceConfig:
    rule_type: ClassVar[str] = "attendance"

    confirmation_required: bool = True

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "AttendanceConfig":
        data = _alias(raw, "confirmation_required", "confirmationRequired")
        value = data.get("confirmation_required", True)
        if not isinstance(value, bool):
            raise InvalidCompletionRule("'confirmation_required' must be a boolean.")
        return cls(confirmation_required=value)


RuleConfig = Union[QuizPassConfig, EvidenceUploadConfig, WatchTimeConfig, AttendanceConfig]

RULE_CONFIG_TYPES: dict[str, type] = {
    config.rule_type: config
    for config in (QuizPassConfig, EvidenceUploadConfig, WatchTimeConfig, AttendanceConfig)
}


def parse_rule_config(rule_type: str, raw: Mapping[str, Any] | None) -> RuleConfig:
    """Return the typed config for ``rule_type`` or raise ``InvalidCompletionRule``."""

    config_cls = RULE_CONFIG_TYPES.get(rule_type)
    if config_cls is None:
        raise InvalidCompletionRule(f"Unknown completion rule type '{rule_type}'.")
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise InvalidCompletionRule("Completion rule config must be an object.")
    return config_cls.from_mapping(raw)


def config_to_dict(config: RuleConfig) -> dict[str, Any]:
    data = asdict(config)
    if isinstance(config, EvidenceUploadConfig):
        data["required_types"] = list(config.required_types)
    return data
