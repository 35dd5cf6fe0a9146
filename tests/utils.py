"""Builders shared by the test suites."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from unittest.mock import patch

from django.db import connection
from django.db.models import QuerySet

from apps.records.models import Evidence


def make_questions(count=4, correct_index=1):
    return [
        {
            "prompt": f"Question {number}?",
            "options": ["A", "B", "C", "D"],
            "correct_index": correct_index,
            "explanation": f"Option B answers question {number}.",
        }
        for number in range(1, count + 1)
    ]


def answers_with_correct(correct, total, correct_index=1):
    """Answer ``correct`` of ``total`` questions right and the rest wrong."""

    wrong_index = (correct_index + 1) % 4
    return [correct_index] * correct + [wrong_index] * (total - correct)


def attach_evidence(record, *file_types):
    counter = Evidence.objects.count()
    return [
        Evidence.objects.create(
            learner=record.learner,
            credit_record=record,
            file_name=f"evidence-{counter + index}.{file_type}",
            file_type=file_type,
            file_size=1024,
            storage_key=f"evidence/{record.pk}/{counter + index}.{file_type}",
        )
        for index, file_type in enumerate(file_types)
    ]


@dataclass(frozen=True)
class DatabaseEvent:
    kind: str
    text: str
    blocks: tuple

    @property
    def block(self):
        return self.blocks[-1] if self.blocks else None


@contextmanager
def capture_locking():
    """Record ``select_for_update`` calls and executed SQL, in order.

    Each event keeps the atomic blocks open at the time, so a test can tell
    whether a statement ran inside the transaction that took a row lock.
    SQLite drops ``FOR UPDATE`` from the SQL, hence the queryset hook.
    """

    events: list[DatabaseEvent] = []
    original = QuerySet.select_for_update

    def select_for_update(queryset, *args, **kwargs):
        events.append(DatabaseEvent("lock", queryset.model._meta.db_table, tuple(connection.atomic_blocks)))
        return original(queryset, *args, **kwargs)

    def record_sql(execute, sql, params, many, context):
        events.append(DatabaseEvent("sql", sql, tuple(connection.atomic_blocks)))
        return execute(sql, params, many, context)

    with patch.object(QuerySet, "select_for_update", select_for_update), connection.execute_wrapper(record_sql):
        yield events


def statements_after(events, lock, prefix, table):
    """SQL events following ``lock`` that start with ``prefix`` and touch ``table``."""

    position = events.index(lock)
    return [
        event
        for event in events[position + 1 :]
        if event.kind == "sql" and event.text.lstrip().upper().startswith(prefix) and table in event.text
    ]
