from __future__ import annotations

import itertools
import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable

from services.visualization import SanitizedAnswer

IdGenerator = Callable[[str], str]


class CounterIds:
    """Mints ``<prefix>_<n>`` ids from a shared monotonically increasing counter."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)
        self._lock = Lock()

    def __call__(self, prefix: str) -> str:
        with self._lock:
            return f"{prefix}_{next(self._counter)}"


class ClockIds:
    """Mints ``<prefix>_<epoch ms>`` ids, bumping on collisions within one millisecond."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0
        self._lock = Lock()

    def __call__(self, prefix: str) -> str:
        with self._lock:
            value = max(int(self._clock() * 1000), self._last + 1)
            self._last = value
            return f"{prefix}_{value}"


@dataclass
class QuestionRecord:
    id: str
    user_id: str
    question: str
    answer_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "userId": self.user_id, "question": self.question, "answerId": self.answer_id}


@dataclass
class AnswerRecord:
    id: str
    question_id: str
    answer: SanitizedAnswer

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "questionId": self.question_id,
            "text": self.answer.text,
            "visualization": self.answer.visualization.to_dict(),
        }


class QuestionStore:
    def __init__(self, ids: IdGenerator | None = None) -> None:
        self._ids = ids or CounterIds()
        self._questions: list[QuestionRecord] = []
        self._answers: dict[str, AnswerRecord] = {}
        self._lock = Lock()

    def add_question(self, question: str, user_id: str = "u1") -> QuestionRecord:
        record = QuestionRecord(id=self._ids("q"), user_id=user_id, question=question)
        with self._lock:
            self._questions.append(record)
        return record

    def add_answer(self, question_id: str, answer: SanitizedAnswer) -> AnswerRecord:
        record = AnswerRecord(id=self._ids("a"), question_id=question_id, answer=answer)
        with self._lock:
            self._answers[record.id] = record
            for question in self._questions:
                if question.id == question_id:
                    question.answer_id = record.id
        return record

    def questions(self) -> list[QuestionRecord]:
        with self._lock:
            return list(self._questions)

    def get_answer(self, answer_id: str) -> AnswerRecord | None:
        with self._lock:
            return self._answers.get(answer_id)


__all__ = ["AnswerRecord", "ClockIds", "CounterIds", "QuestionRecord", "QuestionStore"]
