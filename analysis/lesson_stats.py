"""Stunden-Statistik nach Unterrichtsart (privat / semi-privat / Gruppe)."""

import math
from typing import Sequence

from pydantic import BaseModel

from models.lesson import Lesson


def round_hours(hours: float) -> float:
    """Eine Nachkommastelle, halbe Zehntel runden auf (1,25 → 1,3)."""
    return math.floor(hours * 10 + 0.5) / 10


class LessonStats(BaseModel):
    """Stunden je Kategorie (gerundet auf 0,1h)."""

    total_hours: float
    private_hours: float   # 1 Schüler
    semi_private: float    # 2 Schüler
    group: float           # 3+ Schüler

    @property
    def categorized_hours(self) -> float:
        return self.private_hours + self.semi_private + self.group


def calc_lesson_stats(lessons: Sequence[Lesson]) -> LessonStats:
    """Summiert Event-Stunden je Lesson und ordnet sie nach Schülerzahl ein.

    Lessons ohne Schüler (0) zählen nur in total_hours. Gerundet wird
    einmal am Ende, nicht pro Lesson.
    """
    total = 0.0
    private = 0.0
    semi = 0.0
    group = 0.0

    for lesson in lessons:
        if not lesson.events:
            continue
        lesson_hours = lesson.event_minutes() / 60
        total += lesson_hours

        students = lesson.student_count
        if students == 1:
            private += lesson_hours
        elif students == 2:
            semi += lesson_hours
        elif students >= 3:
            group += lesson_hours

    return LessonStats(
        total_hours=round_hours(total),
        private_hours=round_hours(private),
        semi_private=round_hours(semi),
        group=round_hours(group),
    )
