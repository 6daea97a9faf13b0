"""Lehrerportal: Kennzahlen eines Lehrers über abgeschlossene Events."""

from typing import Optional, Sequence

from pydantic import BaseModel

from analysis.revenue import allocate_hours
from models.event import Event, EventStatus
from models.lesson import Lesson, LessonStatus
from models.teacher import Commission, Teacher
from scheduling.timecalc import InvalidFormat, is_same_utc_date


class TeacherPortalStats(BaseModel):
    """Zusammenfassung für das Lehrerportal (nur abgeschlossene Events)."""

    lessons_count: int
    events_count: int
    total_duration: int      # Minuten
    total_earnings: float    # €


class PortalEvent(BaseModel):
    """Ein Event mit Lesson-Kontext und Verdienst."""

    event: Event
    lesson_id: str
    student_names: list[str]
    earnings: float


class TeacherPortal:
    """Sicht eines Lehrers auf seine Lessons und Verdienste.

    Provisionen kommen aus lesson.commission; fehlt der Join, wird
    lesson.commission_id in `commissions` nachgeschlagen. Ohne Treffer
    verdient die Lesson nichts, wie in calc_lesson_revenue.
    """

    def __init__(
        self,
        teacher: Teacher,
        lessons: Sequence[Lesson],
        commissions: Sequence[Commission] = (),
    ) -> None:
        self.teacher = teacher
        self.lessons = list(lessons)
        self.commissions = list(commissions)
        self._stats = self._calculate_stats()

    def get_name(self) -> str:
        return self.teacher.name

    def stats(self) -> TeacherPortalStats:
        return self._stats

    def _calculate_stats(self) -> TeacherPortalStats:
        duration = 0
        events_count = 0
        earnings = 0.0
        for lesson in self.lessons:
            completed = self._completed(lesson)
            minutes = sum(e.duration_or_zero for e in completed)
            duration += minutes
            events_count += len(completed)
            earnings += self._earnings(lesson, minutes)
        return TeacherPortalStats(
            lessons_count=len(self.lessons),
            events_count=events_count,
            total_duration=duration,
            total_earnings=earnings,
        )

    def total_hours(self) -> float:
        return self._stats.total_duration / 60

    def average_hourly_rate(self) -> float:
        """Verdienst pro gehaltener Stunde (0 ohne Stunden)."""
        hours = self.total_hours()
        return self._stats.total_earnings / hours if hours > 0 else 0.0

    def completed_lessons_count(self) -> int:
        return sum(1 for l in self.lessons if l.status == LessonStatus.COMPLETED)

    def active_lessons_count(self) -> int:
        return sum(1 for l in self.lessons if l.status == LessonStatus.PLANNED)

    def all_events(self) -> list[PortalEvent]:
        """Alle Events (jeder Status) mit Verdienst pro Event."""
        result: list[PortalEvent] = []
        for lesson in self.lessons:
            names = lesson.booking.student_names() if lesson.booking else []
            for event in lesson.events:
                result.append(PortalEvent(
                    event=event,
                    lesson_id=lesson.id,
                    student_names=names,
                    earnings=self._earnings(lesson, event.duration_or_zero),
                ))
        return result

    def events_on(self, date: str) -> list[PortalEvent]:
        """Events an einem UTC-Tag; Events mit kaputtem Datum fehlen."""
        result: list[PortalEvent] = []
        for item in self.all_events():
            if not item.event.date:
                continue
            try:
                if is_same_utc_date(item.event.date, date):
                    result.append(item)
            except InvalidFormat:
                continue
        return result

    # ─── Interne Helfer ───────────────────────────────────────────────────

    @staticmethod
    def _completed(lesson: Lesson) -> list[Event]:
        return [e for e in lesson.events if e.status == EventStatus.COMPLETED]

    def _earnings(self, lesson: Lesson, minutes: int) -> float:
        commission = self._resolve_commission(lesson)
        if commission is None:
            return 0.0
        return allocate_hours(minutes / 60, 0, None, commission).teacher

    def _resolve_commission(self, lesson: Lesson) -> Optional[Commission]:
        if lesson.commission is not None:
            return lesson.commission
        if lesson.commission_id is None:
            return None
        for commission in self.commissions:
            if commission.id == lesson.commission_id:
                return commission
        return None
