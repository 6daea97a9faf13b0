"""Schul-Snapshot: gejointer Datenstand (Buchungen → Lessons → Events) als JSON."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, model_validator

from models.booking import Booking
from models.lesson import Lesson
from models.teacher import Commission, Teacher
from scheduling.booking_class import BookingClass


class SchoolSnapshot(BaseModel):
    """Alles, was Whiteboard und Auswertungen brauchen, in einem Objekt."""

    bookings: list[Booking] = []
    commissions: list[Commission] = []
    created_at: Optional[datetime] = None

    @model_validator(mode='after')
    def resolve_commissions(self):
        """Hängt Provisionen, die nur per commission_id verknüpft sind, als Join an.

        Danach rechnen Umsatz, Whiteboard und Lehrerportal mit derselben Provision.
        """
        by_id = {c.id: c for c in self.commissions if c.id is not None}
        for booking in self.bookings:
            for lesson in booking.lessons:
                if lesson.commission is None and lesson.commission_id in by_id:
                    lesson.commission = by_id[lesson.commission_id]
        return self

    def lessons(self) -> list[Lesson]:
        """Alle Lessons, jeweils mit Rückverweis auf ihre Buchung (ohne Lessons)."""
        result: list[Lesson] = []
        for booking in self.bookings:
            slim = booking.without_lessons()
            for lesson in booking.lessons:
                result.append(lesson.model_copy(update={
                    "booking": slim,
                    "booking_id": booking.id,
                }))
        return result

    def booking_classes(self, unknown_name: str = "Unknown") -> list[BookingClass]:
        return [BookingClass.from_booking(b, unknown_name=unknown_name) for b in self.bookings]

    def teachers(self) -> list[Teacher]:
        """Alle Lehrer mit mindestens einer Lesson, in Reihenfolge des ersten Auftretens."""
        seen: dict[str, Teacher] = {}
        for booking in self.bookings:
            for lesson in booking.lessons:
                if lesson.teacher is not None and lesson.teacher.id not in seen:
                    seen[lesson.teacher.id] = lesson.teacher
        return list(seen.values())

    def get_teacher(self, teacher_id: str) -> Optional[Teacher]:
        return next((t for t in self.teachers() if t.id == teacher_id), None)

    def lessons_for_teacher(self, teacher_id: str) -> list[Lesson]:
        return [l for l in self.lessons() if l.teacher_id == teacher_id]

    def commissions_for_teacher(self, teacher_id: str) -> list[Commission]:
        return [c for c in self.commissions if c.teacher_id == teacher_id]

    def summary(self) -> str:
        lessons = self.lessons()
        events = sum(len(l.events) for l in lessons)
        return (
            f"Buchungen: {len(self.bookings)} | Lessons: {len(lessons)} | "
            f"Events: {events} | Lehrer: {len(self.teachers())}"
        )

    # ─── Persistenz ───────────────────────────────────────────────────────

    def save_json(self, path: Path) -> None:
        """Speichert den Snapshot als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        updated = self.model_copy(update={
            "created_at": self.created_at or datetime.now(timezone.utc),
        })
        with open(path, "w", encoding="utf-8") as f:
            f.write(updated.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "SchoolSnapshot":
        """Lädt einen Snapshot aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())
