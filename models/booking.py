"""Datenmodell für eine Buchung (Pydantic v2)."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, model_validator

from models.lesson import Lesson
from models.package import Package
from models.student import BookingStudent


class Booking(BaseModel):
    """Eine Buchung: gekauftes Paket über einen Zeitraum, mit Schülern und Lessons."""

    id: str
    date_start: date
    date_end: date
    status: str = "active"
    package: Optional[Package] = None
    students: list[BookingStudent] = []
    lessons: list[Lesson] = []

    @model_validator(mode='after')
    def _check_date_range(self):
        if self.date_start > self.date_end:
            raise ValueError(
                f"Buchung {self.id}: date_start ({self.date_start}) "
                f"> date_end ({self.date_end})"
            )
        return self

    @property
    def student_count(self) -> int:
        return len(self.students)

    def student_names(self, fallback: str = "Unknown") -> list[str]:
        """Anzeigenamen aller Schüler (Platzhalter für namenlose Einträge)."""
        return [bs.display_name(fallback) for bs in self.students]

    def without_lessons(self) -> "Booking":
        """Kopie ohne Lessons (für den Rückverweis Lesson → Buchung)."""
        return self.model_copy(update={"lessons": []})


# Lesson.booking referenziert Booking (zirkulär) → nachträglich auflösen
Lesson.model_rebuild()
Booking.model_rebuild()
