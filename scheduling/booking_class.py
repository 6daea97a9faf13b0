"""Karten-Zusammenfassung einer Buchung für die Lehrer-Spalten im Whiteboard."""

from datetime import date
from typing import Optional, Sequence

from pydantic import BaseModel

from models.booking import Booking
from models.lesson import Lesson


class BookingClass(BaseModel):
    """Reine Anzeigehilfe: was auf der Buchungskarte steht."""

    booking_id: str
    date_start: date
    date_end: date
    status: str
    student_names: list[str]
    package_description: Optional[str] = None
    package_duration: int = 0
    capacity_students: int = 0
    price_per_student: float = 0
    lesson_ids: list[str] = []
    teacher_ids: list[str] = []

    @classmethod
    def from_booking(
        cls,
        booking: Booking,
        lessons: Optional[Sequence[Lesson]] = None,
        unknown_name: str = "Unknown",
    ) -> "BookingClass":
        """Baut die Karte aus einer Buchung (Lessons Default: booking.lessons)."""
        own = list(booking.lessons if lessons is None else lessons)
        pkg = booking.package
        return cls(
            booking_id=booking.id,
            date_start=booking.date_start,
            date_end=booking.date_end,
            status=booking.status,
            student_names=booking.student_names(unknown_name),
            package_description=pkg.description if pkg else None,
            package_duration=pkg.duration if pkg else 0,
            capacity_students=pkg.capacity_students if pkg else 0,
            price_per_student=pkg.price_per_student if pkg else 0,
            lesson_ids=[l.id for l in own],
            teacher_ids=sorted({l.teacher.id for l in own if l.teacher}),
        )

    def get_id(self) -> str:
        return self.booking_id
