"""Umsatz-Aufteilung: Buchungsumsatz, Lehrerverdienst, Schulanteil.

Alle Ansichten (Whiteboard, Lehrerportal, Dashboards) rechnen über
allocate_lesson(); so ergeben sich überall dieselben Zahlen.

Rechenweg pro Lesson mit Events und Provision:
  hours   = Σ event.duration / 60
  teacher = hours × commission.price_per_hour
  school  = students × (price_per_student / package_hours) × hours − teacher

Paketdauer 0 → Stundensatz 0 (kein ZeroDivisionError, kein NaN).
Fehlendes Paket oder fehlende Provision zählen als 0.
"""

from typing import Optional, Sequence

from pydantic import BaseModel

from models.booking import Booking
from models.event import Event
from models.lesson import Lesson
from models.package import Package
from models.teacher import Commission


class LessonRevenue(BaseModel):
    """Umsatz-Aufschlüsselung über eine Menge von Buchungen."""

    revenue: float      # Erwarteter Gesamtumsatz (Schüler × Paketpreis)
    teacher: float      # Lehrerverdienst aus gehaltenen Events
    school: float       # Schulanteil aus gehaltenen Events
    money_made: float   # teacher + school


class LessonAllocation(BaseModel):
    """Verdienst-Aufteilung für eine einzelne Lesson."""

    hours: float
    teacher: float
    school: float


def booking_revenue(booking: Booking) -> float:
    """Erwarteter Umsatz einer Buchung, unabhängig von gehaltenen Stunden."""
    price = booking.package.price_per_student if booking.package else 0
    return booking.student_count * price


def allocate_hours(
    hours: float,
    student_count: int,
    package: Optional[Package],
    commission: Optional[Commission],
) -> LessonAllocation:
    """Teilt gehaltene Stunden in Lehrer- und Schulanteil auf.

    Ohne Provision gibt es weder Lehrer- noch Schulanteil (die Lesson gilt
    als nicht abrechenbar), der Buchungsumsatz bleibt davon unberührt.
    """
    if commission is None:
        return LessonAllocation(hours=hours, teacher=0.0, school=0.0)
    teacher = hours * commission.price_per_hour
    rate = package.hourly_rate_per_student if package else 0.0
    school_event_revenue = student_count * rate * hours
    return LessonAllocation(
        hours=hours,
        teacher=teacher,
        school=school_event_revenue - teacher,
    )


def allocate_lesson(
    lesson: Lesson,
    booking: Optional[Booking] = None,
    events: Optional[Sequence[Event]] = None,
) -> LessonAllocation:
    """Aufteilung für eine Lesson.

    Args:
        lesson: Die Lesson (mit Provision).
        booking: Buchung mit Paket und Schülern; Default: lesson.booking.
        events: Nur diese Events zählen (z.B. die eines Tages); Default: alle.
    """
    booking = booking or lesson.booking
    counted = list(lesson.events if events is None else events)
    if not counted:
        return LessonAllocation(hours=0.0, teacher=0.0, school=0.0)
    hours = sum(e.duration_or_zero for e in counted) / 60
    return allocate_hours(
        hours,
        booking.student_count if booking else 0,
        booking.package if booking else None,
        lesson.commission,
    )


def calc_lesson_revenue(bookings: Sequence[Booking]) -> LessonRevenue:
    """Umsatz, Lehrerverdienst und Schulanteil über alle Buchungen.

    Returns:
        LessonRevenue; money_made ist per Definition teacher + school.
    """
    revenue = 0.0
    teacher = 0.0
    school = 0.0

    for booking in bookings:
        revenue += booking_revenue(booking)
        for lesson in booking.lessons:
            alloc = allocate_lesson(lesson, booking=booking)
            teacher += alloc.teacher
            school += alloc.school

    return LessonRevenue(
        revenue=revenue,
        teacher=teacher,
        school=school,
        money_made=teacher + school,
    )
