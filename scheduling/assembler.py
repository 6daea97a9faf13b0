"""Baut die Tagespläne aller Lehrer aus den Lessons eines Datums.

Die Eingabe ist der fertig gejointe Stand aus der Datenschicht
(Lesson mit teacher, events, booking.students, booking.package, commission).
Das Ergebnis gilt nur für eine Anzeige- bzw. Bearbeitungs-Sitzung und wird
bei neuen Daten komplett neu gebaut, nie inkrementell gepatcht.
"""

import logging
from typing import Optional, Sequence

from config.defaults import default_school_config
from config.schema import SchoolConfig
from models.event import Event
from models.lesson import Lesson
from scheduling.booking_class import BookingClass
from scheduling.teacher_schedule import TeacherSchedule, TeacherStats
from scheduling.timecalc import (
    InvalidFormat,
    extract_time_from_utc,
    is_same_utc_date,
    minutes_to_time,
    time_to_minutes,
)

logger = logging.getLogger(__name__)


def _events_on(lesson: Lesson, selected_date: str) -> list[Event]:
    """Events der Lesson am gewählten UTC-Tag; kaputte Zeilen werden übersprungen."""
    result: list[Event] = []
    for event in lesson.events:
        if event is None or not event.date:
            continue
        try:
            if is_same_utc_date(event.date, selected_date):
                result.append(event)
        except InvalidFormat as e:
            logger.warning(f"Event {event.id} (Lesson {lesson.id}) übersprungen: {e}")
    return result


def create_teacher_schedules_from_lessons(
    lessons: Sequence[Lesson],
    booking_classes: Sequence[BookingClass],
    selected_date: str,
    config: Optional[SchoolConfig] = None,
) -> dict[str, TeacherSchedule]:
    """Erzeugt pro Lehrer einen TeacherSchedule für selected_date.

    1. Durchlauf: Lessons ohne Lehrer werden ausgelassen; Events des Tages
       kommen mit UTC-Uhrzeit und Schülernamen in den Plan.
    2. Durchlauf: Buchungskarten werden an jeden Lehrer gehängt, dessen
       Lessons die Buchung betreffen.

    Returns:
        teacher_id → TeacherSchedule (Einfügereihenfolge = erste Lesson je Lehrer)
    """
    config = config or default_school_config()
    schedules: dict[str, TeacherSchedule] = {}

    for lesson in lessons:
        if lesson.teacher is None or not lesson.teacher.id:
            continue
        teacher = lesson.teacher
        schedule = schedules.get(teacher.id)
        if schedule is None:
            schedule = TeacherSchedule(teacher.id, teacher.name, selected_date, config)
            schedules[teacher.id] = schedule
        schedule.add_lesson(lesson)

        booking = lesson.booking
        student_names = booking.student_names(config.unknown_student_name) if booking else []
        student_count = (booking.student_count if booking else 0) or 1

        for event in _events_on(lesson, selected_date):
            try:
                start_time = extract_time_from_utc(event.date)
                schedule.add_event(
                    start_time,
                    event.duration or config.default_event_duration,
                    lesson.id,
                    event.location or config.default_location,
                    student_count,
                    student_names or None,
                    event_id=event.id,
                )
            except InvalidFormat as e:
                logger.warning(f"Event {event.id} (Lesson {lesson.id}) übersprungen: {e}")

    for booking_class in booking_classes:
        for lesson in lessons:
            if _booking_id(lesson) != booking_class.get_id():
                continue
            if lesson.teacher is None:
                continue
            schedule = schedules.get(lesson.teacher.id)
            if schedule is not None:
                schedule.add_booking_class(booking_class)

    logger.info(
        f"{len(schedules)} Lehrer-Pläne für {selected_date} erstellt "
        f"({sum(len(s.events()) for s in schedules.values())} Events)"
    )
    return schedules


def _booking_id(lesson: Lesson) -> Optional[str]:
    if lesson.booking is not None:
        return lesson.booking.id
    return lesson.booking_id


def calculate_global_stats(schedules: dict[str, TeacherSchedule]) -> TeacherStats:
    """Feldweise Summe aller calculate_teacher_stats()."""
    return TeacherStats.total([s.calculate_teacher_stats() for s in schedules.values()])


def get_earliest_time_from_schedules(schedules: dict[str, TeacherSchedule]) -> Optional[str]:
    """Früheste Startzeit über alle Lehrer, None ohne Events."""
    times = [t for t in (s.get_earliest_time() for s in schedules.values()) if t]
    if not times:
        return None
    return minutes_to_time(min(time_to_minutes(t) for t in times))
