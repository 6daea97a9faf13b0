"""Datenmodell für eine Lesson (Lehrer-Zuweisung zu einer Buchung, Pydantic v2)."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, model_validator

from models.event import Event
from models.teacher import Commission, Teacher

if TYPE_CHECKING:
    from models.booking import Booking


class LessonStatus(str, Enum):
    PLANNED = "planned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REST = "rest"
    DELEGATED = "delegated"


class Lesson(BaseModel):
    """Eine Lesson: genau eine Buchung, höchstens ein Lehrer, beliebig viele Events.

    `booking` ist der denormalisierte Join (Paket + Schüler). Lessons, die
    in `Booking.lessons` stecken, tragen ihn nicht noch einmal.
    """

    id: str
    booking_id: Optional[str] = None
    teacher: Optional[Teacher] = None
    commission_id: Optional[str] = None
    commission: Optional[Commission] = None
    status: LessonStatus = LessonStatus.PLANNED
    events: list[Event] = []
    booking: Optional[Booking] = None

    @model_validator(mode='after')
    def fill_commission_id(self):
        """commission_id folgt dem Join, wenn nur der Join geliefert wurde."""
        if self.commission_id is None and self.commission is not None:
            self.commission_id = self.commission.id
        return self

    @property
    def teacher_id(self) -> Optional[str]:
        return self.teacher.id if self.teacher else None

    @property
    def student_count(self) -> int:
        """Schüler der Buchung (0 ohne Join)."""
        return self.booking.student_count if self.booking else 0

    def event_minutes(self, events: Optional[list[Event]] = None) -> int:
        """Summe der Event-Dauern (Default: alle Events der Lesson)."""
        return sum(e.duration_or_zero for e in (self.events if events is None else events))
