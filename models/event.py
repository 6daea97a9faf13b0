"""Datenmodell für ein Event (einzelner Unterrichtstermin, Pydantic v2)."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class EventStatus(str, Enum):
    PLANNED = "planned"
    TBC = "tbc"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Event(BaseModel):
    """Ein datierter, terminierter Unterrichtsblock innerhalb einer Lesson.

    `date` ist der Zeitstempel aus der Datenbank (ISO, UTC) und trägt Tag UND
    Startzeit. Er bleibt ein String, damit eine kaputte Zeile erst beim
    Einplanen auffällt und nur diese Zeile aussortiert wird.
    """

    id: Optional[str] = None
    lesson_id: Optional[str] = None
    date: Optional[str] = None
    duration: Optional[int] = None     # Minuten
    location: Optional[str] = None
    status: EventStatus = EventStatus.PLANNED

    @property
    def duration_or_zero(self) -> int:
        return self.duration or 0
