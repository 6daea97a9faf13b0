"""Datenmodell für Schüler und die Buchungs-Zuordnung (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel


class Student(BaseModel):
    """Ein Schüler der Kiteschule."""

    id: Optional[str] = None
    name: Optional[str] = None
    first_name: Optional[str] = None

    def display_name(self, fallback: str = "Unknown") -> str:
        """Name → Vorname → Platzhalter."""
        return self.name or self.first_name or fallback


class BookingStudent(BaseModel):
    """Join-Zeile Buchung ↔ Schüler (mit eingebettetem Schüler)."""

    student: Optional[Student] = None

    def display_name(self, fallback: str = "Unknown") -> str:
        if self.student is None:
            return fallback
        return self.student.display_name(fallback)
