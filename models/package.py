"""Datenmodell für ein Kurspaket (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, Field


class Package(BaseModel):
    """Ein buchbares Paket: Dauer, Preis und Kapazität.

    Die Dauer ist der Nenner aller Stundensätze (Preis ÷ Dauer). Ein Paket
    mit Dauer 0 hat keinen definierten Stundensatz; Rechnungen setzen ihn
    dann auf 0.
    """

    id: Optional[str] = None
    duration: int = Field(0, ge=0)          # Minuten
    price_per_student: float = Field(0, ge=0)
    capacity_students: int = Field(1, ge=0)
    capacity_kites: int = Field(1, ge=0)
    description: Optional[str] = None

    @property
    def hours(self) -> float:
        """Paketdauer in Stunden."""
        return self.duration / 60

    @property
    def hourly_rate_per_student(self) -> float:
        """Impliziter Stundensatz pro Schüler (0 bei Dauer 0)."""
        return self.price_per_student / self.hours if self.hours > 0 else 0.0
