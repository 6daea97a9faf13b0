import re

from pydantic import BaseModel, Field, model_validator
from enum import Enum

_HHMM_RE = re.compile(r"^([0-9]{1,2}):([0-9]{2})$")


class OverlapPolicy(str, Enum):
    CLAMP = "clamp"
    REJECT = "reject"


def _parse_hhmm(value: str) -> int:
    """Wandelt "HH:MM" in Minuten um (nur für die Config-Validierung)."""
    match = _HHMM_RE.match(value)
    if match is None:
        raise ValueError(f"Ungültige Uhrzeit '{value}' (erwartet HH:MM)")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Uhrzeit außerhalb des Bereichs: '{value}'")
    return hours * 60 + minutes


# ─── GESAMT-CONFIG ───

class SchoolConfig(BaseModel):
    """Gesamtkonfiguration der Kiteschule für Whiteboard und Stundenplanung.

    Alle Uhrzeiten sind UTC-Wandzeit im Format "HH:MM". Die Schule arbeitet
    in genau einer Zeitzone, deshalb gibt es keine Zeitzonen-Einstellung.
    """
    # Name der Schule
    school_name: str = Field("Kiteschule Los Lances",
        description="Name der Schule")
    # Standard-Spot, wenn ein Event keinen Ort trägt
    default_location: str = Field("Los Lances",
        description="Standard-Ort für Events ohne Ort")
    # Fallback-Dauer in Minuten für Events ohne Dauer
    default_event_duration: int = Field(120, ge=1,
        description="Fallback-Dauer (Minuten) für Events ohne Dauer")
    # Schrittweite der +/- Buttons beim Verschieben und Verlängern
    time_step_minutes: int = Field(30, ge=1, le=240,
        description="Schrittweite für Zeit- und Dauer-Anpassungen (Minuten)")
    # Kürzeste erlaubte Event-Dauer
    min_duration: int = Field(30, ge=1,
        description="Minimale Event-Dauer (Minuten)")
    # Ab dieser Länge gilt eine Lücke als "echte" Lücke
    minimum_gap_minutes: int = Field(15, ge=0,
        description="Minimale Lückenlänge für has_gaps (Minuten)")
    # Arbeitszeit der Lehrer (für freie Slots)
    working_day_start: str = Field("09:00",
        description="Beginn des Arbeitstages (HH:MM, UTC)")
    working_day_end: str = Field("18:00",
        description="Ende des Arbeitstages (HH:MM, UTC)")
    # Verhalten bei Überschneidung durch Verschieben/Verlängern
    overlap_policy: OverlapPolicy = Field(OverlapPolicy.CLAMP,
        description="clamp = an Nachbargrenze kappen, reject = Änderung ablehnen")
    # Anzeigename für Schüler ohne Namen
    unknown_student_name: str = Field("Unknown",
        description="Platzhalter für Schüler ohne Namen")
    # Controller-Defaults: Dauer neuer Events je Paket-Kapazität
    duration_cap_one: int = Field(120, ge=1,
        description="Dauer neuer Events bei Privatstunden (1 Schüler)")
    duration_cap_two: int = Field(150, ge=1,
        description="Dauer neuer Events bei Semi-Privat (2 Schüler)")
    duration_cap_three: int = Field(180, ge=1,
        description="Dauer neuer Events bei Gruppen (3+ Schüler)")

    @model_validator(mode='after')
    def validate_working_day(self):
        """Arbeitstag muss gültige Uhrzeiten haben und vorwärts laufen."""
        start = _parse_hhmm(self.working_day_start)
        end = _parse_hhmm(self.working_day_end)
        if start >= end:
            raise ValueError(
                f"Arbeitstag {self.working_day_start}–{self.working_day_end} "
                f"endet nicht nach dem Beginn")
        if self.min_duration > self.default_event_duration:
            raise ValueError(
                f"min_duration ({self.min_duration}) > "
                f"default_event_duration ({self.default_event_duration})")
        return self

    def duration_for_capacity(self, capacity_students: int) -> int:
        """Standard-Dauer für ein neues Event anhand der Paket-Kapazität."""
        if capacity_students <= 1:
            return self.duration_cap_one
        if capacity_students == 2:
            return self.duration_cap_two
        return self.duration_cap_three
