"""UTC-sichere Zeit- und Datumsrechnung.

Alle Uhrzeiten der Anwendung sind UTC-Wandzeit. Die Schule arbeitet in
einer einzigen Zeitzone; es gibt keine Umrechnung in Lokalzeit.

Ungültige Uhrzeiten werden abgelehnt (InvalidFormat), nicht gekappt.
minutes_to_time wickelt modulo 24h ab, auch für negative Werte.
"""

import re
from datetime import date, datetime, timezone
from typing import Union

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^([0-9]{1,2}):([0-9]{2})$")
_DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")

DateLike = Union[str, datetime, date]


class InvalidFormat(ValueError):
    """Zeit- oder Datumsstring hat nicht das erwartete Format."""


# ─── Uhrzeit ↔ Minuten ────────────────────────────────────────────────────────

def time_to_minutes(time: str) -> int:
    """"HH:MM" → Minuten seit Mitternacht.

    Raises:
        InvalidFormat: kein HH:MM, Stunde außerhalb 0–23 oder Minute außerhalb 0–59.
    """
    match = _TIME_RE.match(time.strip()) if isinstance(time, str) else None
    if match is None:
        raise InvalidFormat(f"Ungültige Uhrzeit: {time!r} (erwartet HH:MM)")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidFormat(f"Uhrzeit außerhalb des Bereichs: {time!r}")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Minuten → "HH:MM" (zweistellig, Stunden modulo 24)."""
    wrapped = minutes % MINUTES_PER_DAY
    return f"{wrapped // 60:02d}:{wrapped % 60:02d}"


def add_minutes_to_time(time: str, delta_minutes: int) -> str:
    """Addiert (auch negative) Minuten zu einer Uhrzeit, Tageswechsel wird abgewickelt."""
    return minutes_to_time(time_to_minutes(time) + delta_minutes)


def format_duration(minutes: int) -> str:
    """90 → "1:30hrs", 120 → "2:00hrs"."""
    return f"{minutes // 60}:{minutes % 60:02d}hrs"


# ─── Datum + Uhrzeit ──────────────────────────────────────────────────────────

def create_utc_datetime(day: str, time: str) -> datetime:
    """("YYYY-MM-DD", "HH:MM") → zeitzonenbehafteter UTC-Zeitpunkt."""
    if not isinstance(day, str) or not _DATE_RE.match(day):
        raise InvalidFormat(f"Ungültiges Datum: {day!r} (erwartet YYYY-MM-DD)")
    minutes = time_to_minutes(time)
    try:
        d = date.fromisoformat(day)
    except ValueError as e:
        raise InvalidFormat(f"Ungültiges Datum: {day!r}") from e
    return datetime(d.year, d.month, d.day, minutes // 60, minutes % 60,
                    tzinfo=timezone.utc)


def parse_utc_datetime(value: DateLike) -> datetime:
    """Zeitstempel (ISO-String, datetime oder date) → UTC-datetime.

    Naive Werte gelten als UTC, ein reines Datum als 00:00 UTC.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise InvalidFormat(f"Ungültiger Zeitstempel: {value!r}") from e
    else:
        raise InvalidFormat(f"Ungültiger Zeitstempel: {value!r}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_utc_string(dt: datetime) -> str:
    """UTC-ISO-String für die Datenbank, z.B. "2024-01-15T14:00:00.000Z"."""
    utc = parse_utc_datetime(dt)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def extract_time_from_utc(value: DateLike) -> str:
    """Zeitstempel → "HH:MM" (UTC)."""
    dt = parse_utc_datetime(value)
    return f"{dt.hour:02d}:{dt.minute:02d}"


def extract_date_from_utc(value: DateLike) -> str:
    """Zeitstempel → "YYYY-MM-DD" (UTC)."""
    return parse_utc_datetime(value).date().isoformat()


def is_same_utc_date(a: DateLike, b: DateLike) -> bool:
    """Vergleicht nur das UTC-Kalenderdatum zweier Zeitpunkte."""
    return extract_date_from_utc(a) == extract_date_from_utc(b)
