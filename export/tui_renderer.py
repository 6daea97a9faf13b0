"""Gemeinsamer Renderer für die Terminal-Anzeige des Whiteboards.

Liefert reine Tabellenzeilen; main.py baut daraus Rich-Tabellen.
"""

from typing import TYPE_CHECKING, Mapping

from scheduling.timecalc import format_duration, minutes_to_time

if TYPE_CHECKING:
    from scheduling.teacher_schedule import TeacherSchedule, TeacherStats
    from analysis.revenue import LessonRevenue
    from analysis.lesson_stats import LessonStats


SCHEDULE_COLUMNS = ["Zeit", "Dauer", "Lesson", "Ort", "Schüler", "Δ"]
STATS_COLUMNS = ["Lehrer", "Events", "Lessons", "Stunden", "Verdienst", "Schule"]


def _money(value: float) -> str:
    return f"{value:,.2f} €"


def _delta(minutes: int) -> str:
    if minutes == 0:
        return ""
    sign = "+" if minutes > 0 else "−"
    return f"{sign}{abs(minutes)}min"


def render_schedule_rows(schedule: "TeacherSchedule") -> list[list[str]]:
    """Tabellenzeilen für den Tagesplan eines Lehrers.

    Jede Zeile: [Zeit, Dauer, Lesson, Ort, Schüler, Δ]
    Lücken erscheinen als eigene Zeile mit '↕ Lücke'.
    """
    rows: list[list[str]] = []
    for node in schedule.nodes:
        if node.is_gap:
            label = f"{node.start_time}–{minutes_to_time(node.end)}"
            rows.append([label, format_duration(node.duration), "↕ Lücke", "", "", ""])
            continue
        ev = node.event
        names = ", ".join(ev.student_names) if ev.student_names else "—"
        rows.append([
            f"{ev.start_time}–{ev.end_time}",
            format_duration(ev.duration),
            ev.lesson_id,
            ev.location,
            names,
            _delta(schedule.time_delta(node.id)),
        ])
    return rows


def render_stats_rows(
    schedules: Mapping[str, "TeacherSchedule"],
    total: "TeacherStats",
) -> list[list[str]]:
    """Eine Zeile pro Lehrer plus Summenzeile."""
    rows: list[list[str]] = []
    for schedule in schedules.values():
        s = schedule.calculate_teacher_stats()
        rows.append([
            schedule.teacher_name,
            str(s.total_events),
            str(s.total_lessons),
            f"{s.total_hours:.1f}",
            _money(s.total_earnings),
            _money(s.school_revenue),
        ])
    rows.append([
        "Gesamt",
        str(total.total_events),
        str(total.total_lessons),
        f"{total.total_hours:.1f}",
        _money(total.total_earnings),
        _money(total.school_revenue),
    ])
    return rows


def render_revenue_rows(revenue: "LessonRevenue", stats: "LessonStats") -> list[list[str]]:
    """Zeilen [Kennzahl, Wert] für Umsatz und Stunden-Kategorien."""
    return [
        ["Umsatz (Buchungen)", _money(revenue.revenue)],
        ["Lehrer", _money(revenue.teacher)],
        ["Schule", _money(revenue.school)],
        ["Verdient", _money(revenue.money_made)],
        ["Stunden gesamt", f"{stats.total_hours:.1f}"],
        ["  Privat", f"{stats.private_hours:.1f}"],
        ["  Semi-Privat", f"{stats.semi_private:.1f}"],
        ["  Gruppe", f"{stats.group:.1f}"],
    ]
