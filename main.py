"""Kiteschul-Whiteboard: Haupt-CLI.

Verwendung:
  python main.py config init                          Standard-Konfiguration anlegen
  python main.py config show                          Konfiguration anzeigen
  python main.py schedule <snapshot.json> --date D    Tagespläne aller Lehrer
  python main.py stats <snapshot.json> [--date D]     Stunden- bzw. Tagesstatistik
  python main.py revenue <snapshot.json>              Umsatz-Aufteilung
  python main.py slots <snapshot.json> --date D --teacher T
                                                      Freie Zeitfenster eines Lehrers
  python main.py portal <snapshot.json> --teacher T   Lehrerportal (abgeschlossene Events)
"""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()


def _load_config():
    """Lädt die Konfiguration; ohne Datei gelten die Standardwerte."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    try:
        return mgr.load_or_default()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


def _load_snapshot_or_abort(path: Path):
    """Lädt den Snapshot oder bricht mit Fehlermeldung ab."""
    from pydantic import ValidationError
    from data.snapshot import SchoolSnapshot

    try:
        snapshot = SchoolSnapshot.load_json(path)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    except ValidationError as e:
        console.print(f"[red bold]Snapshot ungültig:[/red bold] {path}\n{e}")
        sys.exit(1)
    console.print(f"[dim]{snapshot.summary()}[/dim]")
    return snapshot


def _build_schedules(snapshot, date: str, config):
    from scheduling import create_teacher_schedules_from_lessons
    from scheduling.timecalc import InvalidFormat, extract_date_from_utc

    try:
        day = extract_date_from_utc(date)
    except InvalidFormat as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    return create_teacher_schedules_from_lessons(
        snapshot.lessons(),
        snapshot.booking_classes(config.unknown_student_name),
        day,
        config,
    )


def _table(title: str, columns: list[str], rows: list[list[str]]) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    for col in columns:
        table.add_column(col)
    for row in rows:
        table.add_row(*row)
    return table


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen oder anlegen."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        console.print("[yellow]Keine Konfigurationsdatei – es gelten die Standardwerte.[/yellow]")
    config = _load_config()

    console.print(Panel(
        f"[bold]{config.school_name}[/bold]  |  {config.default_location}  |  "
        f"{config.working_day_start}–{config.working_day_end} UTC",
        title="Schulkonfiguration",
        border_style="cyan",
    ))
    mgr.show(config)


@cmd_config.command("init")
@click.option("--force", is_flag=True, default=False,
              help="Bestehende Konfiguration überschreiben.")
def config_init(force: bool):
    """Legt die Konfigurationsdatei mit Standardwerten an."""
    from config.defaults import default_school_config
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check() and not force:
        console.print(
            "[yellow]Eine Konfiguration existiert bereits.[/yellow]\n"
            "Mit [bold]--force[/bold] wird sie überschrieben."
        )
        return
    mgr.save(default_school_config())


# ─── SCHEDULE ─────────────────────────────────────────────────────────────────

@click.command("schedule")
@click.argument("snapshot", type=click.Path(path_type=Path))
@click.option("--date", "date", required=True, help="Tag (YYYY-MM-DD, UTC).")
@click.option("--teacher", default=None, help="Nur diesen Lehrer anzeigen (ID).")
def cmd_schedule(snapshot: Path, date: str, teacher: str):
    """Zeigt die Tagespläne der Lehrer (Events und Lücken)."""
    from export.tui_renderer import SCHEDULE_COLUMNS, render_schedule_rows
    from scheduling import get_earliest_time_from_schedules

    config = _load_config()
    snap = _load_snapshot_or_abort(snapshot)
    schedules = _build_schedules(snap, date, config)

    if teacher is not None:
        schedules = {k: v for k, v in schedules.items() if k == teacher}
    if not schedules:
        console.print(f"[dim]Keine Events am {date}.[/dim]")
        return

    earliest = get_earliest_time_from_schedules(schedules)
    if earliest:
        console.print(f"Frühester Start: [bold]{earliest}[/bold] UTC")

    for schedule in schedules.values():
        title = f"{schedule.teacher_name} – {schedule.date}"
        console.print(_table(title, SCHEDULE_COLUMNS, render_schedule_rows(schedule)))
        if schedule.has_gaps():
            console.print(
                f"[yellow]Lücken: {schedule.total_gap_minutes()} min[/yellow]"
            )
        if schedule.declined_events:
            ids = ", ".join(e.node_id for e in schedule.declined_events)
            console.print(f"[red]Nicht eingeplant (Überschneidung o.ä.): {ids}[/red]")


# ─── STATS ────────────────────────────────────────────────────────────────────

@click.command("stats")
@click.argument("snapshot", type=click.Path(path_type=Path))
@click.option("--date", "date", default=None,
              help="Tag (YYYY-MM-DD); ohne Angabe: Stunden über alle Lessons.")
def cmd_stats(snapshot: Path, date: str):
    """Lehrer-Tagesstatistik bzw. Stunden nach Unterrichtsart."""
    config = _load_config()
    snap = _load_snapshot_or_abort(snapshot)

    if date is None:
        from analysis.lesson_stats import calc_lesson_stats
        stats = calc_lesson_stats(snap.lessons())
        rows = [
            ["Gesamt", f"{stats.total_hours:.1f}"],
            ["Privat (1)", f"{stats.private_hours:.1f}"],
            ["Semi-Privat (2)", f"{stats.semi_private:.1f}"],
            ["Gruppe (3+)", f"{stats.group:.1f}"],
        ]
        console.print(_table("Stunden nach Unterrichtsart", ["Kategorie", "Stunden"], rows))
        return

    from export.tui_renderer import STATS_COLUMNS, render_stats_rows
    from scheduling import calculate_global_stats

    schedules = _build_schedules(snap, date, config)
    total = calculate_global_stats(schedules)
    console.print(_table(f"Statistik {date}", STATS_COLUMNS,
                         render_stats_rows(schedules, total)))


# ─── REVENUE ──────────────────────────────────────────────────────────────────

@click.command("revenue")
@click.argument("snapshot", type=click.Path(path_type=Path))
def cmd_revenue(snapshot: Path):
    """Umsatz, Lehrerverdienst und Schulanteil über alle Buchungen."""
    from analysis.lesson_stats import calc_lesson_stats
    from analysis.revenue import calc_lesson_revenue
    from export.tui_renderer import render_revenue_rows

    snap = _load_snapshot_or_abort(snapshot)
    revenue = calc_lesson_revenue(snap.bookings)
    stats = calc_lesson_stats(snap.lessons())
    console.print(_table("Umsatz", ["Kennzahl", "Wert"],
                         render_revenue_rows(revenue, stats)))


# ─── SLOTS ────────────────────────────────────────────────────────────────────

@click.command("slots")
@click.argument("snapshot", type=click.Path(path_type=Path))
@click.option("--date", "date", required=True, help="Tag (YYYY-MM-DD, UTC).")
@click.option("--teacher", required=True, help="Lehrer-ID.")
@click.option("--min-duration", default=60, show_default=True,
              help="Minimale Fensterlänge in Minuten.")
def cmd_slots(snapshot: Path, date: str, teacher: str, min_duration: int):
    """Freie Zeitfenster eines Lehrers innerhalb der Arbeitszeit."""
    from scheduling.teacher_schedule import TeacherSchedule

    config = _load_config()
    snap = _load_snapshot_or_abort(snapshot)
    schedules = _build_schedules(snap, date, config)
    schedule = schedules.get(teacher)
    if schedule is None:
        known = snap.get_teacher(teacher)
        if known is None:
            console.print(f"[red]Unbekannter Lehrer: {teacher}[/red]")
            sys.exit(1)
        schedule = TeacherSchedule(known.id, known.name, date, config)

    slots = schedule.available_slots(min_duration)
    rows = [[s.start_time, s.end_time, f"{s.duration} min"] for s in slots]
    console.print(_table(f"Freie Zeiten {schedule.teacher_name} – {schedule.date}",
                         ["Von", "Bis", "Dauer"], rows))
    console.print(f"Nächster freier Start: [bold]{schedule.next_available_start()}[/bold]")


# ─── PORTAL ───────────────────────────────────────────────────────────────────

@click.command("portal")
@click.argument("snapshot", type=click.Path(path_type=Path))
@click.option("--teacher", required=True, help="Lehrer-ID.")
def cmd_portal(snapshot: Path, teacher: str):
    """Lehrerportal: Verdienst aus abgeschlossenen Events."""
    from analysis.teacher_portal import TeacherPortal

    snap = _load_snapshot_or_abort(snapshot)
    known = snap.get_teacher(teacher)
    if known is None:
        console.print(f"[red]Unbekannter Lehrer: {teacher}[/red]")
        sys.exit(1)

    portal = TeacherPortal(known, snap.lessons_for_teacher(teacher),
                           snap.commissions_for_teacher(teacher))
    s = portal.stats()
    rows = [
        ["Lessons", str(s.lessons_count)],
        ["  davon abgeschlossen", str(portal.completed_lessons_count())],
        ["  davon aktiv", str(portal.active_lessons_count())],
        ["Abgeschlossene Events", str(s.events_count)],
        ["Stunden", f"{portal.total_hours():.1f}"],
        ["Verdienst", f"{s.total_earnings:,.2f} €"],
        ["Ø pro Stunde", f"{portal.average_hourly_rate():,.2f} €"],
    ]
    console.print(_table(f"Lehrerportal – {portal.get_name()}", ["Kennzahl", "Wert"], rows))


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False,
              help="Ausführliche Log-Ausgabe.")
def cli(verbose: bool):
    """Whiteboard der Kiteschule: Tagespläne, Statistik und Umsatz."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


def main():
    """Einstiegspunkt."""
    cli()


# Befehle registrieren
cli.add_command(cmd_config)
cli.add_command(cmd_schedule)
cli.add_command(cmd_stats)
cli.add_command(cmd_revenue)
cli.add_command(cmd_slots)
cli.add_command(cmd_portal)


if __name__ == "__main__":
    main()
