"""TeacherSchedule – Tagesplan eines Lehrers mit Bearbeitungs-Sitzung.

Architektur:
  - Events liegen in einer Arena (node_id → EventSlot), Minuten seit 00:00 UTC
  - Die Knotenliste (Events + Lücken) wird bei jedem Zugriff per build_nodes
    neu erzeugt
  - Jede Bearbeitung erzeugt einen Vorschlag für die neuen Event-Felder, der
    komplett geprüft wird, bevor er die Arena ersetzt
  - Invariante: keine zwei Events überschneiden sich, alle liegen in [00:00, 24:00]

Zustände pro Knoten: unmodified → proposed → committed | reverted.
Geschrieben wird nur über den externen Updater (commit), nie direkt.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Literal, Optional, Sequence

from pydantic import BaseModel

from analysis.revenue import allocate_hours
from config.defaults import default_school_config
from config.schema import OverlapPolicy, SchoolConfig
from models.event import Event
from models.lesson import Lesson
from scheduling.booking_class import BookingClass
from scheduling.nodes import (
    EventSlot,
    ScheduleNode,
    build_nodes,
    compact,
    find_overlaps,
    has_gaps,
    sort_events,
    total_gap_minutes,
)
from scheduling.timecalc import (
    MINUTES_PER_DAY,
    InvalidFormat,
    create_utc_datetime,
    extract_date_from_utc,
    extract_time_from_utc,
    is_same_utc_date,
    minutes_to_time,
    time_to_minutes,
    to_utc_string,
)

logger = logging.getLogger(__name__)


# ─── Ergebnis-Modelle ─────────────────────────────────────────────────────────

class NodeState(str, Enum):
    UNMODIFIED = "unmodified"
    PROPOSED = "proposed"
    COMMITTED = "committed"
    REVERTED = "reverted"


class TeacherStats(BaseModel):
    """Kennzahlen eines Lehrers (oder aller Lehrer) für einen Tag."""

    total_events: int = 0
    total_lessons: int = 0
    total_hours: float = 0.0
    total_earnings: float = 0.0
    school_revenue: float = 0.0

    @classmethod
    def total(cls, stats: Sequence["TeacherStats"]) -> "TeacherStats":
        """Feldweise Summe."""
        return cls(
            total_events=sum(s.total_events for s in stats),
            total_lessons=sum(s.total_lessons for s in stats),
            total_hours=sum(s.total_hours for s in stats),
            total_earnings=sum(s.total_earnings for s in stats),
            school_revenue=sum(s.school_revenue for s in stats),
        )


class EditResult(BaseModel):
    """Antwort auf eine Bearbeitung. accepted=False heißt: nichts geändert."""

    accepted: bool
    node_id: Optional[str] = None
    clamped: bool = False
    time_delta: int = 0        # realisierte Verschiebung des Knotens (Minuten)
    duration_delta: int = 0    # realisierte Dauer-Änderung (Minuten)
    reason: str = ""


class EventChange(BaseModel):
    """Abweichung eines Knotens vom zuletzt gespeicherten Stand."""

    node_id: str
    event_id: Optional[str]
    lesson_id: str
    start_time: str
    duration: int
    time_delta: int
    duration_delta: int
    removed: bool = False


class EventUpdate(BaseModel):
    """Nur die geänderten Felder für updateEvent(event_id, ...)."""

    date: Optional[str] = None      # UTC-ISO-Zeitstempel
    duration: Optional[int] = None

    def fields(self) -> dict:
        return self.model_dump(exclude_none=True)


class CommitReport(BaseModel):
    """Ergebnis eines Commits, aufgeteilt nach Knoten-IDs."""

    committed: list[str] = []
    declined: list[str] = []   # Invariante verletzt → nicht geschrieben
    failed: list[str] = []     # Updater-Fehler oder fehlende Event-ID

    @property
    def ok(self) -> bool:
        return not self.declined and not self.failed


class AvailableSlot(BaseModel):
    """Freies Zeitfenster innerhalb der Arbeitszeit."""

    start_time: str
    end_time: str
    duration: int


@dataclass
class ConflictInfo:
    """Überschneidungs-Prüfung für einen Wunschtermin."""

    has_conflict: bool
    conflicting_nodes: list[ScheduleNode] = field(default_factory=list)
    suggested_alternatives: list[AvailableSlot] = field(default_factory=list)


EventUpdater = Callable[[str, EventUpdate], object]
EventDeleter = Callable[[str], object]


# ─── TeacherSchedule ──────────────────────────────────────────────────────────

class TeacherSchedule:
    """Geordneter, bearbeitbarer Tagesplan eines Lehrers."""

    def __init__(
        self,
        teacher_id: str,
        teacher_name: str,
        date: str,
        config: Optional[SchoolConfig] = None,
    ) -> None:
        self.teacher_id = teacher_id
        self.teacher_name = teacher_name
        self.date = extract_date_from_utc(date)
        self.config = config or default_school_config()
        self.lessons: list[Lesson] = []
        self.booking_classes: list[BookingClass] = []
        self.declined_events: list[EventSlot] = []
        self._events: dict[str, EventSlot] = {}
        self._persisted: dict[str, EventSlot] = {}
        self._removed: set[str] = set()
        self._states: dict[str, NodeState] = {}
        self._seq = 0

    def __repr__(self) -> str:
        return (f"TeacherSchedule({self.teacher_id}, {self.date}, "
                f"{len(self._events)} events)")

    # ─── Aufbau ───────────────────────────────────────────────────────────

    def add_lesson(self, lesson: Lesson) -> None:
        if all(l.id != lesson.id for l in self.lessons):
            self.lessons.append(lesson)

    def add_booking_class(self, booking_class: BookingClass) -> None:
        if all(b.booking_id != booking_class.booking_id for b in self.booking_classes):
            self.booking_classes.append(booking_class)

    def add_event(
        self,
        start_time: str,
        duration: int,
        lesson_id: str,
        location: str,
        student_count: int,
        student_names: Optional[Sequence[str]] = None,
        event_id: Optional[str] = None,
    ) -> Optional[ScheduleNode]:
        """Fügt ein gespeichertes Event in den Plan ein.

        Die Reihenfolge ergibt sich aus der Startzeit, nicht aus der
        Aufrufreihenfolge. Ein Event, das sich mit einem schon eingeplanten
        überschneidet oder über Mitternacht reicht, wird abgelehnt (None) und
        in declined_events vermerkt.

        Raises:
            InvalidFormat: start_time ist kein gültiges "HH:MM".
        """
        self._seq += 1
        node_id = event_id or f"event_{lesson_id}_{self._seq}"
        slot = EventSlot(
            node_id=node_id,
            lesson_id=lesson_id,
            start=time_to_minutes(start_time),
            duration=duration,
            location=location,
            student_count=student_count,
            student_names=tuple(student_names or ()),
            event_id=event_id,
        )

        reason = ""
        if node_id in self._events or node_id in self._persisted:
            reason = "doppelte Event-ID"
        elif duration <= 0:
            reason = f"Dauer {duration} ≤ 0"
        elif slot.end > MINUTES_PER_DAY:
            reason = "endet nach Mitternacht"
        else:
            clash = next((e for e in self._events.values() if e.overlaps(slot)), None)
            if clash is not None:
                reason = (f"überschneidet {clash.node_id} "
                          f"({clash.start_time}–{clash.end_time})")
        if reason:
            logger.warning(
                f"Event {node_id} ({start_time}, {duration}min) für Lehrer "
                f"{self.teacher_id} am {self.date} abgelehnt: {reason}"
            )
            self.declined_events.append(slot)
            return None

        self._events[node_id] = slot
        self._persisted[node_id] = slot
        self._states[node_id] = NodeState.UNMODIFIED
        return self.get_node(node_id)

    # ─── Lesen ────────────────────────────────────────────────────────────

    @property
    def nodes(self) -> tuple[ScheduleNode, ...]:
        """Events und Lücken in Startzeit-Reihenfolge."""
        return build_nodes(list(self._events.values()))

    def get_nodes(self) -> list[ScheduleNode]:
        return list(self.nodes)

    def event_nodes(self) -> list[ScheduleNode]:
        return [n for n in self.nodes if n.type == "event"]

    def events(self) -> list[EventSlot]:
        """Aktive Events, nach Startzeit sortiert."""
        return sort_events(list(self._events.values()))

    def get_node(self, node_id: str) -> Optional[ScheduleNode]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def find_by_lesson(self, lesson_id: str) -> list[ScheduleNode]:
        return [n for n in self.event_nodes() if n.lesson_id == lesson_id]

    def get_earliest_time(self) -> Optional[str]:
        ordered = self.events()
        return ordered[0].start_time if ordered else None

    def total_gap_minutes(self) -> int:
        return total_gap_minutes(self.events())

    def has_gaps(self, minimum_gap_minutes: Optional[int] = None) -> bool:
        if minimum_gap_minutes is None:
            minimum_gap_minutes = self.config.minimum_gap_minutes
        return has_gaps(self.events(), minimum_gap_minutes)

    def calculate_teacher_stats(self) -> TeacherStats:
        """Kennzahlen des Tages aus dem aktuellen (ggf. bearbeiteten) Stand.

        Verdienst und Schulanteil laufen über dieselbe Aufteilung wie
        calc_lesson_revenue, mit der echten Schülerzahl der Buchung.
        """
        active = self.events()
        minutes_by_lesson: dict[str, int] = {}
        for ev in active:
            minutes_by_lesson[ev.lesson_id] = minutes_by_lesson.get(ev.lesson_id, 0) + ev.duration

        lesson_index = {l.id: l for l in self.lessons}
        earnings = 0.0
        school = 0.0
        for lesson_id, minutes in minutes_by_lesson.items():
            lesson = lesson_index.get(lesson_id)
            if lesson is None:
                continue
            booking = lesson.booking
            alloc = allocate_hours(
                minutes / 60,
                booking.student_count if booking else 0,
                booking.package if booking else None,
                lesson.commission,
            )
            earnings += alloc.teacher
            school += alloc.school

        return TeacherStats(
            total_events=len(active),
            total_lessons=len(minutes_by_lesson),
            total_hours=sum(ev.duration for ev in active) / 60,
            total_earnings=earnings,
            school_revenue=school,
        )

    # ─── Freie Zeiten ─────────────────────────────────────────────────────

    def available_slots(self, minimum_duration: int = 60) -> list[AvailableSlot]:
        """Freie Fenster ≥ minimum_duration innerhalb der Arbeitszeit."""
        day_start = time_to_minutes(self.config.working_day_start)
        day_end = time_to_minutes(self.config.working_day_end)
        slots: list[AvailableSlot] = []
        cursor = day_start
        for ev in self.events():
            if ev.start - cursor >= minimum_duration:
                slots.append(self._slot(cursor, ev.start))
            cursor = max(cursor, ev.end)
        if day_end - cursor >= minimum_duration:
            slots.append(self._slot(cursor, day_end))
        return slots

    def check_conflict(
        self,
        start_time: str,
        duration: Optional[int] = None,
        capacity_students: int = 1,
    ) -> ConflictInfo:
        """Prüft einen Wunschtermin gegen alle Events; bei Konflikt mit Alternativen.

        Ohne duration gilt die Standard-Dauer für die Paket-Kapazität.
        """
        if duration is None:
            duration = self.config.duration_for_capacity(capacity_students)
        start = time_to_minutes(start_time)
        probe = EventSlot(node_id="_probe", lesson_id="", start=start,
                          duration=duration, location="", student_count=0)
        clashing_ids = {e.node_id for e in self._events.values() if e.overlaps(probe)}
        conflicting = [n for n in self.event_nodes() if n.id in clashing_ids]
        if not conflicting:
            return ConflictInfo(has_conflict=False)
        return ConflictInfo(
            has_conflict=True,
            conflicting_nodes=conflicting,
            suggested_alternatives=self.available_slots(duration),
        )

    def next_available_start(self) -> str:
        """Startzeit für ein neues Event: Ende des letzten Events oder Arbeitsbeginn."""
        ordered = self.events()
        if not ordered:
            return self.config.working_day_start
        return minutes_to_time(max(ev.end for ev in ordered))

    @staticmethod
    def _slot(start: int, end: int) -> AvailableSlot:
        return AvailableSlot(start_time=minutes_to_time(start),
                             end_time=minutes_to_time(end), duration=end - start)

    # ─── Bearbeitung ──────────────────────────────────────────────────────

    def adjust_time(self, node_id: str, delta: Optional[int] = None) -> EditResult:
        """Verschiebt ein einzelnes Event; Nachbarn bleiben stehen.

        Ohne delta wird um einen Schritt (time_step_minutes) nach hinten verschoben.
        """
        if delta is None:
            delta = self.config.time_step_minutes
        ordered, idx = self._locate(node_id)
        if idx is None:
            return self._declined(node_id, "unbekannter Knoten")
        ev = ordered[idx]
        lower = ordered[idx - 1].end if idx > 0 else 0
        upper = (ordered[idx + 1].start if idx + 1 < len(ordered) else MINUTES_PER_DAY) - ev.duration
        target, clamped = self._bound(ev.start + delta, lower, upper)
        if target is None:
            return self._declined(node_id, "würde Nachbar-Event überschneiden")
        return self._propose({node_id: ev.moved(target)}, node_id, clamped)

    def adjust_duration(
        self, node_id: str, delta: Optional[int] = None, cascade: bool = False,
    ) -> EditResult:
        """Ändert die Dauer eines Events (Default: um einen Schritt länger).

        cascade=False: das Event wächst höchstens bis zum nächsten Event.
        cascade=True:  alle späteren Events rücken um die realisierte Änderung.
        """
        if delta is None:
            delta = self.config.time_step_minutes
        ordered, idx = self._locate(node_id)
        if idx is None:
            return self._declined(node_id, "unbekannter Knoten")
        ev = ordered[idx]
        later = ordered[idx + 1:]
        min_duration = min(self.config.min_duration, ev.duration)

        if cascade:
            tail_end = later[-1].end if later else ev.end
            max_duration = ev.duration + (MINUTES_PER_DAY - tail_end)
        else:
            limit = later[0].start if later else MINUTES_PER_DAY
            max_duration = limit - ev.start

        new_duration, clamped = self._bound(ev.duration + delta, min_duration, max_duration)
        if new_duration is None:
            return self._declined(node_id, "Dauer außerhalb des erlaubten Bereichs")

        realised = new_duration - ev.duration
        proposal = {node_id: ev.resized(new_duration)}
        if cascade:
            for nxt in later:
                proposal[nxt.node_id] = nxt.moved(nxt.start + realised)
        return self._propose(proposal, node_id, clamped)

    def shift_from(self, node_id: str, delta: Optional[int] = None) -> EditResult:
        """Verschiebt ein Event und alle späteren um delta Minuten (Default: ein Schritt)."""
        if delta is None:
            delta = self.config.time_step_minutes
        ordered, idx = self._locate(node_id)
        if idx is None:
            return self._declined(node_id, "unbekannter Knoten")
        tail = ordered[idx:]
        lower = (ordered[idx - 1].end if idx > 0 else 0) - tail[0].start
        upper = MINUTES_PER_DAY - tail[-1].end
        realised, clamped = self._bound(delta, lower, upper)
        if realised is None:
            return self._declined(node_id, "Verschiebung außerhalb des Tages oder in ein Nachbar-Event")
        return self._propose({e.node_id: e.moved(e.start + realised) for e in tail},
                             node_id, clamped)

    def apply_global_offset(self, delta: int) -> EditResult:
        """Verschiebt den ganzen Tag um delta Minuten (begrenzt auf 00:00–24:00)."""
        ordered = self.events()
        if not ordered:
            return self._declined(None, "keine Events")
        return self.shift_from(ordered[0].node_id, delta)

    def align_to(self, start_time: str) -> EditResult:
        """Verschiebt den ganzen Tag so, dass das erste Event um start_time beginnt."""
        earliest = self.get_earliest_time()
        if earliest is None:
            return self._declined(None, "keine Events")
        return self.apply_global_offset(time_to_minutes(start_time) - time_to_minutes(earliest))

    def move_event(self, node_id: str, direction: Literal["up", "down"]) -> EditResult:
        """Tauscht ein Event mit seinem Vorgänger ("up") oder Nachfolger ("down").

        Das Paar beginnt zur früheren der beiden Startzeiten und liegt danach
        direkt hintereinander. Spätere Events werden nur so weit verschoben,
        wie es nötig ist, um Überschneidungen zu vermeiden.
        """
        ordered, idx = self._locate(node_id)
        if idx is None:
            return self._declined(node_id, "unbekannter Knoten")
        other = idx - 1 if direction == "up" else idx + 1
        if other < 0 or other >= len(ordered):
            return self._declined(node_id, "bereits am Rand")

        first_i, second_i = min(idx, other), max(idx, other)
        anchor = ordered[first_i].start
        swapped = [ordered[second_i], ordered[first_i]]
        proposal: dict[str, EventSlot] = {}
        cursor = anchor
        for ev in swapped:
            proposal[ev.node_id] = ev.moved(cursor)
            cursor += ev.duration
        for ev in ordered[second_i + 1:]:
            if ev.start >= cursor:
                break
            proposal[ev.node_id] = ev.moved(cursor)
            cursor += ev.duration
        if cursor > MINUTES_PER_DAY:
            return self._declined(node_id, "Tausch würde über Mitternacht reichen")
        return self._propose(proposal, node_id, clamped=False)

    def remove_gap(self, node_id: str) -> EditResult:
        """Schließt die Lücke vor einem Event; direkt anschließende Events rücken mit."""
        ordered, idx = self._locate(node_id)
        if idx is None:
            return self._declined(node_id, "unbekannter Knoten")
        if idx == 0:
            return self._declined(node_id, "erstes Event hat keine Lücke davor")
        gap = ordered[idx].start - ordered[idx - 1].end
        if gap <= 0:
            return self._declined(node_id, "keine Lücke")

        proposal = {node_id: ordered[idx].moved(ordered[idx].start - gap)}
        for prev, ev in zip(ordered[idx:], ordered[idx + 1:]):
            if prev.end != ev.start:
                break
            proposal[ev.node_id] = ev.moved(ev.start - gap)
        return self._propose(proposal, node_id, clamped=False)

    def compact(self, anchor_time: Optional[str] = None) -> EditResult:
        """Schließt alle Lücken; Reihenfolge bleibt, Start bei anchor_time (Default: erstes Event)."""
        ordered = self.events()
        if not ordered:
            return self._declined(None, "keine Events")
        anchor = time_to_minutes(anchor_time) if anchor_time else None
        packed = compact(ordered, anchor)
        if packed[-1].end > MINUTES_PER_DAY:
            return self._declined(None, "kompakter Plan würde über Mitternacht reichen")
        return self._propose({e.node_id: e for e in packed}, packed[0].node_id, clamped=False)

    def remove_event(self, node_id: str) -> EditResult:
        """Nimmt ein Event aus dem Plan (wird beim Commit gelöscht)."""
        if node_id not in self._events:
            return self._declined(node_id, "unbekannter Knoten")
        del self._events[node_id]
        self._removed.add(node_id)
        self._states[node_id] = NodeState.PROPOSED
        return EditResult(accepted=True, node_id=node_id)

    # ─── Bearbeitungs-Sitzung ─────────────────────────────────────────────

    def state(self, node_id: str) -> NodeState:
        return self._states.get(node_id, NodeState.UNMODIFIED)

    def time_delta(self, node_id: str) -> int:
        """Verschiebung gegenüber dem gespeicherten Stand (für das Zeit-Badge)."""
        if node_id not in self._events:
            return 0
        return self._events[node_id].start - self._persisted[node_id].start

    def changes(self) -> list[EventChange]:
        """Alle vorgeschlagenen Änderungen gegenüber dem gespeicherten Stand."""
        result: list[EventChange] = []
        for node_id, state in self._states.items():
            if state != NodeState.PROPOSED:
                continue
            base = self._persisted[node_id]
            current = self._events.get(node_id, base)
            result.append(EventChange(
                node_id=node_id,
                event_id=base.event_id,
                lesson_id=base.lesson_id,
                start_time=current.start_time,
                duration=current.duration,
                time_delta=current.start - base.start,
                duration_delta=current.duration - base.duration,
                removed=node_id in self._removed,
            ))
        return sorted(result, key=lambda c: (c.removed, c.start_time))

    def has_changes(self) -> bool:
        return any(s == NodeState.PROPOSED for s in self._states.values())

    def revert(self, node_id: Optional[str] = None) -> EditResult:
        """Verwirft Vorschläge (alle oder einen Knoten).

        Einen einzelnen Knoten zurückzusetzen kann mit anderen Vorschlägen
        kollidieren; dann wird abgelehnt.
        """
        if node_id is None:
            for nid, state in self._states.items():
                if state == NodeState.PROPOSED:
                    self._states[nid] = NodeState.REVERTED
            self._events = {nid: slot for nid, slot in self._persisted.items()}
            self._removed.clear()
            return EditResult(accepted=True)

        if self.state(node_id) != NodeState.PROPOSED:
            return self._declined(node_id, "keine offene Änderung")
        base = self._persisted[node_id]
        others = [e for nid, e in self._events.items() if nid != node_id]
        if any(base.overlaps(e) for e in others):
            return self._declined(node_id, "gespeicherte Zeit kollidiert mit anderer Änderung")
        self._events[node_id] = base
        self._removed.discard(node_id)
        self._states[node_id] = NodeState.REVERTED
        return EditResult(accepted=True, node_id=node_id)

    def commit(
        self,
        updater: EventUpdater,
        deleter: Optional[EventDeleter] = None,
        fresh_events: Optional[Sequence[Event]] = None,
    ) -> CommitReport:
        """Schreibt alle Vorschläge über den externen Updater.

        Vor dem Schreiben wird jeder Vorschlag gegen den neuesten bekannten
        Stand der Geschwister geprüft: die übrigen Events dieses Plans plus
        fresh_events (frisch geladene Zeilen, z.B. von anderen Sitzungen).
        Verletzt ein Vorschlag die Invariante, wird er nicht geschrieben und
        bleibt offen. Fehler des Updaters werden protokolliert und gemeldet,
        brechen die Sitzung aber nicht ab.

        Args:
            updater: updater(event_id, EventUpdate) – schreibt geänderte Felder.
                Rückgabe False oder ein Objekt mit success=False gilt als Fehler.
            deleter: deleter(event_id) – löscht entfernte Events.
            fresh_events: Frisch geladene Event-Zeilen desselben Lehrers.
        """
        report = CommitReport()
        siblings = {s.node_id: s for s in self._sibling_snapshot(fresh_events or [])}

        for change in self.changes():
            node_id = change.node_id
            if change.event_id is None:
                logger.error(f"Commit {node_id}: keine Event-ID, Änderung kann nicht gespeichert werden")
                report.failed.append(node_id)
                self._keep_persisted(siblings, node_id, report)
                continue

            if change.removed:
                if deleter is None:
                    logger.error(f"Commit {node_id}: kein Deleter für entferntes Event")
                    report.failed.append(node_id)
                    self._keep_persisted(siblings, node_id, report)
                    continue
                if self._call(deleter, node_id, change.event_id):
                    del self._persisted[node_id]
                    self._removed.discard(node_id)
                    self._states[node_id] = NodeState.COMMITTED
                    report.committed.append(node_id)
                else:
                    report.failed.append(node_id)
                    self._keep_persisted(siblings, node_id, report)
                continue

            proposed = self._events[node_id]
            clash = next(
                (s for s in siblings.values() if s.node_id != node_id and s.overlaps(proposed)),
                None,
            )
            if clash is not None or proposed.start < 0 or proposed.end > MINUTES_PER_DAY:
                logger.warning(
                    f"Commit {node_id} abgelehnt: "
                    + (f"überschneidet {clash.node_id}" if clash else "außerhalb des Tages")
                )
                report.declined.append(node_id)
                self._keep_persisted(siblings, node_id, report)
                continue

            update = EventUpdate()
            if change.time_delta != 0:
                update.date = to_utc_string(
                    create_utc_datetime(self.date, proposed.start_time)
                )
            if change.duration_delta != 0:
                update.duration = proposed.duration
            if not update.fields():
                self._states[node_id] = NodeState.UNMODIFIED
                continue

            if self._call(updater, node_id, change.event_id, update):
                self._persisted[node_id] = proposed
                self._states[node_id] = NodeState.COMMITTED
                report.committed.append(node_id)
            else:
                report.failed.append(node_id)
                self._keep_persisted(siblings, node_id, report)

        if report.committed:
            logger.info(
                f"Lehrer {self.teacher_id} am {self.date}: "
                f"{len(report.committed)} Änderung(en) gespeichert"
            )
        return report

    # ─── Interne Helfer ───────────────────────────────────────────────────

    def _keep_persisted(
        self, siblings: dict[str, EventSlot], node_id: str, report: CommitReport
    ) -> None:
        """Nicht geschriebener Knoten steht weiter an seiner gespeicherten Stelle.

        Spätere Vorschläge werden gegen diese Stelle geprüft. Bereits in
        diesem Lauf geschriebene Knoten, die jetzt kollidieren, werden
        protokolliert; sie stehen so in der Datenbank.
        """
        base = self._persisted[node_id]
        siblings[node_id] = base
        for other in report.committed:
            written = siblings.get(other)
            if written is not None and written.overlaps(base):
                logger.error(
                    f"Commit {other} gespeichert, überschneidet aber {node_id}, "
                    f"dessen Änderung nicht gespeichert wurde"
                )

    def _locate(self, node_id: str) -> tuple[list[EventSlot], Optional[int]]:
        ordered = self.events()
        idx = next((i for i, e in enumerate(ordered) if e.node_id == node_id), None)
        return ordered, idx

    def _bound(self, value: int, lower: int, upper: int) -> tuple[Optional[int], bool]:
        """Wendet die Überschneidungs-Politik an: (Wert, gekappt?) oder (None, False)."""
        if lower <= value <= upper:
            return value, False
        if self.config.overlap_policy == OverlapPolicy.REJECT or lower > upper:
            return None, False
        return min(max(value, lower), upper), True

    def _propose(
        self, proposal: dict[str, EventSlot], node_id: Optional[str], clamped: bool
    ) -> EditResult:
        """Prüft den Vorschlag vollständig und übernimmt ihn nur, wenn er gültig ist."""
        candidate = dict(self._events)
        candidate.update(proposal)
        slots = list(candidate.values())
        if find_overlaps(slots) or any(s.start < 0 or s.end > MINUTES_PER_DAY for s in slots):
            return self._declined(node_id, "Vorschlag verletzt die Tagesplan-Invariante")

        before = self._events.get(node_id) if node_id else None
        changed = [nid for nid, slot in proposal.items() if self._events.get(nid) != slot]
        if not changed:
            return self._declined(node_id, "keine Änderung möglich")

        self._events = candidate
        for nid in changed:
            self._states[nid] = (
                NodeState.UNMODIFIED if candidate[nid] == self._persisted[nid]
                else NodeState.PROPOSED
            )
        after = candidate.get(node_id) if node_id else None
        return EditResult(
            accepted=True,
            node_id=node_id,
            clamped=clamped,
            time_delta=(after.start - before.start) if before and after else 0,
            duration_delta=(after.duration - before.duration) if before and after else 0,
        )

    def _declined(self, node_id: Optional[str], reason: str) -> EditResult:
        logger.info(f"Bearbeitung von {node_id} abgelehnt ({self.teacher_id}, {self.date}): {reason}")
        return EditResult(accepted=False, node_id=node_id, reason=reason)

    def _sibling_snapshot(self, fresh_events: Sequence[Event]) -> list[EventSlot]:
        """Aktueller Plan, überlagert mit frisch geladenen Zeilen anderer Knoten.

        Offene Vorschläge gelten in der eigenen Fassung. Unveränderte Knoten
        übernehmen den frisch geladenen Stand; fremde Events desselben Tages
        kommen als zusätzliche Geschwister hinzu.
        """
        by_event_id = {e.event_id: e for e in self._events.values() if e.event_id}
        known_ids = {p.event_id for p in self._persisted.values() if p.event_id}
        siblings = {e.node_id: e for e in self._events.values()}
        for row in fresh_events:
            if not row.date:
                continue
            try:
                if not is_same_utc_date(row.date, self.date):
                    continue
                start = time_to_minutes(extract_time_from_utc(row.date))
            except InvalidFormat:
                logger.warning(f"Frische Event-Zeile {row.id} mit ungültigem Datum übersprungen")
                continue
            duration = row.duration or self.config.default_event_duration
            mine = by_event_id.get(row.id)
            if mine is not None:
                if self.state(mine.node_id) != NodeState.PROPOSED:
                    siblings[mine.node_id] = mine.moved(start).resized(duration)
                continue
            if row.id in known_ids:
                continue
            siblings[f"fresh_{row.id}"] = EventSlot(
                node_id=f"fresh_{row.id}", lesson_id=row.lesson_id or "",
                start=start, duration=duration, location=row.location or "",
                student_count=0, event_id=row.id,
            )
        return list(siblings.values())

    @staticmethod
    def _call(fn: Callable, node_id: str, *args) -> bool:
        try:
            result = fn(*args)
        except Exception as e:
            logger.error(f"Commit {node_id}: Speichern fehlgeschlagen: {e}")
            return False
        if result is False or getattr(result, "success", True) is False:
            logger.error(f"Commit {node_id}: Speichern meldet Fehler: {result!r}")
            return False
        if isinstance(result, dict) and result.get("success") is False:
            logger.error(f"Commit {node_id}: Speichern meldet Fehler: {result.get('error')}")
            return False
        return True
