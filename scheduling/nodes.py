"""Knoten des Tagesplans: Events und daraus berechnete Lücken.

Die Knotenliste ist nie Quelle der Wahrheit, sondern wird bei jedem Lesen
aus den Events neu erzeugt (build_nodes). Lücken werden nicht gespeichert.
"""

from dataclasses import dataclass, field, replace
from typing import Literal, Optional, Sequence

from scheduling.timecalc import minutes_to_time

NodeType = Literal["event", "gap"]


@dataclass(frozen=True)
class EventSlot:
    """Ein eingeplantes Event eines Lehrers an einem Tag (Minuten seit 00:00 UTC)."""

    node_id: str
    lesson_id: str
    start: int
    duration: int
    location: str
    student_count: int
    student_names: tuple[str, ...] = ()
    event_id: Optional[str] = None

    @property
    def end(self) -> int:
        return self.start + self.duration

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end)

    def overlaps(self, other: "EventSlot") -> bool:
        """Halboffene Intervalle [start, end) schneiden sich."""
        return self.start < other.end and other.start < self.end

    def moved(self, start: int) -> "EventSlot":
        return replace(self, start=start)

    def resized(self, duration: int) -> "EventSlot":
        return replace(self, duration=duration)


@dataclass(frozen=True)
class ScheduleNode:
    """Ein Eintrag der Anzeige-Liste: Event oder Lücke."""

    id: str
    type: NodeType
    start_time: str
    duration: int
    start: int
    event: Optional[EventSlot] = field(default=None, compare=False)

    @property
    def end(self) -> int:
        return self.start + self.duration

    @property
    def lesson_id(self) -> Optional[str]:
        return self.event.lesson_id if self.event else None

    @property
    def is_gap(self) -> bool:
        return self.type == "gap"


def sort_events(events: Sequence[EventSlot]) -> list[EventSlot]:
    """Stabil nach Startzeit sortieren (gleiche Startzeit: Einfügereihenfolge)."""
    return sorted(events, key=lambda e: e.start)


def build_nodes(events: Sequence[EventSlot]) -> tuple[ScheduleNode, ...]:
    """Erzeugt die geordnete Knotenliste mit Lücken zwischen den Events.

    Zwischen zwei aufeinanderfolgenden Events wird genau dann ein Lücken-
    Knoten eingefügt, wenn das erste vor dem Start des zweiten endet.
    """
    ordered = sort_events(events)
    nodes: list[ScheduleNode] = []
    for i, ev in enumerate(ordered):
        nodes.append(ScheduleNode(
            id=ev.node_id,
            type="event",
            start_time=ev.start_time,
            duration=ev.duration,
            start=ev.start,
            event=ev,
        ))
        if i + 1 < len(ordered):
            nxt = ordered[i + 1]
            if ev.end < nxt.start:
                nodes.append(ScheduleNode(
                    id=f"gap_{ev.node_id}_{nxt.node_id}",
                    type="gap",
                    start_time=minutes_to_time(ev.end),
                    duration=nxt.start - ev.end,
                    start=ev.end,
                ))
    return tuple(nodes)


# ─── Lücken-Auswertung ────────────────────────────────────────────────────────

def gap_lengths(events: Sequence[EventSlot]) -> list[int]:
    """Längen aller positiven Lücken zwischen aufeinanderfolgenden Events."""
    ordered = sort_events(events)
    return [
        nxt.start - cur.end
        for cur, nxt in zip(ordered, ordered[1:])
        if nxt.start > cur.end
    ]


def total_gap_minutes(events: Sequence[EventSlot]) -> int:
    """Summe aller Lücken in Minuten."""
    return sum(gap_lengths(events))


def has_gaps(events: Sequence[EventSlot], minimum_gap_minutes: int = 15) -> bool:
    """True wenn mindestens eine Lücke ≥ minimum_gap_minutes existiert."""
    return any(g >= minimum_gap_minutes for g in gap_lengths(events))


def find_overlaps(events: Sequence[EventSlot]) -> list[tuple[EventSlot, EventSlot]]:
    """Alle Paare sich überschneidender Events."""
    ordered = sort_events(events)
    pairs: list[tuple[EventSlot, EventSlot]] = []
    for i, a in enumerate(ordered):
        for b in ordered[i + 1:]:
            if b.start >= a.end:
                break
            pairs.append((a, b))
    return pairs


def compact(
    events: Sequence[EventSlot], anchor: Optional[int] = None
) -> list[EventSlot]:
    """Schließt alle Lücken, Reihenfolge bleibt erhalten.

    Das erste Event startet bei `anchor` (Default: seine eigene Startzeit),
    jedes weitere direkt nach dem Ende des vorherigen.
    """
    if not events:
        return []
    current = events[0].start if anchor is None else anchor
    result: list[EventSlot] = []
    for ev in events:
        result.append(ev.moved(current))
        current += ev.duration
    return result
