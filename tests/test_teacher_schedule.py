"""Tests für den Tagesplan eines Lehrers: Aufbau, Bearbeitung, Commit."""

import pytest

from config.schema import OverlapPolicy, SchoolConfig
from models.booking import Booking
from models.event import Event, EventStatus
from models.lesson import Lesson
from models.package import Package
from models.student import BookingStudent, Student
from models.teacher import Commission, Teacher
from scheduling.teacher_schedule import (
    EventUpdate,
    NodeState,
    TeacherSchedule,
)

DAY = "2024-01-15"


def _make_schedule(config: SchoolConfig = None) -> TeacherSchedule:
    """Drei Events: 09:00–10:00, 10:00–11:00, Lücke, 12:00–14:00."""
    schedule = TeacherSchedule("t1", "Marta", DAY, config)
    schedule.add_event("12:00", 120, "l3", "Los Lances", 1, ["Ana"], event_id="e3")
    schedule.add_event("09:00", 60, "l1", "Los Lances", 2, ["Ben", "Cleo"], event_id="e1")
    schedule.add_event("10:00", 60, "l2", "Palmones", 1, event_id="e2")
    return schedule


def _times(schedule: TeacherSchedule) -> list[tuple[str, str, int]]:
    return [(e.node_id, e.start_time, e.duration) for e in schedule.events()]


class _Recorder:
    """Sammelt Updater-/Deleter-Aufrufe."""

    def __init__(self, result=True):
        self.updates: list[tuple[str, EventUpdate]] = []
        self.deletes: list[str] = []
        self.result = result

    def update(self, event_id: str, update: EventUpdate):
        self.updates.append((event_id, update))
        return self.result

    def delete(self, event_id: str):
        self.deletes.append(event_id)
        return self.result


# ─── AUFBAU ───────────────────────────────────────────────────────────────────

class TestScheduleBuild:
    def test_order_follows_start_time(self):
        """Reihenfolge nach Startzeit, nicht nach Einfügereihenfolge."""
        schedule = _make_schedule()
        nodes = schedule.get_nodes()
        assert [n.type for n in nodes] == ["event", "event", "gap", "event"]
        assert [n.id for n in schedule.event_nodes()] == ["e1", "e2", "e3"]
        gap = nodes[2]
        assert (gap.start_time, gap.duration) == ("11:00", 60)

    def test_date_is_normalized(self):
        schedule = TeacherSchedule("t1", "Marta", "2024-01-15T10:00:00.000Z")
        assert schedule.date == DAY

    def test_overlapping_event_declined(self):
        schedule = _make_schedule()
        assert schedule.add_event("09:30", 60, "l9", "Los Lances", 1, event_id="e9") is None
        assert [e.node_id for e in schedule.declined_events] == ["e9"]
        assert len(schedule.events()) == 3

    def test_event_past_midnight_declined(self):
        schedule = _make_schedule()
        assert schedule.add_event("23:30", 60, "l9", "Los Lances", 1) is None

    def test_duplicate_event_id_declined(self):
        schedule = _make_schedule()
        assert schedule.add_event("15:00", 60, "l9", "Los Lances", 1, event_id="e1") is None

    def test_add_returns_node(self):
        schedule = TeacherSchedule("t1", "Marta", DAY)
        node = schedule.add_event("08:00", 90, "l1", "Los Lances", 1)
        assert node is not None
        assert node.lesson_id == "l1"
        assert node.event.end_time == "09:30"

    def test_invalid_time_raises(self):
        from scheduling.timecalc import InvalidFormat
        schedule = TeacherSchedule("t1", "Marta", DAY)
        with pytest.raises(InvalidFormat):
            schedule.add_event("9.00", 60, "l1", "Los Lances", 1)

    def test_gap_helpers(self):
        schedule = _make_schedule()
        assert schedule.total_gap_minutes() == 60
        assert schedule.has_gaps()
        assert not schedule.has_gaps(minimum_gap_minutes=90)
        assert schedule.get_earliest_time() == "09:00"
        assert [n.id for n in schedule.find_by_lesson("l2")] == ["e2"]


# ─── FREIE ZEITEN ─────────────────────────────────────────────────────────────

class TestAvailability:
    def test_available_slots_within_working_day(self):
        slots = _make_schedule().available_slots(60)
        assert [(s.start_time, s.end_time, s.duration) for s in slots] == [
            ("11:00", "12:00", 60),
            ("14:00", "18:00", 240),
        ]

    def test_empty_day_is_one_slot(self):
        slots = TeacherSchedule("t1", "Marta", DAY).available_slots()
        assert [(s.start_time, s.end_time) for s in slots] == [("09:00", "18:00")]

    def test_check_conflict(self):
        schedule = _make_schedule()
        info = schedule.check_conflict("10:30", 60)
        assert info.has_conflict
        assert [n.id for n in info.conflicting_nodes] == ["e2"]
        assert info.suggested_alternatives[0].start_time == "11:00"
        assert not schedule.check_conflict("11:00", 60).has_conflict

    def test_check_conflict_default_duration_by_capacity(self):
        """Ohne Dauer gilt die Standard-Dauer der Paket-Kapazität (Privat 2h, Gruppe 3h)."""
        schedule = _make_schedule()
        assert not schedule.check_conflict("14:00").has_conflict
        assert schedule.check_conflict("10:00", capacity_students=1).has_conflict
        info = schedule.check_conflict("11:00", capacity_students=3)
        assert [n.id for n in info.conflicting_nodes] == ["e3"]
        assert info.suggested_alternatives[0].start_time == "14:00"

    def test_next_available_start(self):
        assert _make_schedule().next_available_start() == "14:00"
        assert TeacherSchedule("t1", "Marta", DAY).next_available_start() == "09:00"


# ─── BEARBEITUNG ──────────────────────────────────────────────────────────────

class TestEdits:
    def test_adjust_time(self):
        schedule = _make_schedule()
        result = schedule.adjust_time("e3", -30)
        assert result.accepted and not result.clamped
        assert result.time_delta == -30
        assert schedule.get_node("e3").start_time == "11:30"
        assert schedule.state("e3") == NodeState.PROPOSED
        assert schedule.time_delta("e3") == -30

    def test_adjust_time_clamped_at_neighbour(self):
        """Verschiebung in den Vorgänger wird an dessen Ende gekappt."""
        schedule = _make_schedule()
        result = schedule.adjust_time("e3", -120)
        assert result.accepted and result.clamped
        assert result.time_delta == -60
        assert schedule.get_node("e3").start_time == "11:00"

    def test_adjust_time_rejected_by_policy(self):
        schedule = _make_schedule(SchoolConfig(overlap_policy=OverlapPolicy.REJECT))
        result = schedule.adjust_time("e3", -120)
        assert not result.accepted
        assert result.reason
        assert schedule.get_node("e3").start_time == "12:00"
        assert schedule.state("e3") == NodeState.UNMODIFIED

    def test_default_delta_is_one_step(self):
        """Ohne delta wird um time_step_minutes verschoben bzw. verlängert."""
        schedule = _make_schedule(SchoolConfig(time_step_minutes=15))
        assert schedule.adjust_time("e3").time_delta == 15
        assert schedule.get_node("e3").start_time == "12:15"
        assert schedule.adjust_duration("e3").duration_delta == 15
        assert schedule.get_node("e3").duration == 135
        assert schedule.shift_from("e2").time_delta == 15

    def test_unknown_node_declined(self):
        assert not _make_schedule().adjust_time("nope", 30).accepted

    def test_adjust_duration_without_cascade(self):
        schedule = _make_schedule()
        result = schedule.adjust_duration("e2", 30)
        assert result.accepted and result.duration_delta == 30
        assert _times(schedule) == [
            ("e1", "09:00", 60), ("e2", "10:00", 90), ("e3", "12:00", 120),
        ]

    def test_adjust_duration_with_cascade(self):
        """Spätere Events rücken um die realisierte Änderung."""
        schedule = _make_schedule()
        assert schedule.adjust_duration("e1", 30, cascade=True).accepted
        assert _times(schedule) == [
            ("e1", "09:00", 90), ("e2", "10:30", 60), ("e3", "12:30", 120),
        ]

    def test_adjust_duration_minimum(self):
        schedule = _make_schedule()
        result = schedule.adjust_duration("e1", -60)
        assert result.accepted and result.clamped
        assert schedule.get_node("e1").duration == 30

        strict = _make_schedule(SchoolConfig(overlap_policy=OverlapPolicy.REJECT))
        assert not strict.adjust_duration("e1", -60).accepted

    def test_shift_from(self):
        schedule = _make_schedule()
        assert schedule.shift_from("e2", 30).accepted
        assert _times(schedule) == [
            ("e1", "09:00", 60), ("e2", "10:30", 60), ("e3", "12:30", 120),
        ]

    def test_shift_from_into_predecessor_declined(self):
        """e2 liegt direkt hinter e1, weiter nach vorn geht nicht."""
        schedule = _make_schedule()
        assert not schedule.shift_from("e2", -30).accepted

    def test_global_offset_stops_at_midnight(self):
        schedule = _make_schedule()
        result = schedule.apply_global_offset(-600)
        assert result.accepted and result.clamped
        assert _times(schedule)[0] == ("e1", "00:00", 60)
        assert _times(schedule)[-1] == ("e3", "03:00", 120)

    def test_align_to(self):
        schedule = _make_schedule()
        assert schedule.align_to("08:00").accepted
        assert schedule.get_earliest_time() == "08:00"
        assert schedule.get_node("e3").start_time == "11:00"

    def test_move_event_up(self):
        """Tausch mit dem Vorgänger: Paar beginnt zur früheren Startzeit."""
        schedule = _make_schedule()
        assert schedule.move_event("e2", "up").accepted
        assert _times(schedule) == [
            ("e2", "09:00", 60), ("e1", "10:00", 60), ("e3", "12:00", 120),
        ]

    def test_move_event_down_with_gap(self):
        schedule = _make_schedule()
        assert schedule.move_event("e2", "down").accepted
        assert _times(schedule) == [
            ("e1", "09:00", 60), ("e3", "10:00", 120), ("e2", "12:00", 60),
        ]

    def test_move_event_at_edge_declined(self):
        schedule = _make_schedule()
        assert not schedule.move_event("e1", "up").accepted
        assert not schedule.move_event("e3", "down").accepted

    def test_remove_gap_moves_connected_chain(self):
        schedule = _make_schedule()
        schedule.add_event("14:00", 60, "l4", "Los Lances", 1, event_id="e4")
        assert schedule.remove_gap("e3").accepted
        assert _times(schedule)[2:] == [("e3", "11:00", 120), ("e4", "13:00", 60)]
        assert not schedule.has_gaps()

    def test_remove_gap_without_gap_declined(self):
        schedule = _make_schedule()
        assert not schedule.remove_gap("e1").accepted
        assert not schedule.remove_gap("e2").accepted

    def test_compact(self):
        schedule = _make_schedule()
        assert schedule.compact().accepted
        assert schedule.total_gap_minutes() == 0
        assert schedule.get_node("e3").start_time == "11:00"

        assert schedule.compact("08:00").accepted
        assert _times(schedule)[0] == ("e1", "08:00", 60)

    def test_remove_event(self):
        schedule = _make_schedule()
        assert schedule.remove_event("e2").accepted
        assert [e.node_id for e in schedule.events()] == ["e1", "e3"]
        change = schedule.changes()[0]
        assert change.removed and change.event_id == "e2"


# ─── SITZUNG: ÄNDERUNGEN, REVERT, COMMIT ──────────────────────────────────────

class TestSession:
    def test_changes(self):
        schedule = _make_schedule()
        schedule.adjust_time("e3", -30)
        changes = schedule.changes()
        assert len(changes) == 1
        assert changes[0].event_id == "e3"
        assert changes[0].start_time == "11:30"
        assert changes[0].time_delta == -30
        assert changes[0].duration_delta == 0

    def test_edit_back_to_original_is_unmodified(self):
        schedule = _make_schedule()
        schedule.adjust_time("e3", -30)
        schedule.adjust_time("e3", 30)
        assert schedule.state("e3") == NodeState.UNMODIFIED
        assert not schedule.has_changes()

    def test_revert_all(self):
        schedule = _make_schedule()
        schedule.compact()
        schedule.remove_event("e1")
        assert schedule.revert().accepted
        assert _times(schedule) == [
            ("e1", "09:00", 60), ("e2", "10:00", 60), ("e3", "12:00", 120),
        ]
        assert schedule.state("e3") == NodeState.REVERTED
        assert not schedule.has_changes()

    def test_revert_single_node(self):
        schedule = _make_schedule()
        schedule.adjust_time("e3", -30)
        assert schedule.revert("e3").accepted
        assert schedule.get_node("e3").start_time == "12:00"

    def test_revert_single_node_conflict_declined(self):
        """e2 wurde entfernt und e3 auf seinen Platz gezogen."""
        schedule = _make_schedule()
        schedule.remove_event("e2")
        schedule.adjust_time("e3", -120)
        assert schedule.get_node("e3").start_time == "10:00"
        assert not schedule.revert("e2").accepted

    def test_commit_writes_changed_fields(self):
        schedule = _make_schedule()
        schedule.adjust_time("e3", -30)
        schedule.adjust_duration("e2", 30)
        rec = _Recorder()
        report = schedule.commit(rec.update)
        assert report.ok
        assert sorted(report.committed) == ["e2", "e3"]
        updates = dict(rec.updates)
        assert updates["e3"].fields() == {"date": "2024-01-15T11:30:00.000Z"}
        assert updates["e2"].fields() == {"duration": 90}
        assert schedule.state("e3") == NodeState.COMMITTED
        assert schedule.time_delta("e3") == 0
        assert not schedule.has_changes()

    def test_commit_deletes_removed(self):
        schedule = _make_schedule()
        schedule.remove_event("e2")
        rec = _Recorder()
        report = schedule.commit(rec.update, rec.delete)
        assert report.committed == ["e2"]
        assert rec.deletes == ["e2"]
        assert rec.updates == []

    def test_commit_remove_without_deleter_fails(self):
        schedule = _make_schedule()
        schedule.remove_event("e2")
        report = schedule.commit(_Recorder().update)
        assert report.failed == ["e2"]

    def test_commit_revalidates_against_fresh_events(self):
        """Ein frisch geladenes fremdes Event blockiert den Vorschlag."""
        schedule = _make_schedule()
        schedule.adjust_time("e3", -30)
        fresh = [Event(id="x9", lesson_id="l9", date="2024-01-15T11:00:00.000Z", duration=60)]
        rec = _Recorder()
        report = schedule.commit(rec.update, fresh_events=fresh)
        assert report.declined == ["e3"]
        assert rec.updates == []
        assert schedule.state("e3") == NodeState.PROPOSED

    def test_commit_uses_fresh_state_of_own_sibling(self):
        """e2 wurde anderswo auf 11:00 verschoben und kollidiert jetzt mit e3."""
        schedule = _make_schedule()
        schedule.adjust_time("e3", -30)
        fresh = [Event(id="e2", lesson_id="l2", date="2024-01-15T11:00:00.000Z", duration=60)]
        report = schedule.commit(_Recorder().update, fresh_events=fresh)
        assert report.declined == ["e3"]

    def test_commit_ignores_fresh_rows_of_other_days(self):
        schedule = _make_schedule()
        schedule.adjust_time("e3", -30)
        fresh = [
            Event(id="x1", date="2024-01-16T11:00:00.000Z", duration=60),
            Event(id="x3", date="kaputt", duration=60),
        ]
        report = schedule.commit(_Recorder().update, fresh_events=fresh)
        assert report.committed == ["e3"]

    def test_commit_counts_fresh_rows_of_any_status(self):
        """Wie beim Aufbau des Plans zählt jede Zeile des Tages, auch abgesagte."""
        schedule = _make_schedule()
        schedule.adjust_time("e3", -30)
        fresh = [Event(id="x2", date="2024-01-15T11:00:00.000Z", duration=60,
                       status=EventStatus.CANCELLED)]
        report = schedule.commit(_Recorder().update, fresh_events=fresh)
        assert report.declined == ["e3"]

    def test_updater_failure_is_reported(self):
        schedule = _make_schedule()
        schedule.adjust_time("e3", -30)

        def boom(event_id, update):
            raise RuntimeError("DB weg")

        report = schedule.commit(boom)
        assert report.failed == ["e3"]
        assert schedule.state("e3") == NodeState.PROPOSED

    def test_updater_success_false(self):
        schedule = _make_schedule()
        schedule.adjust_time("e3", -30)
        report = schedule.commit(_Recorder(result={"success": False, "error": "nope"}).update)
        assert report.failed == ["e3"]

    def test_failed_save_keeps_old_slot_for_later_checks(self):
        """Tausch a/b: b wird nicht gespeichert, also darf a nicht auf b's alten Platz."""
        schedule = TeacherSchedule("t1", "Marta", DAY)
        schedule.add_event("09:00", 60, "l1", "Los Lances", 1, event_id="a")
        schedule.add_event("10:00", 120, "l2", "Los Lances", 1, event_id="b")
        assert schedule.move_event("b", "up").accepted
        assert _times(schedule) == [("b", "09:00", 120), ("a", "11:00", 60)]

        saved: dict[str, EventUpdate] = {}

        def updater(event_id, update):
            if event_id == "b":
                return False
            saved[event_id] = update
            return True

        report = schedule.commit(updater)
        assert report.failed == ["b"]
        assert report.declined == ["a"]
        assert saved == {}
        assert schedule.state("a") == NodeState.PROPOSED
        assert schedule.state("b") == NodeState.PROPOSED

    def test_event_without_id_cannot_be_committed(self):
        schedule = TeacherSchedule("t1", "Marta", DAY)
        node = schedule.add_event("09:00", 60, "l1", "Los Lances", 1)
        schedule.adjust_time(node.id, 30)
        assert schedule.commit(_Recorder().update).failed == [node.id]


# ─── STATISTIK ────────────────────────────────────────────────────────────────

class TestTeacherStats:
    def _lesson(self, lesson_id: str, students: int) -> Lesson:
        booking = Booking(
            id=f"b_{lesson_id}", date_start=DAY, date_end=DAY,
            package=Package(duration=120, price_per_student=100, capacity_students=2),
            students=[BookingStudent(student=Student(name=f"S{i}")) for i in range(students)],
        )
        return Lesson(
            id=lesson_id, teacher=Teacher(id="t1", name="Marta"),
            commission=Commission(price_per_hour=20), booking=booking,
        )

    def test_stats_use_shared_allocation(self):
        """Gleiche Zahlen wie calc_lesson_revenue: Lehrer 20, Schule 80."""
        schedule = TeacherSchedule("t1", "Marta", DAY)
        schedule.add_lesson(self._lesson("l1", 2))
        schedule.add_event("10:00", 60, "l1", "Los Lances", 2, event_id="e1")
        stats = schedule.calculate_teacher_stats()
        assert stats.total_events == 1
        assert stats.total_lessons == 1
        assert stats.total_hours == pytest.approx(1.0)
        assert stats.total_earnings == pytest.approx(20)
        assert stats.school_revenue == pytest.approx(80)

    def test_stats_follow_edits(self):
        schedule = TeacherSchedule("t1", "Marta", DAY)
        schedule.add_lesson(self._lesson("l1", 2))
        schedule.add_event("10:00", 60, "l1", "Los Lances", 2, event_id="e1")
        schedule.add_event("12:00", 60, "l1", "Los Lances", 2, event_id="e2")
        schedule.adjust_duration("e1", 60)
        stats = schedule.calculate_teacher_stats()
        assert stats.total_events == 2
        assert stats.total_lessons == 1
        assert stats.total_hours == pytest.approx(3.0)
        assert stats.total_earnings == pytest.approx(60)

    def test_unknown_lesson_counts_hours_only(self):
        schedule = _make_schedule()
        stats = schedule.calculate_teacher_stats()
        assert stats.total_hours == pytest.approx(4.0)
        assert stats.total_earnings == 0
        assert stats.school_revenue == 0
