"""Tagesplanung der Lehrer (Whiteboard)."""

from .teacher_schedule import (
    TeacherSchedule,
    TeacherStats,
    EditResult,
    EventChange,
    EventUpdate,
    CommitReport,
    NodeState,
)
from .assembler import (
    create_teacher_schedules_from_lessons,
    calculate_global_stats,
    get_earliest_time_from_schedules,
)

__all__ = [
    "TeacherSchedule",
    "TeacherStats",
    "EditResult",
    "EventChange",
    "EventUpdate",
    "CommitReport",
    "NodeState",
    "create_teacher_schedules_from_lessons",
    "calculate_global_stats",
    "get_earliest_time_from_schedules",
]
