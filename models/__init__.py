from models.package import Package
from models.student import Student, BookingStudent
from models.teacher import Teacher, Commission
from models.event import Event, EventStatus
from models.lesson import Lesson, LessonStatus
from models.booking import Booking

__all__ = [
    "Package",
    "Student",
    "BookingStudent",
    "Teacher",
    "Commission",
    "Event",
    "EventStatus",
    "Lesson",
    "LessonStatus",
    "Booking",
]
