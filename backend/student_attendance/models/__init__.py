"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole, SchoolClass
from .location import AttendanceLocation
from .schedule import AttendanceSchedule, WeekDay
from .attendance import AttendanceRecord, AttendanceStatus, AttendanceSource
from .violation import ViolationEvent, ViolationStatus

__all__ = [
    'BaseModel', 'User', 'UserRole', 'SchoolClass',
    'AttendanceLocation', 'AttendanceSchedule', 'WeekDay',
    'AttendanceRecord', 'AttendanceStatus', 'AttendanceSource',
    'ViolationEvent', 'ViolationStatus'
]
