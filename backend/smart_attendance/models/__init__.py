"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole
from .attendance_session import AttendanceSession, SessionStatus
from .attendance import AttendanceRecord, AttendanceStatus

__all__ = [
    'BaseModel', 'User', 'UserRole',
    'AttendanceSession', 'SessionStatus',
    'AttendanceRecord', 'AttendanceStatus'
]
