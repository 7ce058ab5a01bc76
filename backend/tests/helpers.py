"""Test doubles and builders."""
from datetime import datetime

from flask_jwt_extended import create_access_token

from student_attendance.models.user import User, UserRole
from student_attendance.services.violation_service import ViolationDeliveryError

# 2024-07-15 is a Monday
MONDAY = datetime(2024, 7, 15)

ON_CAMPUS = {'latitude': 0.0, 'longitude': 0.0005}
OFF_CAMPUS = {'latitude': 0.0, 'longitude': 0.002}

class FixedClock:
    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, hour: int, minute: int, second: int = 0) -> None:
        self.current = self.current.replace(hour=hour, minute=minute, second=second)

class RecordingSink:
    """Violations collaborator double."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def create_violation(self, student_id, kind, minutes_late, reference):
        if self.fail:
            raise ViolationDeliveryError("violations service down")
        self.calls.append({'student_id': student_id, 'kind': kind,
                           'minutes_late': minutes_late, **reference})

def make_user(role=UserRole.STUDENT, email=None, nis=None, school_class=None, full_name='Test User'):
    user = User(
        email=email or f'{nis or role.value}@school.test',
        full_name=full_name,
        role=role,
        nis=nis,
        class_id=school_class.id if school_class else None
    )
    user.set_password('password123')
    return user.save()

def auth_headers(user):
    token = create_access_token(identity=str(user.id))
    return {'Authorization': f'Bearer {token}'}
