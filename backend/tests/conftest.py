"""Shared fixtures: app on in-memory SQLite with a fixed clock."""
from datetime import time

import pytest

from student_attendance import create_app, db
from student_attendance.models.location import AttendanceLocation
from student_attendance.models.schedule import AttendanceSchedule
from student_attendance.models.user import SchoolClass, UserRole
from student_attendance.services.position_service import RequestPositionProvider
from student_attendance.services.self_attendance_service import SelfAttendanceService
from student_attendance.services.submission_guard import LocalSubmissionGuard
from student_attendance.services.violation_service import ViolationOutbox
from tests.helpers import MONDAY, FixedClock, RecordingSink, make_user

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    app.extensions['attendance_clock'] = FixedClock(MONDAY.replace(hour=6, minute=45))
    app.extensions['violation_sink'] = RecordingSink()
    app.extensions['submission_guard'] = LocalSubmissionGuard()
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture
def clock(app):
    return app.extensions['attendance_clock']

@pytest.fixture
def sink(app):
    return app.extensions['violation_sink']

@pytest.fixture
def guard(app):
    return app.extensions['submission_guard']

@pytest.fixture
def school_class(app):
    return SchoolClass(name='X-1').save()

@pytest.fixture
def student(school_class):
    return make_user(nis='1001', school_class=school_class, full_name='Siti Rahma')

@pytest.fixture
def staff(app):
    return make_user(role=UserRole.STAFF, email='staff@school.test', full_name='Officer')

@pytest.fixture
def admin(app):
    return make_user(role=UserRole.ADMIN, email='admin@school.test', full_name='Admin')

@pytest.fixture
def campus(app):
    """Geofence of 100 m around (0, 0)."""
    return AttendanceLocation(name='Main Campus', latitude=0.0, longitude=0.0, radius_meters=100).save()

@pytest.fixture
def monday_schedule(app):
    return AttendanceSchedule(
        name='Monday',
        day_of_week=1,
        check_in_start=time(6, 30),
        check_in_end=time(7, 0),
        check_out_start=time(14, 0),
        check_out_end=time(16, 0),
        late_threshold_minutes=15
    ).save()

@pytest.fixture
def make_service(clock, guard, sink):
    """Build the engine with a given reported position."""
    def _make(payload=None):
        return SelfAttendanceService(
            clock=clock,
            position_provider=RequestPositionProvider(payload),
            guard=guard,
            outbox=ViolationOutbox(sink, max_attempts=3),
            dispatch_on_write=True
        )
    return _make
