"""Tests for the Operator QR Console."""
import base64
from datetime import datetime, time

import pytest

from student_attendance.models.attendance import AttendanceRecord, AttendanceSource, AttendanceStatus
from student_attendance.models.violation import ViolationEvent, ViolationStatus
from student_attendance.services.qr_console_service import QRConsoleService, parse_cutoff
from student_attendance.services.violation_service import ViolationOutbox
from student_attendance.utils.validators import ConflictError, NotFoundError, ValidationError
from tests.helpers import MONDAY, RecordingSink, make_user

@pytest.fixture
def console(clock, sink):
    return QRConsoleService(clock=clock, cutoff=time(7, 0), outbox=ViolationOutbox(sink))

def test_parse_code():
    assert QRConsoleService.parse_code('NIS:1001') == '1001'
    assert QRConsoleService.parse_code(' NIS: 2002 ') == '2002'

@pytest.mark.parametrize('code', ['1001', 'ID:1001', 'NIS:', '', None])
def test_parse_code_rejects_malformed(code):
    with pytest.raises(ValidationError):
        QRConsoleService.parse_code(code)

def test_compute_lateness():
    cutoff = time(7, 0)
    assert QRConsoleService.compute_lateness(datetime(2024, 7, 15, 7, 0), cutoff) == (False, 0)
    assert QRConsoleService.compute_lateness(datetime(2024, 7, 15, 6, 59), cutoff) == (False, 0)
    assert QRConsoleService.compute_lateness(datetime(2024, 7, 15, 7, 12, 59), cutoff) == (True, 12)
    assert QRConsoleService.compute_lateness(datetime(2024, 7, 15, 7, 0, 30), cutoff) == (True, 0)

def test_scan_after_cutoff_is_late(console, student, staff, clock):
    clock.set(7, 12)

    record = console.scan('NIS:1001', staff)

    assert record.status == AttendanceStatus.LATE
    assert record.late_minutes == 12
    assert record.source == AttendanceSource.QR_CONSOLE
    assert record.recorded_by_id == staff.id
    assert record.check_in_latitude is None
    assert record.check_in_location_id is None
    assert ViolationEvent.query.one().minutes_late == 12

def test_scan_on_time_is_present(console, student, staff, clock):
    clock.set(6, 50)

    record = console.scan('NIS:1001', staff)

    assert record.status == AttendanceStatus.PRESENT
    assert record.late_minutes == 0
    assert ViolationEvent.query.count() == 0

def test_second_scan_names_the_student(console, student, staff):
    console.scan('NIS:1001', staff)

    with pytest.raises(ConflictError) as excinfo:
        console.scan('NIS:1001', staff)

    assert 'Siti Rahma' in str(excinfo.value)
    assert AttendanceRecord.query.count() == 1

def test_unknown_student(console, staff):
    with pytest.raises(NotFoundError):
        console.scan('NIS:9999', staff)

def test_student_without_class_rejected(console, staff):
    make_user(nis='3003', full_name='No Class')
    with pytest.raises(ValidationError):
        console.scan('NIS:3003', staff)

def test_today_records(console, student, staff, school_class, clock):
    other = make_user(nis='1002', school_class=school_class, full_name='Budi')
    console.scan('NIS:1001', staff)
    clock.set(7, 5)
    console.scan('NIS:1002', staff)

    today = console.today_records()

    assert today['statistics'] == {'total': 2, 'present': 1, 'late': 1}
    assert today['records'][0]['student_id'] == other.id
    assert today['records'][0]['late_minutes'] == 5
    assert today['records'][1]['late_minutes'] is None

def test_generate_student_card(student):
    data_uri = QRConsoleService.generate_student_card(student)

    assert data_uri.startswith('data:image/png;base64,')
    png = base64.b64decode(data_uri.split(',', 1)[1])
    assert png[:8] == b'\x89PNG\r\n\x1a\n'

def test_parse_cutoff():
    assert parse_cutoff('07:15') == time(7, 15)
    assert parse_cutoff(time(6, 0)) == time(6, 0)

def test_scan_day_matches_clock(console, student, staff):
    record = console.scan('NIS:1001', staff)
    assert record.attendance_date == MONDAY.date()

def test_late_scan_delivers_violation_inline(student, staff, clock, sink):
    console = QRConsoleService(clock=clock, cutoff=time(7, 0), outbox=ViolationOutbox(sink),
                               dispatch_on_write=True)
    clock.set(7, 12)

    record = console.scan('NIS:1001', staff)

    assert sink.calls == [{
        'student_id': student.id,
        'kind': 'late_attendance',
        'minutes_late': 12,
        'attendance_record_id': record.id,
        'attendance_date': '2024-07-15'
    }]
    assert AttendanceRecord.query.one().violation_created is True

def test_violation_failure_keeps_attendance(student, staff, clock):
    console = QRConsoleService(clock=clock, cutoff=time(7, 0),
                               outbox=ViolationOutbox(RecordingSink(fail=True), max_attempts=3),
                               dispatch_on_write=True)
    clock.set(7, 5)

    record = console.scan('NIS:1001', staff)

    assert record.status == AttendanceStatus.LATE
    stored = AttendanceRecord.query.one()
    assert stored.violation_created is False
    event = ViolationEvent.query.one()
    assert event.status == ViolationStatus.PENDING
    assert event.attempts == 1
