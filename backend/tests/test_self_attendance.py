"""Tests for the Self-Attendance Engine."""
from student_attendance import db
from student_attendance.models.attendance import AttendanceRecord, AttendanceSource, AttendanceStatus
from student_attendance.models.violation import ViolationEvent
from student_attendance.services.ledger_service import AttendanceLedger
from student_attendance.services.self_attendance_service import AttendanceState, ReasonCode
from tests.helpers import MONDAY, OFF_CAMPUS, ON_CAMPUS

def test_check_in_accepted(make_service, student, campus, monday_schedule, clock):
    result = make_service(ON_CAMPUS).check_in(student)

    assert result.accepted
    assert result.reason_code is None
    assert result.location_name == 'Main Campus'
    assert result.timestamp == clock.now()

    record = AttendanceRecord.query.one()
    assert record.attendance_date == MONDAY.date()
    assert record.check_in_location_id == campus.id
    assert record.check_in_longitude == 0.0005
    assert record.status == AttendanceStatus.PRESENT
    assert record.source == AttendanceSource.SELF_SERVICE

def test_today_status_after_check_in(make_service, student, campus, monday_schedule):
    result = make_service(ON_CAMPUS).check_in(student)

    status = make_service().get_today_status(student)

    assert status['state'] == AttendanceState.CHECKED_IN.value
    assert status['check_in_time'] == result.timestamp.isoformat()
    assert status['record']['check_in_location_id'] == campus.id
    assert status['can_check_in'] is False

def test_today_status_without_record(make_service, student, monday_schedule):
    status = make_service().get_today_status(student)

    assert status['state'] == AttendanceState.NOT_RECORDED.value
    assert status['can_check_in'] is True
    assert status['can_check_out'] is False
    assert status['schedule']['id'] == monday_schedule.id
    assert status['geolocation'] == {'timeout_ms': 10000, 'max_age_ms': 60000, 'enable_high_accuracy': True}

def test_today_status_without_schedule_disables_actions(make_service, student):
    status = make_service().get_today_status(student)

    assert status['schedule'] is None
    assert status['can_check_in'] is False

def test_repeated_check_in_is_duplicate(make_service, student, campus, monday_schedule, clock):
    first = make_service(ON_CAMPUS).check_in(student)
    clock.set(6, 55)

    second = make_service(ON_CAMPUS).check_in(student)

    assert not second.accepted
    assert second.reason_code == ReasonCode.DUPLICATE
    record = AttendanceRecord.query.one()
    assert record.check_in_time == first.timestamp

def test_outside_area_writes_nothing(make_service, student, campus, monday_schedule):
    result = make_service(OFF_CAMPUS).check_in(student)

    assert result.reason_code == ReasonCode.OUTSIDE_AREA
    assert AttendanceRecord.query.count() == 0

def test_no_schedule(make_service, student, campus):
    result = make_service(ON_CAMPUS).check_in(student)

    assert result.reason_code == ReasonCode.NO_SCHEDULE
    assert AttendanceRecord.query.count() == 0

def test_check_in_after_window_rejected(make_service, student, campus, monday_schedule, clock):
    clock.set(7, 10)

    result = make_service(ON_CAMPUS).check_in(student)

    assert result.reason_code == ReasonCode.OUTSIDE_WINDOW
    assert result.details['window_end'] == '07:00:00'
    assert AttendanceRecord.query.count() == 0

def test_check_in_before_window_rejected(make_service, student, campus, monday_schedule, clock):
    clock.set(6, 0)
    assert make_service(ON_CAMPUS).check_in(student).reason_code == ReasonCode.OUTSIDE_WINDOW

def test_location_error_is_distinct(make_service, student, campus, monday_schedule):
    result = make_service({'location_error': 'permission_denied'}).check_in(student)

    assert result.reason_code == ReasonCode.LOCATION_ERROR
    assert result.details['location_error'] == 'permission_denied'
    assert AttendanceRecord.query.count() == 0

def test_missing_position_is_location_error(make_service, student, campus, monday_schedule):
    assert make_service({}).check_in(student).reason_code == ReasonCode.LOCATION_ERROR

def test_stale_position_rejected(make_service, student, campus, monday_schedule, clock):
    payload = dict(ON_CAMPUS, captured_at=clock.now().replace(hour=6, minute=40).isoformat())

    result = make_service(payload).check_in(student)

    assert result.reason_code == ReasonCode.LOCATION_ERROR
    assert result.details['location_error'] == 'stale'

def test_check_in_inside_window_is_present(make_service, student, campus, monday_schedule, clock, sink):
    clock.set(6, 52)

    result = make_service(ON_CAMPUS).check_in(student)

    assert result.accepted
    assert result.late_minutes == 0
    record = AttendanceRecord.query.one()
    assert record.status == AttendanceStatus.PRESENT
    assert record.late_minutes == 0
    assert record.violation_created is False
    assert sink.calls == []
    assert ViolationEvent.query.count() == 0

def test_check_in_at_window_end_is_present(make_service, student, campus, monday_schedule, clock):
    clock.set(7, 0)

    result = make_service(ON_CAMPUS).check_in(student)

    assert result.accepted
    assert AttendanceRecord.query.one().status == AttendanceStatus.PRESENT

def test_on_time_check_in_creates_no_violation(make_service, student, campus, monday_schedule, sink):
    make_service(ON_CAMPUS).check_in(student)

    assert sink.calls == []
    assert ViolationEvent.query.count() == 0

def test_check_out_before_check_in(make_service, student, campus, monday_schedule, clock):
    clock.set(15, 0)

    result = make_service(ON_CAMPUS).check_out(student)

    assert result.reason_code == ReasonCode.NOT_CHECKED_IN

def test_check_out_accepted(make_service, student, campus, monday_schedule, clock):
    make_service(ON_CAMPUS).check_in(student)
    clock.set(15, 0)

    result = make_service({'latitude': 0.0, 'longitude': 0.0003}).check_out(student)

    assert result.accepted
    record = AttendanceRecord.query.one()
    assert record.check_out_time == MONDAY.replace(hour=15)
    assert record.check_out_location_id == campus.id
    assert record.check_out_longitude == 0.0003
    assert make_service().get_today_status(student)['state'] == AttendanceState.CHECKED_OUT.value

def test_second_check_out_is_duplicate(make_service, student, campus, monday_schedule, clock):
    make_service(ON_CAMPUS).check_in(student)
    clock.set(15, 0)
    make_service(ON_CAMPUS).check_out(student)
    clock.set(15, 30)

    result = make_service(ON_CAMPUS).check_out(student)

    assert result.reason_code == ReasonCode.DUPLICATE
    assert AttendanceRecord.query.one().check_out_time == MONDAY.replace(hour=15)

def test_check_out_outside_window(make_service, student, campus, monday_schedule, clock):
    make_service(ON_CAMPUS).check_in(student)
    clock.set(12, 0)

    result = make_service(ON_CAMPUS).check_out(student)

    assert result.reason_code == ReasonCode.OUTSIDE_WINDOW
    assert AttendanceRecord.query.one().check_out_time is None

def test_check_out_outside_area(make_service, student, campus, monday_schedule, clock):
    make_service(ON_CAMPUS).check_in(student)
    clock.set(15, 0)

    assert make_service(OFF_CAMPUS).check_out(student).reason_code == ReasonCode.OUTSIDE_AREA

def test_next_day_starts_fresh(make_service, student, campus, monday_schedule, clock):
    make_service(ON_CAMPUS).check_in(student)
    clock.current = clock.current.replace(day=22)

    assert make_service().get_today_status(student)['state'] == AttendanceState.NOT_RECORDED.value
    assert make_service(ON_CAMPUS).check_in(student).accepted
    assert AttendanceRecord.query.count() == 2

def test_racing_check_ins_yield_one_record(make_service, student, campus, monday_schedule, monkeypatch):
    first = make_service(ON_CAMPUS).check_in(student)

    # Second request read the ledger before the first one committed
    monkeypatch.setattr(AttendanceLedger, 'find_for_day', staticmethod(lambda *args: None))
    second = make_service(ON_CAMPUS).check_in(student)

    assert first.accepted
    assert not second.accepted
    assert second.reason_code == ReasonCode.DUPLICATE
    assert AttendanceRecord.query.count() == 1

def test_in_flight_submission_rejected(make_service, student, campus, monday_schedule, guard):
    assert guard.acquire(student.id)
    try:
        result = make_service(ON_CAMPUS).check_in(student)
    finally:
        guard.release(student.id)

    assert result.reason_code == ReasonCode.DUPLICATE
    assert AttendanceRecord.query.count() == 0
    assert make_service(ON_CAMPUS).check_in(student).accepted

def test_racing_check_outs_update_once(make_service, student, campus, monday_schedule, clock):
    make_service(ON_CAMPUS).check_in(student)
    clock.set(15, 0)

    first = AttendanceLedger.update_check_out(student.id, clock.now(), 0.0, 0.0, campus.id)
    second = AttendanceLedger.update_check_out(student.id, clock.now(), 0.0, 0.0, campus.id)

    assert first is not None
    assert second is None
    db.session.expire_all()
    assert AttendanceRecord.query.one().check_out_time == MONDAY.replace(hour=15)
