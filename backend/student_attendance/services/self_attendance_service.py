"""Self-Attendance Engine.

Per (student, date) the state moves NotRecorded -> CheckedIn -> CheckedOut.
Every rejection is returned as an ``AttendanceResult`` with a reason code;
the ledger is only written once all checks pass.
"""
import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from student_attendance.models.attendance import AttendanceRecord, AttendanceStatus, AttendanceSource
from student_attendance.models.user import User
from student_attendance.services.geo_service import BOUNDARY_TOLERANCE_METERS
from student_attendance.services.ledger_service import AttendanceLedger, DuplicateAttendance
from student_attendance.services.location_service import LocationService
from student_attendance.services.position_service import LocationAcquisitionError
from student_attendance.services.schedule_service import ScheduleService
from student_attendance.services.submission_guard import SubmissionInProgress
from student_attendance.services.violation_service import ViolationOutbox

logger = logging.getLogger(__name__)

class ReasonCode(str, enum.Enum):
    DUPLICATE = 'duplicate'
    OUTSIDE_AREA = 'outside_area'
    NO_SCHEDULE = 'no_schedule'
    OUTSIDE_WINDOW = 'outside_window'
    LOCATION_ERROR = 'location_error'
    NOT_CHECKED_IN = 'not_checked_in'

class AttendanceState(str, enum.Enum):
    NOT_RECORDED = 'not_recorded'
    CHECKED_IN = 'checked_in'
    CHECKED_OUT = 'checked_out'

@dataclass
class AttendanceResult:
    accepted: bool
    message: str
    reason_code: Optional[ReasonCode] = None
    record: Optional[AttendanceRecord] = None
    location_name: Optional[str] = None
    timestamp: Optional[datetime] = None
    late_minutes: int = 0
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def rejected(cls, reason_code: ReasonCode, message: str, **details) -> 'AttendanceResult':
        return cls(accepted=False, message=message, reason_code=reason_code, details=details)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'accepted': self.accepted,
            'reason_code': self.reason_code.value if self.reason_code else None,
            'message': self.message
        }
        if self.accepted:
            result.update({
                'matched_location_name': self.location_name,
                'timestamp': self.timestamp.isoformat() if self.timestamp else None,
                'late_minutes': self.late_minutes,
                'record': self.record.to_dict() if self.record else None
            })
        if self.details:
            result['details'] = self.details
        return result

def record_state(record: Optional[AttendanceRecord]) -> AttendanceState:
    if record is None or record.check_in_time is None:
        return AttendanceState.NOT_RECORDED
    if record.check_out_time is None:
        return AttendanceState.CHECKED_IN
    return AttendanceState.CHECKED_OUT

class SelfAttendanceService:
    """Check-in/check-out orchestration for one request.

    Collaborators are injected: ``clock.now()`` gives local wall-clock time,
    ``position_provider.get_current_position`` the device fix, ``guard`` the
    per-student in-flight lock and ``outbox`` the violation queue.
    """

    def __init__(self, clock, position_provider, guard, outbox: ViolationOutbox,
                 timeout_ms: int = 10000, max_age_ms: int = 60000,
                 dispatch_on_write: bool = False,
                 boundary_tolerance_meters: float = BOUNDARY_TOLERANCE_METERS):
        self.clock = clock
        self.position_provider = position_provider
        self.guard = guard
        self.outbox = outbox
        self.timeout_ms = timeout_ms
        self.max_age_ms = max_age_ms
        self.dispatch_on_write = dispatch_on_write
        self.boundary_tolerance_meters = boundary_tolerance_meters

    # ---------------------------------------------------------------- helpers

    def _locate(self, now: datetime):
        """Return (match, position, rejection)."""
        try:
            position = self.position_provider.get_current_position(
                self.timeout_ms, self.max_age_ms, now
            )
        except LocationAcquisitionError as e:
            logger.info("Location acquisition failed (%s)", e.kind)
            return None, None, AttendanceResult.rejected(
                ReasonCode.LOCATION_ERROR, str(e), location_error=e.kind
            )

        match = LocationService.match_location(
            position.latitude, position.longitude, self.boundary_tolerance_meters
        )
        if match is None:
            return None, position, AttendanceResult.rejected(
                ReasonCode.OUTSIDE_AREA,
                "You must be inside an authorized school area to record attendance"
            )
        return match, position, None

    @staticmethod
    def _schedule_for(student: User, now: datetime):
        return ScheduleService.get_schedule_for(student.class_id, now.isoweekday())

    # -------------------------------------------------------------- check-in

    def check_in(self, student: User) -> AttendanceResult:
        try:
            with self.guard.hold(student.id):
                return self._check_in(student)
        except SubmissionInProgress:
            return AttendanceResult.rejected(
                ReasonCode.DUPLICATE, "A submission is already in progress"
            )

    def _check_in(self, student: User) -> AttendanceResult:
        now = self.clock.now()

        existing = AttendanceLedger.find_for_day(student.id, now.date())
        if existing is not None and existing.check_in_time is not None:
            return AttendanceResult.rejected(
                ReasonCode.DUPLICATE, "You have already checked in today",
                check_in_time=existing.check_in_time.isoformat()
            )

        match, position, rejection = self._locate(now)
        if rejection:
            return rejection

        schedule = self._schedule_for(student, now)
        if schedule is None:
            return AttendanceResult.rejected(
                ReasonCode.NO_SCHEDULE, "No attendance schedule is configured for today"
            )

        if not ScheduleService.within_check_in(schedule, now.time()):
            return AttendanceResult.rejected(
                ReasonCode.OUTSIDE_WINDOW,
                f"Check-in is only possible between {schedule.check_in_start:%H:%M} "
                f"and {schedule.check_in_end:%H:%M}",
                window_start=schedule.check_in_start.isoformat(),
                window_end=schedule.check_in_end.isoformat()
            )

        late_minutes = ScheduleService.late_minutes(schedule, now.time())
        is_late = now.time() > ScheduleService.late_cutoff(schedule)
        try:
            record = AttendanceLedger.insert_check_in(
                student_id=student.id,
                check_in_time=now,
                status=AttendanceStatus.LATE if is_late else AttendanceStatus.PRESENT,
                late_minutes=late_minutes,
                latitude=position.latitude,
                longitude=position.longitude,
                location_id=match.location.id,
                source=AttendanceSource.SELF_SERVICE,
                notes=f"Late by {late_minutes} minutes" if is_late else None
            )
        except DuplicateAttendance:
            return AttendanceResult.rejected(
                ReasonCode.DUPLICATE, "You have already checked in today"
            )

        logger.info("Student %s checked in at %s (%s, %s)", student.id, now,
                    match.location.name, record.status.value)

        if is_late:
            event = self.outbox.enqueue_late_attendance(record)
            if self.dispatch_on_write:
                self.outbox.dispatch_one(event)

        message = f"Checked in at {match.location.name}"
        if is_late:
            message += f" - late by {late_minutes} minutes"
        return AttendanceResult(
            accepted=True,
            message=message,
            record=record,
            location_name=match.location.name,
            timestamp=record.check_in_time,
            late_minutes=late_minutes
        )

    # ------------------------------------------------------------- check-out

    def check_out(self, student: User) -> AttendanceResult:
        try:
            with self.guard.hold(student.id):
                return self._check_out(student)
        except SubmissionInProgress:
            return AttendanceResult.rejected(
                ReasonCode.DUPLICATE, "A submission is already in progress"
            )

    def _check_out(self, student: User) -> AttendanceResult:
        now = self.clock.now()

        state = record_state(AttendanceLedger.find_for_day(student.id, now.date()))
        if state == AttendanceState.NOT_RECORDED:
            return AttendanceResult.rejected(
                ReasonCode.NOT_CHECKED_IN, "You have not checked in today"
            )
        if state == AttendanceState.CHECKED_OUT:
            return AttendanceResult.rejected(
                ReasonCode.DUPLICATE, "You have already checked out today"
            )

        match, position, rejection = self._locate(now)
        if rejection:
            return rejection

        schedule = self._schedule_for(student, now)
        if schedule is None:
            return AttendanceResult.rejected(
                ReasonCode.NO_SCHEDULE, "No attendance schedule is configured for today"
            )

        if not ScheduleService.within_check_out(schedule, now.time()):
            return AttendanceResult.rejected(
                ReasonCode.OUTSIDE_WINDOW,
                f"Check-out is only possible between {schedule.check_out_start:%H:%M} "
                f"and {schedule.check_out_end:%H:%M}",
                window_start=schedule.check_out_start.isoformat(),
                window_end=schedule.check_out_end.isoformat()
            )

        record = AttendanceLedger.update_check_out(
            student_id=student.id,
            check_out_time=now,
            latitude=position.latitude,
            longitude=position.longitude,
            location_id=match.location.id
        )
        if record is None:
            return AttendanceResult.rejected(
                ReasonCode.DUPLICATE, "You have already checked out today"
            )

        logger.info("Student %s checked out at %s (%s)", student.id, now, match.location.name)
        return AttendanceResult(
            accepted=True,
            message=f"Checked out at {match.location.name}",
            record=record,
            location_name=match.location.name,
            timestamp=record.check_out_time,
            late_minutes=record.late_minutes
        )

    # ---------------------------------------------------------------- status

    def get_today_status(self, student: User) -> Dict[str, Any]:
        """State of today's record plus which actions are currently available."""
        now = self.clock.now()
        record = AttendanceLedger.find_for_day(student.id, now.date())
        state = record_state(record)
        schedule = self._schedule_for(student, now)

        can_check_in = (schedule is not None
                        and state == AttendanceState.NOT_RECORDED
                        and ScheduleService.within_check_in(schedule, now.time()))
        can_check_out = (schedule is not None
                         and state == AttendanceState.CHECKED_IN
                         and ScheduleService.within_check_out(schedule, now.time()))

        return {
            'state': state.value,
            'attendance_date': now.date().isoformat(),
            'server_time': now.isoformat(),
            'check_in_time': record.check_in_time.isoformat() if record and record.check_in_time else None,
            'check_out_time': record.check_out_time.isoformat() if record and record.check_out_time else None,
            'record': record.to_dict() if record else None,
            'schedule': schedule.to_dict() if schedule else None,
            'can_check_in': can_check_in,
            'can_check_out': can_check_out,
            'geolocation': {
                'timeout_ms': self.timeout_ms,
                'max_age_ms': self.max_age_ms,
                'enable_high_accuracy': True
            }
        }
