"""Operator QR Console.

Staff scan a student's card (``NIS:<number>``). No geolocation: the
operator's presence is the trust boundary. Lateness is measured against one
fixed cutoff time, not the schedule windows.
"""
import base64
import io
import logging
from datetime import datetime, time
from typing import Dict, List, Tuple

import qrcode

from student_attendance.models.attendance import AttendanceRecord, AttendanceSource, AttendanceStatus
from student_attendance.models.user import User, UserRole
from student_attendance.services.ledger_service import AttendanceLedger, DuplicateAttendance
from student_attendance.services.violation_service import ViolationOutbox
from student_attendance.utils.validators import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

QR_PREFIX = 'NIS'

class QRConsoleService:
    """Scan handling and student card generation."""

    def __init__(self, clock, cutoff: time, outbox: ViolationOutbox, dispatch_on_write: bool = False):
        self.clock = clock
        self.cutoff = cutoff
        self.outbox = outbox
        self.dispatch_on_write = dispatch_on_write

    @staticmethod
    def parse_code(code: str) -> str:
        """Extract the student number from ``NIS:<number>``."""
        if not isinstance(code, str):
            raise ValidationError("QR code must be text in the form NIS:<number>")
        prefix, _, value = code.strip().partition(':')
        if prefix != QR_PREFIX or not value.strip():
            raise ValidationError("Invalid QR code format. Expected NIS:<number>")
        return value.strip()

    @staticmethod
    def compute_lateness(now: datetime, cutoff: time) -> Tuple[bool, int]:
        """``late = now > cutoff``; minutes are floored."""
        cutoff_at = datetime.combine(now.date(), cutoff)
        if now <= cutoff_at:
            return False, 0
        return True, int((now - cutoff_at).total_seconds() // 60)

    def scan(self, code: str, operator: User) -> AttendanceRecord:
        nis = self.parse_code(code)

        student = User.query.filter_by(nis=nis, role=UserRole.STUDENT).first()
        if not student or not student.is_active:
            raise NotFoundError(f"No student found with NIS {nis}")

        if not student.has_active_class():
            raise ValidationError(f"{student.full_name} is not enrolled in an active class")

        now = self.clock.now()
        if AttendanceLedger.find_for_day(student.id, now.date()) is not None:
            raise ConflictError(f"{student.full_name} ({nis}) already has attendance recorded today")

        is_late, late_minutes = self.compute_lateness(now, self.cutoff)
        try:
            record = AttendanceLedger.insert_check_in(
                student_id=student.id,
                check_in_time=now,
                status=AttendanceStatus.LATE if is_late else AttendanceStatus.PRESENT,
                late_minutes=late_minutes,
                source=AttendanceSource.QR_CONSOLE,
                recorded_by_id=operator.id,
                notes=f"Late by {late_minutes} minutes" if is_late else None
            )
        except DuplicateAttendance:
            raise ConflictError(f"{student.full_name} ({nis}) already has attendance recorded today")

        logger.info("QR scan by %s recorded student %s (%s, %s min late)",
                    operator.id, student.id, record.status.value, late_minutes)

        if is_late:
            event = self.outbox.enqueue_late_attendance(record)
            if self.dispatch_on_write:
                self.outbox.dispatch_one(event)

        return record

    def today_records(self) -> Dict:
        records = AttendanceLedger.records_for_day(self.clock.now().date(), AttendanceSource.QR_CONSOLE)
        rows = [self.describe(record) for record in records]
        return {
            'records': rows,
            'statistics': {
                'total': len(rows),
                'present': len([r for r in rows if r['status'] == AttendanceStatus.PRESENT.value]),
                'late': len([r for r in rows if r['status'] == AttendanceStatus.LATE.value])
            }
        }

    @staticmethod
    def describe(record: AttendanceRecord) -> Dict:
        return {
            'id': record.id,
            'student_id': record.student_id,
            'student_name': record.student.full_name,
            'nis': record.student.nis,
            'status': record.status.value,
            'time_recorded': record.check_in_time.isoformat(),
            'is_late': record.status == AttendanceStatus.LATE,
            'late_minutes': record.late_minutes or None
        }

    @staticmethod
    def generate_student_card(student: User) -> str:
        """PNG QR image encoding ``NIS:<number>`` as a data URI."""
        if not student.nis:
            raise ValidationError(f"{student.full_name} has no student number")

        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(f'{QR_PREFIX}:{student.nis}')
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"

def parse_cutoff(value) -> time:
    if isinstance(value, time):
        return value
    return datetime.strptime(str(value), '%H:%M').time()

def list_students(class_id: int = None) -> List[User]:
    query = User.query.filter_by(role=UserRole.STUDENT, is_active=True)
    if class_id is not None:
        query = query.filter_by(class_id=class_id)
    return query.order_by(User.full_name).all()
