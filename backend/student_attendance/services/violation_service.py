"""Violation side-channel.

Late arrivals are written to an outbox after the attendance commit and are
delivered to the external Violations service by ``ViolationOutbox.dispatch_pending``
(inline after the write when VIOLATION_DISPATCH_ON_WRITE is set, and from the
``flask dispatch-violations`` command). Nothing here can undo an attendance
record.
"""
import logging
from datetime import datetime
from typing import Dict, Optional

import requests
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from student_attendance import db
from student_attendance.models.attendance import AttendanceRecord
from student_attendance.models.violation import ViolationEvent, ViolationStatus
from student_attendance.services.ledger_service import AttendanceLedger

logger = logging.getLogger(__name__)

LATE_ATTENDANCE = 'late_attendance'

class ViolationDeliveryError(Exception):
    """The Violations service did not accept the event."""

class HttpViolationSink:
    """Posts violations to the Violations service JSON API."""

    def __init__(self, url: str, token: Optional[str] = None, timeout: int = 10):
        self.url = url
        self.token = token
        self.timeout = timeout

    def create_violation(self, student_id: int, kind: str, minutes_late: int, reference: Dict) -> None:
        headers = {'Content-Type': 'application/json'}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'

        payload = {
            'student_id': student_id,
            'kind': kind,
            'minutes_late': minutes_late,
            **reference
        }
        try:
            response = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise ViolationDeliveryError(f"Violations service unreachable: {e}")

        if response.status_code >= 400:
            raise ViolationDeliveryError(
                f"Violations service answered {response.status_code}: {response.text[:200]}"
            )

class UnconfiguredViolationSink:
    """Used when no Violations service is configured; events stay pending."""

    def create_violation(self, student_id: int, kind: str, minutes_late: int, reference: Dict) -> None:
        raise ViolationDeliveryError("VIOLATIONS_API_URL is not configured")

def build_violation_sink(config):
    url = config.get('VIOLATIONS_API_URL')
    if not url:
        return UnconfiguredViolationSink()
    return HttpViolationSink(
        url,
        token=config.get('VIOLATIONS_API_TOKEN'),
        timeout=config.get('VIOLATIONS_API_TIMEOUT', 10)
    )

class ViolationOutbox:
    """Queue and deliver violation events."""

    def __init__(self, sink, max_attempts: int = 5):
        self.sink = sink
        self.max_attempts = max_attempts

    @staticmethod
    def enqueue_late_attendance(record: AttendanceRecord) -> Optional[ViolationEvent]:
        """Queue a late-attendance violation for a committed record.

        Errors are logged and swallowed: the attendance record stays.
        """
        event = ViolationEvent(
            student_id=record.student_id,
            attendance_record_id=record.id,
            kind=LATE_ATTENDANCE,
            minutes_late=record.late_minutes,
            status=ViolationStatus.PENDING
        )
        try:
            db.session.add(event)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.info("Violation already queued for attendance record %s", record.id)
            return None
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Could not queue late violation for attendance record %s", record.id)
            return None

        logger.info("Queued late violation %s for student %s (%s min)",
                    event.id, event.student_id, event.minutes_late)
        return event

    def deliver(self, event: ViolationEvent) -> bool:
        """Attempt one delivery; returns True when delivered."""
        event.attempts += 1
        try:
            self.sink.create_violation(
                event.student_id,
                event.kind,
                event.minutes_late,
                {
                    'attendance_record_id': event.attendance_record_id,
                    'attendance_date': event.attendance_record.attendance_date.isoformat()
                }
            )
        except Exception as e:
            event.last_error = str(e)
            if event.attempts >= self.max_attempts:
                event.status = ViolationStatus.FAILED
            db.session.commit()
            logger.warning("Violation %s delivery failed (attempt %s): %s",
                           event.id, event.attempts, e)
            return False

        event.status = ViolationStatus.DELIVERED
        event.delivered_at = datetime.utcnow()
        event.last_error = None
        db.session.commit()
        AttendanceLedger.mark_violation_created(event.attendance_record_id)
        logger.info("Violation %s delivered", event.id)
        return True

    def dispatch_pending(self, limit: int = 100) -> Dict[str, int]:
        events = (ViolationEvent.query
                  .filter_by(status=ViolationStatus.PENDING)
                  .order_by(ViolationEvent.id)
                  .limit(limit)
                  .all())

        summary = {'delivered': 0, 'failed': 0, 'pending': 0}
        for event in events:
            if self.deliver(event):
                summary['delivered'] += 1
            elif event.status == ViolationStatus.FAILED:
                summary['failed'] += 1
            else:
                summary['pending'] += 1
        return summary

    def dispatch_one(self, event: Optional[ViolationEvent]) -> None:
        """Best-effort immediate delivery right after the attendance write."""
        if event is None:
            return
        try:
            self.deliver(event)
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Inline delivery of violation %s failed", event.id)
