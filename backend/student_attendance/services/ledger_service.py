"""Attendance Ledger: one row per (student, attendance_date).

Writes are single statements guarded by the unique key or by a conditional
UPDATE, so two racing requests can never both succeed.
"""
import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from student_attendance import db
from student_attendance.models.attendance import AttendanceRecord, AttendanceSource, AttendanceStatus

logger = logging.getLogger(__name__)

class DuplicateAttendance(Exception):
    """The student already has a ledger entry for that date."""

class AttendanceLedger:
    """Persistence contract shared by self-service and the QR console."""

    @staticmethod
    def find_for_day(student_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        return AttendanceRecord.query.filter_by(
            student_id=student_id,
            attendance_date=attendance_date
        ).first()

    @staticmethod
    def insert_check_in(
        student_id: int,
        check_in_time: datetime,
        status: AttendanceStatus = AttendanceStatus.PRESENT,
        late_minutes: int = 0,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        location_id: Optional[int] = None,
        source: AttendanceSource = AttendanceSource.SELF_SERVICE,
        recorded_by_id: Optional[int] = None,
        notes: Optional[str] = None
    ) -> AttendanceRecord:
        """Insert the day's record; raise DuplicateAttendance if one exists."""
        record = AttendanceRecord(
            student_id=student_id,
            attendance_date=check_in_time.date(),
            check_in_time=check_in_time,
            check_in_latitude=latitude,
            check_in_longitude=longitude,
            check_in_location_id=location_id,
            status=status,
            late_minutes=late_minutes,
            violation_created=False,
            source=source,
            recorded_by_id=recorded_by_id,
            notes=notes
        )

        try:
            db.session.add(record)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.info("Rejected duplicate check-in for student %s on %s",
                        student_id, check_in_time.date())
            raise DuplicateAttendance(student_id)

        return record

    @staticmethod
    def update_check_out(
        student_id: int,
        check_out_time: datetime,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        location_id: Optional[int] = None
    ) -> Optional[AttendanceRecord]:
        """Set check-out fields on the day's checked-in, not yet checked-out record.

        Returns None when no row qualified (none exists, not checked in, or
        already checked out).
        """
        updated = (AttendanceRecord.query
                   .filter(AttendanceRecord.student_id == student_id,
                           AttendanceRecord.attendance_date == check_out_time.date(),
                           AttendanceRecord.check_in_time.isnot(None),
                           AttendanceRecord.check_in_time <= check_out_time,
                           AttendanceRecord.check_out_time.is_(None))
                   .update({
                       AttendanceRecord.check_out_time: check_out_time,
                       AttendanceRecord.check_out_latitude: latitude,
                       AttendanceRecord.check_out_longitude: longitude,
                       AttendanceRecord.check_out_location_id: location_id,
                       AttendanceRecord.updated_at: datetime.utcnow()
                   }, synchronize_session=False))
        db.session.commit()

        if updated != 1:
            return None

        record = AttendanceLedger.find_for_day(student_id, check_out_time.date())
        db.session.refresh(record)
        return record

    @staticmethod
    def mark_violation_created(record_id: int) -> bool:
        """Flip violation_created once; returns False if it was already set."""
        updated = (AttendanceRecord.query
                   .filter(AttendanceRecord.id == record_id,
                           AttendanceRecord.violation_created.is_(False))
                   .update({AttendanceRecord.violation_created: True},
                           synchronize_session=False))
        db.session.commit()
        return updated == 1

    @staticmethod
    def records_for_day(attendance_date: date, source: Optional[AttendanceSource] = None) -> List[AttendanceRecord]:
        query = AttendanceRecord.query.filter_by(attendance_date=attendance_date)
        if source is not None:
            query = query.filter_by(source=source)
        return query.order_by(AttendanceRecord.check_in_time.desc()).all()

    @staticmethod
    def history_for_student(student_id: int, limit: int = 30) -> List[AttendanceRecord]:
        return (AttendanceRecord.query
                .filter_by(student_id=student_id)
                .order_by(AttendanceRecord.attendance_date.desc())
                .limit(limit)
                .all())
