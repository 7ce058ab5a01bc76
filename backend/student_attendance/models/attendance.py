"""Attendance ledger: one record per student per calendar date."""
import enum
from student_attendance import db
from student_attendance.models.base import BaseModel

class AttendanceStatus(enum.Enum):
    PRESENT = 'present'
    LATE = 'late'

class AttendanceSource(enum.Enum):
    SELF_SERVICE = 'self_service'
    QR_CONSOLE = 'qr_console'

class AttendanceRecord(BaseModel):
    """Daily attendance entry with check-in/check-out details."""

    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('student_id', 'attendance_date', name='uq_attendance_student_date'),
        db.CheckConstraint(
            'check_out_time IS NULL OR check_out_time >= check_in_time',
            name='ck_attendance_checkout_after_checkin'
        ),
    )

    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    attendance_date = db.Column(db.Date, nullable=False, index=True)

    # Check-in
    check_in_time = db.Column(db.DateTime, nullable=True)
    check_in_latitude = db.Column(db.Float, nullable=True)
    check_in_longitude = db.Column(db.Float, nullable=True)
    check_in_location_id = db.Column(db.Integer, db.ForeignKey('attendance_locations.id'), nullable=True)

    # Check-out
    check_out_time = db.Column(db.DateTime, nullable=True)
    check_out_latitude = db.Column(db.Float, nullable=True)
    check_out_longitude = db.Column(db.Float, nullable=True)
    check_out_location_id = db.Column(db.Integer, db.ForeignKey('attendance_locations.id'), nullable=True)

    status = db.Column(db.Enum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    late_minutes = db.Column(db.Integer, nullable=False, default=0)
    violation_created = db.Column(db.Boolean, nullable=False, default=False)

    source = db.Column(db.Enum(AttendanceSource), nullable=False, default=AttendanceSource.SELF_SERVICE)
    recorded_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # Relationships
    student = db.relationship('User', foreign_keys=[student_id], backref=db.backref('attendance_records', lazy='dynamic'))
    recorded_by = db.relationship('User', foreign_keys=[recorded_by_id])
    check_in_location = db.relationship('AttendanceLocation', foreign_keys=[check_in_location_id])
    check_out_location = db.relationship('AttendanceLocation', foreign_keys=[check_out_location_id])

    def to_dict(self, exclude: list = None) -> dict:
        result = super().to_dict(exclude=exclude)
        result['check_in_location_name'] = self.check_in_location.name if self.check_in_location else None
        result['check_out_location_name'] = self.check_out_location.name if self.check_out_location else None
        return result

    def __repr__(self):
        return f'<AttendanceRecord {self.student_id}@{self.attendance_date}>'
