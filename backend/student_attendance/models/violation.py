"""Outbox of violations waiting to be delivered to the Violations service."""
import enum
from student_attendance import db
from student_attendance.models.base import BaseModel

class ViolationStatus(enum.Enum):
    PENDING = 'pending'
    DELIVERED = 'delivered'
    FAILED = 'failed'

class ViolationEvent(BaseModel):
    """One violation to report, e.g. a late arrival."""

    __tablename__ = 'violation_outbox'
    __table_args__ = (
        db.UniqueConstraint('attendance_record_id', 'kind', name='uq_violation_record_kind'),
    )

    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    attendance_record_id = db.Column(db.Integer, db.ForeignKey('attendance_records.id'), nullable=False)
    kind = db.Column(db.String(50), nullable=False, default='late_attendance')
    minutes_late = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.Enum(ViolationStatus), nullable=False, default=ViolationStatus.PENDING, index=True)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    last_error = db.Column(db.Text, nullable=True)
    delivered_at = db.Column(db.DateTime, nullable=True)

    attendance_record = db.relationship('AttendanceRecord', backref=db.backref('violation_events', lazy='dynamic'))

    def __repr__(self) -> str:
        return f'<ViolationEvent {self.kind} student={self.student_id} {self.status.value}>'
