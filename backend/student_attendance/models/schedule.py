"""Self-attendance schedules: per weekday check-in/check-out windows."""
import enum
from student_attendance import db
from student_attendance.models.base import BaseModel

class WeekDay(enum.IntEnum):
    """ISO days of the week."""
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7

class AttendanceSchedule(BaseModel):
    """Check-in and check-out windows for one weekday.

    ``class_id`` NULL means the schedule applies to every class.
    """

    __tablename__ = 'attendance_schedules'
    __table_args__ = (
        db.CheckConstraint('day_of_week BETWEEN 1 AND 7', name='ck_schedule_day_of_week'),
        db.CheckConstraint('check_in_start <= check_in_end', name='ck_schedule_check_in_window'),
        db.CheckConstraint('check_out_start <= check_out_end', name='ck_schedule_check_out_window'),
        db.CheckConstraint('late_threshold_minutes >= 0', name='ck_schedule_late_threshold'),
        db.Index('ix_schedule_lookup', 'day_of_week', 'class_id', 'is_active'),
    )

    name = db.Column(db.String(100), nullable=False)
    day_of_week = db.Column(db.Integer, nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('school_classes.id'), nullable=True)

    check_in_start = db.Column(db.Time, nullable=False)
    check_in_end = db.Column(db.Time, nullable=False)
    check_out_start = db.Column(db.Time, nullable=False)
    check_out_end = db.Column(db.Time, nullable=False)
    late_threshold_minutes = db.Column(db.Integer, nullable=False, default=15)

    is_active = db.Column(db.Boolean, default=True, nullable=False)

    school_class = db.relationship('SchoolClass')

    def to_dict(self, exclude: list = None) -> dict:
        result = super().to_dict(exclude=exclude)
        result['day_name'] = WeekDay(self.day_of_week).name.title()
        result['class_name'] = self.school_class.name if self.school_class else None
        return result

    def __repr__(self) -> str:
        return f'<AttendanceSchedule {self.name} day={self.day_of_week}>'
