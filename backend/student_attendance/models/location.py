"""Geofenced campus locations."""
from student_attendance import db
from student_attendance.models.base import BaseModel

class AttendanceLocation(BaseModel):
    """Circular authorized area: a center point and a radius in meters."""

    __tablename__ = 'attendance_locations'
    __table_args__ = (
        db.CheckConstraint('radius_meters > 0', name='ck_location_radius_positive'),
    )

    name = db.Column(db.String(100), nullable=False)
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    radius_meters = db.Column(db.Float, nullable=False, default=100)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f'<AttendanceLocation {self.name} r={self.radius_meters}m>'
