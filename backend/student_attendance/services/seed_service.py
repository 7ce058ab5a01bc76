"""Database seeding service for demo data."""
import logging
from datetime import time

from student_attendance import db
from student_attendance.models.location import AttendanceLocation
from student_attendance.models.schedule import AttendanceSchedule, WeekDay
from student_attendance.models.user import SchoolClass, User, UserRole

logger = logging.getLogger(__name__)

class SeedService:
    """Service to seed database with demo data."""

    @staticmethod
    def seed_all():
        """Seed all demo data."""
        SeedService.seed_locations()
        SeedService.seed_classes_and_users()
        SeedService.seed_schedules()

    @staticmethod
    def seed_locations():
        """Main campus and sports field geofences."""
        if AttendanceLocation.query.count():
            return
        db.session.add_all([
            AttendanceLocation(name='Main Campus', latitude=-6.200000, longitude=106.816666, radius_meters=150),
            AttendanceLocation(name='Sports Field', latitude=-6.201200, longitude=106.817900, radius_meters=80),
        ])
        db.session.commit()
        logger.info("Seeded %s attendance locations", AttendanceLocation.query.count())

    @staticmethod
    def seed_classes_and_users():
        if SchoolClass.query.count():
            return

        classes = [SchoolClass(name=name) for name in ('X-1', 'X-2', 'XI-1')]
        db.session.add_all(classes)
        db.session.flush()

        admin = User(email='admin@school.sch.id', full_name='Administrator', role=UserRole.ADMIN)
        admin.set_password('admin123456')
        staff = User(email='staff@school.sch.id', full_name='Student Affairs Officer', role=UserRole.STAFF)
        staff.set_password('staff123456')
        db.session.add_all([admin, staff])

        for class_idx, school_class in enumerate(classes):
            for seq in range(1, 6):
                nis = f"2024{class_idx + 1}{seq:03d}"
                student = User(
                    email=f"{nis}@student.school.sch.id",
                    full_name=f"Student {school_class.name} #{seq}",
                    role=UserRole.STUDENT,
                    nis=nis,
                    class_id=school_class.id
                )
                student.set_password(nis)
                db.session.add(student)

        db.session.commit()
        logger.info("Seeded %s users", User.query.count())

    @staticmethod
    def seed_schedules():
        """School-wide Monday-Friday schedule."""
        if AttendanceSchedule.query.count():
            return
        for day in (WeekDay.MONDAY, WeekDay.TUESDAY, WeekDay.WEDNESDAY, WeekDay.THURSDAY, WeekDay.FRIDAY):
            db.session.add(AttendanceSchedule(
                name=f'Regular {day.name.title()}',
                day_of_week=day.value,
                check_in_start=time(6, 30),
                check_in_end=time(7, 30),
                check_out_start=time(14, 30),
                check_out_end=time(17, 0),
                late_threshold_minutes=15
            ))
        db.session.commit()
        logger.info("Seeded %s attendance schedules", AttendanceSchedule.query.count())
