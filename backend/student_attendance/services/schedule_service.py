"""Schedule Registry: check-in/check-out windows per weekday and class."""
import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional

from student_attendance import db
from student_attendance.models.schedule import AttendanceSchedule, WeekDay
from student_attendance.models.user import SchoolClass
from student_attendance.utils.validators import NotFoundError, ValidationError, Validator

logger = logging.getLogger(__name__)

TIME_FIELDS = ('check_in_start', 'check_in_end', 'check_out_start', 'check_out_end')

class ScheduleService:
    """Resolution, time-window predicates and administration of schedules."""

    @staticmethod
    def get_schedule_for(class_id: Optional[int], day_of_week: int) -> Optional[AttendanceSchedule]:
        """Active schedule for a class on an ISO weekday (1=Monday … 7=Sunday).

        A schedule bound to the class wins over one that applies to all
        classes; among equals the oldest (lowest id) wins.
        """
        candidates = (AttendanceSchedule.query
                      .filter_by(day_of_week=day_of_week, is_active=True)
                      .filter(db.or_(AttendanceSchedule.class_id.is_(None),
                                     AttendanceSchedule.class_id == class_id))
                      .order_by(AttendanceSchedule.id)
                      .all())

        specific = [s for s in candidates if class_id is not None and s.class_id == class_id]
        group = specific or [s for s in candidates if s.class_id is None]
        if not group:
            return None

        if len(group) > 1:
            logger.warning(
                "Ambiguous attendance schedules %s for class=%s day=%s; using %s",
                [s.id for s in group], class_id, day_of_week, group[0].id
            )
        return group[0]

    @staticmethod
    def within_check_in(schedule: AttendanceSchedule, now_time: time) -> bool:
        return schedule.check_in_start <= now_time <= schedule.check_in_end

    @staticmethod
    def within_check_out(schedule: AttendanceSchedule, now_time: time) -> bool:
        return schedule.check_out_start <= now_time <= schedule.check_out_end

    @staticmethod
    def late_cutoff(schedule: AttendanceSchedule) -> time:
        """End of the check-in window plus the grace period."""
        end = datetime.combine(date.min, schedule.check_in_end)
        cutoff = end + timedelta(minutes=schedule.late_threshold_minutes)
        if cutoff.date() != date.min:
            return time.max
        return cutoff.time()

    @staticmethod
    def late_minutes(schedule: AttendanceSchedule, now_time: time) -> int:
        """Whole minutes past the late cutoff, 0 when on time."""
        cutoff = ScheduleService.late_cutoff(schedule)
        if now_time <= cutoff:
            return 0
        delta = datetime.combine(date.min, now_time) - datetime.combine(date.min, cutoff)
        return int(delta.total_seconds() // 60)

    # ------------------------------------------------------------------ admin

    @staticmethod
    def list_schedules(day_of_week: Optional[int] = None,
                       class_id: Optional[int] = None,
                       include_inactive: bool = True) -> List[AttendanceSchedule]:
        query = AttendanceSchedule.query
        if day_of_week is not None:
            query = query.filter_by(day_of_week=day_of_week)
        if class_id is not None:
            query = query.filter_by(class_id=class_id)
        if not include_inactive:
            query = query.filter_by(is_active=True)
        return query.order_by(AttendanceSchedule.day_of_week, AttendanceSchedule.id).all()

    @staticmethod
    def get_schedule(schedule_id: int) -> AttendanceSchedule:
        schedule = db.session.get(AttendanceSchedule, schedule_id)
        if not schedule:
            raise NotFoundError(f"Schedule {schedule_id} not found")
        return schedule

    @staticmethod
    def _clean(data: Dict, current: Optional[AttendanceSchedule] = None) -> Dict:
        if current is None:
            Validator.validate_required_fields(data, ['name', 'day_of_week', *TIME_FIELDS])

        cleaned = {}
        if 'name' in data:
            cleaned['name'] = Validator.validate_name(data['name'])

        if 'day_of_week' in data:
            day = Validator.parse_int(data['day_of_week'], 'day_of_week')
            if day not in {d.value for d in WeekDay}:
                raise ValidationError("day_of_week must be between 1 (Monday) and 7 (Sunday)")
            cleaned['day_of_week'] = day

        if 'class_id' in data:
            class_id = data['class_id']
            if class_id in (None, ''):
                cleaned['class_id'] = None
            else:
                class_id = Validator.parse_int(class_id, 'class_id')
                if not db.session.get(SchoolClass, class_id):
                    raise ValidationError(f"Class {class_id} does not exist")
                cleaned['class_id'] = class_id

        for field in TIME_FIELDS:
            if field in data:
                cleaned[field] = Validator.parse_time(data[field], field)

        if 'late_threshold_minutes' in data:
            threshold = Validator.parse_int(data['late_threshold_minutes'], 'late_threshold_minutes')
            if threshold < 0:
                raise ValidationError("late_threshold_minutes cannot be negative")
            cleaned['late_threshold_minutes'] = threshold

        if 'is_active' in data:
            cleaned['is_active'] = Validator.parse_bool(data['is_active'], 'is_active')

        # Window invariants hold on the merged result
        def merged(field):
            return cleaned.get(field, getattr(current, field, None))

        if merged('check_in_start') > merged('check_in_end'):
            raise ValidationError("check_in_start must not be after check_in_end")
        if merged('check_out_start') > merged('check_out_end'):
            raise ValidationError("check_out_start must not be after check_out_end")

        return cleaned

    @staticmethod
    def create_schedule(data: Dict) -> AttendanceSchedule:
        schedule = AttendanceSchedule(**ScheduleService._clean(data))
        db.session.add(schedule)
        db.session.commit()
        logger.info("Created attendance schedule %s for day %s", schedule.id, schedule.day_of_week)
        return schedule

    @staticmethod
    def update_schedule(schedule_id: int, data: Dict) -> AttendanceSchedule:
        schedule = ScheduleService.get_schedule(schedule_id)
        return schedule.update(**ScheduleService._clean(data, current=schedule))

    @staticmethod
    def toggle_schedule(schedule_id: int) -> AttendanceSchedule:
        schedule = ScheduleService.get_schedule(schedule_id)
        return schedule.update(is_active=not schedule.is_active)

    @staticmethod
    def delete_schedule(schedule_id: int) -> None:
        schedule = ScheduleService.get_schedule(schedule_id)
        db.session.delete(schedule)
        db.session.commit()
        logger.info("Deleted attendance schedule %s", schedule_id)

    @staticmethod
    def find_conflicts() -> List[Dict]:
        """Active schedules sharing the same (class, weekday) pair."""
        rows = (db.session.query(
                    AttendanceSchedule.class_id,
                    AttendanceSchedule.day_of_week,
                    db.func.count(AttendanceSchedule.id).label('conflict_count'))
                .filter(AttendanceSchedule.is_active.is_(True))
                .group_by(AttendanceSchedule.class_id, AttendanceSchedule.day_of_week)
                .having(db.func.count(AttendanceSchedule.id) > 1)
                .all())

        conflicts = []
        for row in rows:
            schedules = ScheduleService.list_schedules(
                day_of_week=row.day_of_week, include_inactive=False
            )
            schedules = [s for s in schedules if s.class_id == row.class_id]
            conflicts.append({
                'type': 'schedule_conflict',
                'class_id': row.class_id,
                'day_of_week': row.day_of_week,
                'day_name': WeekDay(row.day_of_week).name.title(),
                'conflict_count': row.conflict_count,
                'schedule_ids': [s.id for s in schedules],
                'effective_schedule_id': schedules[0].id if schedules else None
            })
        return conflicts
