"""Attendance Schedule administration - Admin Only."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from student_attendance.services.schedule_service import ScheduleService
from student_attendance.utils.decorators import admin_required
from student_attendance.utils.helpers import success_response
from student_attendance.utils.validators import ValidationError

schedules_bp = Blueprint('attendance_schedules', __name__)

@schedules_bp.route('/', methods=['GET'])
@jwt_required()
@admin_required
def get_schedules():
    """List schedules with optional day/class filters."""
    schedules = ScheduleService.list_schedules(
        day_of_week=request.args.get('day_of_week', type=int),
        class_id=request.args.get('class_id', type=int),
        include_inactive=request.args.get('active', 'false').lower() != 'true'
    )
    return success_response(data=[schedule.to_dict() for schedule in schedules])

@schedules_bp.route('/conflicts', methods=['GET'])
@jwt_required()
@admin_required
def check_schedule_conflicts():
    """Active schedules competing for the same class and weekday."""
    conflicts = ScheduleService.find_conflicts()
    return success_response(
        data={
            'conflicts': conflicts,
            'total_conflicts': len(conflicts)
        },
        message="No conflicts found" if not conflicts else f"Found {len(conflicts)} conflicts"
    )

@schedules_bp.route('/<int:schedule_id>', methods=['GET'])
@jwt_required()
@admin_required
def get_schedule(schedule_id):
    return success_response(data=ScheduleService.get_schedule(schedule_id).to_dict())

@schedules_bp.route('/', methods=['POST'])
@jwt_required()
@admin_required
def create_schedule():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be JSON")

    schedule = ScheduleService.create_schedule(data)
    return success_response(data=schedule.to_dict(), message="Schedule created successfully"), 201

@schedules_bp.route('/<int:schedule_id>', methods=['PUT'])
@jwt_required()
@admin_required
def update_schedule(schedule_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be JSON")

    schedule = ScheduleService.update_schedule(schedule_id, data)
    return success_response(data=schedule.to_dict(), message="Schedule updated successfully")

@schedules_bp.route('/<int:schedule_id>/toggle', methods=['POST'])
@jwt_required()
@admin_required
def toggle_schedule(schedule_id):
    schedule = ScheduleService.toggle_schedule(schedule_id)
    state = 'activated' if schedule.is_active else 'deactivated'
    return success_response(data=schedule.to_dict(), message=f"Schedule {state}")

@schedules_bp.route('/<int:schedule_id>', methods=['DELETE'])
@jwt_required()
@admin_required
def delete_schedule(schedule_id):
    ScheduleService.delete_schedule(schedule_id)
    return success_response(message="Schedule deleted successfully")
