"""Student self-service attendance endpoints."""
import logging
from flask import Blueprint, current_app, g, request
from flask_jwt_extended import jwt_required
from student_attendance import db, limiter
from student_attendance.services.ledger_service import AttendanceLedger
from student_attendance.services.position_service import RequestPositionProvider
from student_attendance.services.self_attendance_service import (
    AttendanceResult, ReasonCode, SelfAttendanceService
)
from student_attendance.services.violation_service import ViolationOutbox
from student_attendance.utils.clock import get_clock
from student_attendance.utils.decorators import student_required
from student_attendance.utils.helpers import success_response, error_response

logger = logging.getLogger(__name__)

self_attendance_bp = Blueprint('self_attendance', __name__)

REJECTION_STATUS = {
    ReasonCode.DUPLICATE: 409,
    ReasonCode.NOT_CHECKED_IN: 409,
    ReasonCode.OUTSIDE_AREA: 422,
    ReasonCode.NO_SCHEDULE: 422,
    ReasonCode.OUTSIDE_WINDOW: 422,
    ReasonCode.LOCATION_ERROR: 503,
}

def build_service(payload=None) -> SelfAttendanceService:
    """Wire the engine to this app's collaborators and the request's position."""
    config = current_app.config
    outbox = ViolationOutbox(current_app.extensions['violation_sink'], config['VIOLATION_MAX_ATTEMPTS'])
    return SelfAttendanceService(
        clock=get_clock(),
        position_provider=RequestPositionProvider(payload),
        guard=current_app.extensions['submission_guard'],
        outbox=outbox,
        timeout_ms=config['GEOLOCATION_TIMEOUT_MS'],
        max_age_ms=config['GEOLOCATION_MAX_AGE_MS'],
        dispatch_on_write=config['VIOLATION_DISPATCH_ON_WRITE']
    )

def result_response(result: AttendanceResult, success_status: int = 200):
    if result.accepted:
        return success_response(data=result.to_dict(), message=result.message), success_status
    return error_response(result.message, REJECTION_STATUS[result.reason_code], data=result.to_dict())

@self_attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Self-attendance service is running')

@self_attendance_bp.route('/today', methods=['GET'])
@jwt_required()
@student_required
def today_status():
    """Today's state and which actions are available."""
    try:
        return success_response(data=build_service().get_today_status(g.current_user))
    except Exception as e:
        logger.exception("Error loading today's attendance")
        return error_response(f"Error loading today's attendance: {str(e)}", 500)

@self_attendance_bp.route('/check-in', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit("10 per minute")
def check_in():
    """Check in with the device position."""
    try:
        result = build_service(request.get_json(silent=True)).check_in(g.current_user)
        return result_response(result, 201)
    except Exception as e:
        db.session.rollback()
        logger.exception("Check-in failed for student %s", g.current_user.id)
        return error_response(f"Error during check-in: {str(e)}", 500)

@self_attendance_bp.route('/check-out', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit("10 per minute")
def check_out():
    """Check out with the device position."""
    try:
        result = build_service(request.get_json(silent=True)).check_out(g.current_user)
        return result_response(result)
    except Exception as e:
        db.session.rollback()
        logger.exception("Check-out failed for student %s", g.current_user.id)
        return error_response(f"Error during check-out: {str(e)}", 500)

@self_attendance_bp.route('/history', methods=['GET'])
@jwt_required()
@student_required
def history():
    """The student's most recent attendance records."""
    limit = min(request.args.get('limit', 30, type=int), current_app.config['MAX_PAGE_SIZE'])
    records = AttendanceLedger.history_for_student(g.current_user.id, limit=limit)
    return success_response(data=[record.to_dict() for record in records])
