"""Operator QR console endpoints - Staff Only."""
import logging
from flask import Blueprint, current_app, g, request
from flask_jwt_extended import jwt_required
from student_attendance import db, limiter
from student_attendance.models.user import User, UserRole
from student_attendance.services.qr_console_service import QRConsoleService, list_students, parse_cutoff
from student_attendance.services.violation_service import ViolationOutbox
from student_attendance.utils.clock import get_clock
from student_attendance.utils.decorators import staff_required
from student_attendance.utils.helpers import success_response
from student_attendance.utils.validators import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

qr_console_bp = Blueprint('qr_console', __name__)

def build_console() -> QRConsoleService:
    config = current_app.config
    return QRConsoleService(
        clock=get_clock(),
        cutoff=parse_cutoff(config['QR_ATTENDANCE_CUTOFF']),
        outbox=ViolationOutbox(current_app.extensions['violation_sink'], config['VIOLATION_MAX_ATTEMPTS']),
        dispatch_on_write=config['VIOLATION_DISPATCH_ON_WRITE']
    )

@qr_console_bp.route('/scan', methods=['POST'])
@jwt_required()
@staff_required
@limiter.limit("120 per minute")
def scan():
    """Record attendance for the scanned student card."""
    data = request.get_json(silent=True) or {}
    if not data.get('code'):
        raise ValidationError("Missing required field: code")

    record = build_console().scan(data['code'], g.current_user)
    description = QRConsoleService.describe(record)

    message = f"Attendance recorded for {description['student_name']} ({description['nis']})"
    if description['is_late']:
        message += f" - late by {record.late_minutes} minutes"
    return success_response(data=description, message=message), 201

@qr_console_bp.route('/today', methods=['GET'])
@jwt_required()
@staff_required
def today():
    """Today's QR console records with counts."""
    return success_response(data=build_console().today_records())

@qr_console_bp.route('/students', methods=['GET'])
@jwt_required()
@staff_required
def students():
    """Students available for card printing."""
    students = list_students(request.args.get('class_id', type=int))
    return success_response(data=[
        {'id': s.id, 'full_name': s.full_name, 'nis': s.nis,
         'class_name': s.school_class.name if s.school_class else None}
        for s in students
    ])

@qr_console_bp.route('/students/<int:student_id>/card', methods=['GET'])
@jwt_required()
@staff_required
def student_card(student_id):
    """QR card image for a student."""
    student = db.session.get(User, student_id)
    if not student or student.role != UserRole.STUDENT:
        raise NotFoundError(f"Student {student_id} not found")

    return success_response(data={
        'student_id': student.id,
        'full_name': student.full_name,
        'nis': student.nis,
        'qr_code': QRConsoleService.generate_student_card(student)
    })
