"""Attendance reports - Staff Only."""
from flask import Blueprint, request, send_file
from flask_jwt_extended import jwt_required
from student_attendance.services.report_service import ReportService
from student_attendance.utils.clock import get_clock
from student_attendance.utils.decorators import staff_required
from student_attendance.utils.helpers import success_response
from student_attendance.utils.validators import ValidationError, Validator

reports_bp = Blueprint('reports', __name__)

MIMETYPES = {
    'csv': 'text/csv',
    'xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
}

def requested_date():
    value = request.args.get('date')
    return Validator.parse_date(value, 'date') if value else get_clock().now().date()

@reports_bp.route('/daily', methods=['GET'])
@jwt_required()
@staff_required
def daily_report():
    """Ledger for one day as JSON, or as a file with ``?format=csv|xlsx``."""
    attendance_date = requested_date()
    fmt = request.args.get('format')

    if fmt is None:
        rows = ReportService.daily_rows(attendance_date)
        return success_response(data={
            'date': attendance_date.isoformat(),
            'records': rows,
            'summary': ReportService.daily_summary(rows)
        })

    if fmt not in MIMETYPES:
        raise ValidationError("format must be csv or xlsx")

    return send_file(
        ReportService.export_daily(attendance_date, fmt),
        mimetype=MIMETYPES[fmt],
        as_attachment=True,
        download_name=f"attendance_{attendance_date.isoformat()}.{fmt}"
    )
