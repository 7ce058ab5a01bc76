"""Daily ledger export."""
import io
from datetime import date
from typing import Dict, List

import pandas as pd

from student_attendance.models.attendance import AttendanceStatus
from student_attendance.services.ledger_service import AttendanceLedger

COLUMNS = [
    'attendance_date', 'nis', 'student_name', 'class_name', 'source', 'status',
    'late_minutes', 'check_in_time', 'check_in_location', 'check_out_time',
    'check_out_location', 'violation_created'
]

class ReportService:
    """Builds the per-day attendance sheet."""

    @staticmethod
    def daily_rows(attendance_date: date) -> List[Dict]:
        rows = []
        for record in AttendanceLedger.records_for_day(attendance_date):
            student = record.student
            rows.append({
                'attendance_date': record.attendance_date.isoformat(),
                'nis': student.nis,
                'student_name': student.full_name,
                'class_name': student.school_class.name if student.school_class else None,
                'source': record.source.value,
                'status': record.status.value,
                'late_minutes': record.late_minutes,
                'check_in_time': record.check_in_time.strftime('%H:%M:%S') if record.check_in_time else None,
                'check_in_location': record.check_in_location.name if record.check_in_location else None,
                'check_out_time': record.check_out_time.strftime('%H:%M:%S') if record.check_out_time else None,
                'check_out_location': record.check_out_location.name if record.check_out_location else None,
                'violation_created': record.violation_created
            })
        return rows

    @staticmethod
    def daily_summary(rows: List[Dict]) -> Dict:
        late = len([r for r in rows if r['status'] == AttendanceStatus.LATE.value])
        return {
            'total': len(rows),
            'present': len(rows) - late,
            'late': late,
            'checked_out': len([r for r in rows if r['check_out_time']])
        }

    @staticmethod
    def export_daily(attendance_date: date, fmt: str = 'csv') -> io.BytesIO:
        """Render the day's ledger as CSV or XLSX."""
        df = pd.DataFrame(ReportService.daily_rows(attendance_date), columns=COLUMNS)
        buffer = io.BytesIO()

        if fmt == 'xlsx':
            summary_df = pd.DataFrame([ReportService.daily_summary(df.to_dict('records'))])
            with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
                df.to_excel(writer, sheet_name='Attendance', index=False)
                summary_df.to_excel(writer, sheet_name='Summary', index=False)
        else:
            buffer.write(df.to_csv(index=False).encode('utf-8'))

        buffer.seek(0)
        return buffer
