"""Validation utilities and domain errors."""
import math
import re
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

class AttendanceError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code

class ValidationError(AttendanceError):
    """Invalid input."""
    status_code = 400

class NotFoundError(AttendanceError):
    """Referenced entity does not exist."""
    status_code = 404

class ConflictError(AttendanceError):
    """Request conflicts with stored state."""
    status_code = 409

class Validator:
    """Validation helper class."""

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        if not email:
            return False
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return bool(re.match(pattern, email))

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> None:
        """Raise when any of the required fields is missing or empty."""
        missing = [field for field in required_fields
                   if field not in data or data[field] is None or data[field] == '']
        if missing:
            raise ValidationError(f"Missing required field: {', '.join(missing)}")

    @staticmethod
    def parse_float(value: Any, field: str) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must be a number")
        if math.isnan(number) or math.isinf(number):
            raise ValidationError(f"{field} must be a finite number")
        return number

    @staticmethod
    def parse_int(value: Any, field: str) -> int:
        if isinstance(value, bool):
            raise ValidationError(f"{field} must be an integer")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must be an integer")

    @staticmethod
    def parse_bool(value: Any, field: str) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ('true', '1', 'yes'):
            return True
        if isinstance(value, str) and value.lower() in ('false', '0', 'no'):
            return False
        raise ValidationError(f"{field} must be a boolean")

    @staticmethod
    def parse_time(value: Any, field: str) -> time:
        """Parse HH:MM or HH:MM:SS into a time of day."""
        if isinstance(value, time):
            return value
        if not isinstance(value, str):
            raise ValidationError(f"{field} must be a time (HH:MM)")
        for fmt in ('%H:%M:%S', '%H:%M'):
            try:
                return datetime.strptime(value.strip(), fmt).time()
            except ValueError:
                continue
        raise ValidationError(f"{field} must be a time (HH:MM)")

    @staticmethod
    def parse_date(value: Any, field: str) -> date:
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value))
        except ValueError:
            raise ValidationError(f"{field} must be a date (YYYY-MM-DD)")

    @staticmethod
    def validate_name(name: Any) -> str:
        """Validate a display name and return it stripped."""
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Name is required")
        if len(name.strip()) > 100:
            raise ValidationError("Name is too long")
        return name.strip()
