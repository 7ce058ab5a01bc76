"""Device position acquisition.

The browser/app obtains the fix with ``getCurrentPosition`` using the
timeout and maximum-age options published by ``/today`` and posts the result
(or the device error) with the check-in/check-out request.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

from student_attendance.services.geo_service import GeoService
from student_attendance.utils.validators import ValidationError

# Device and server clocks may disagree slightly
CLOCK_SKEW_ALLOWANCE = timedelta(seconds=5)

DEVICE_ERRORS = {
    'permission_denied': 'Location access was denied. Allow location access and try again.',
    'unavailable': 'Location information is unavailable.',
    'timeout': 'Location request timed out.',
}

@dataclass
class Position:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    captured_at: Optional[datetime] = None

class LocationAcquisitionError(Exception):
    """The device could not provide a usable position."""

    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind

class RequestPositionProvider:
    """Reads the position the client reported in the request body."""

    def __init__(self, payload: Optional[Dict]):
        self.payload = payload or {}

    def get_current_position(self, timeout_ms: int, max_age_ms: int, now: datetime) -> Position:
        """Return the reported fix or raise LocationAcquisitionError.

        ``timeout_ms`` is applied on the device, which reports ``timeout``
        when it expires; ``max_age_ms`` is re-checked here against
        ``captured_at``.
        """
        error = self.payload.get('location_error')
        if error:
            kind = error if error in DEVICE_ERRORS else 'unavailable'
            raise LocationAcquisitionError(kind, DEVICE_ERRORS[kind])

        if self.payload.get('latitude') is None or self.payload.get('longitude') is None:
            raise LocationAcquisitionError('unavailable', DEVICE_ERRORS['unavailable'])

        try:
            latitude, longitude = GeoService.validate_coordinates(
                self.payload['latitude'], self.payload['longitude']
            )
        except ValidationError as e:
            raise LocationAcquisitionError('invalid', str(e))

        captured_at = None
        if self.payload.get('captured_at'):
            try:
                captured_at = datetime.fromisoformat(str(self.payload['captured_at']))
            except ValueError:
                raise LocationAcquisitionError('invalid', 'captured_at must be an ISO timestamp')
            if captured_at.tzinfo is not None:
                raise LocationAcquisitionError(
                    'invalid', 'captured_at must be local wall-clock time without offset'
                )
            if captured_at - now > CLOCK_SKEW_ALLOWANCE:
                raise LocationAcquisitionError(
                    'invalid', 'captured_at lies in the future. Check the device clock and try again.'
                )
            if now - captured_at > timedelta(milliseconds=max_age_ms):
                raise LocationAcquisitionError(
                    'stale', 'Location fix is too old. Refresh your location and try again.'
                )

        accuracy = self.payload.get('accuracy')
        return Position(
            latitude=latitude,
            longitude=longitude,
            accuracy=float(accuracy) if isinstance(accuracy, (int, float)) else None,
            captured_at=captured_at
        )
