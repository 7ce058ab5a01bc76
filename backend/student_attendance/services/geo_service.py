"""Great-circle distance and coordinate validation."""
import math
from typing import Tuple

from student_attendance.utils.validators import ValidationError, Validator

EARTH_RADIUS_METERS = 6371000

# GPS fixes are reported at meter precision; sub-meter overshoot counts as on the boundary
BOUNDARY_TOLERANCE_METERS = 0.5

class GeoService:
    """Service for GPS coordinate math."""

    @staticmethod
    def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
        """Calculate distance between two GPS points in meters (Haversine formula)."""
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        delta_lat = math.radians(lat2 - lat1)
        delta_lng = math.radians(lng2 - lng1)

        a = (math.sin(delta_lat/2) ** 2 +
             math.cos(lat1_rad) * math.cos(lat2_rad) *
             math.sin(delta_lng/2) ** 2)
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1-a))

        return EARTH_RADIUS_METERS * c

    @staticmethod
    def validate_coordinates(latitude, longitude) -> Tuple[float, float]:
        """Parse and range-check a coordinate pair, returning floats."""
        lat = Validator.parse_float(latitude, 'latitude')
        lng = Validator.parse_float(longitude, 'longitude')

        if not -90 <= lat <= 90:
            raise ValidationError("latitude must be between -90 and 90")
        if not -180 <= lng <= 180:
            raise ValidationError("longitude must be between -180 and 180")

        return lat, lng
