"""Location Registry: authorized geofenced campus locations."""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from student_attendance import db
from student_attendance.models.attendance import AttendanceRecord
from student_attendance.models.location import AttendanceLocation
from student_attendance.services.geo_service import BOUNDARY_TOLERANCE_METERS, GeoService
from student_attendance.utils.validators import ConflictError, NotFoundError, ValidationError, Validator

logger = logging.getLogger(__name__)

@dataclass
class LocationMatch:
    location: AttendanceLocation
    distance_meters: float

class LocationService:
    """Lookup and administration of attendance locations."""

    @staticmethod
    def list_active() -> List[AttendanceLocation]:
        return (AttendanceLocation.query
                .filter_by(is_active=True)
                .order_by(AttendanceLocation.id)
                .all())

    @staticmethod
    def list_locations(include_inactive: bool = True) -> List[AttendanceLocation]:
        query = AttendanceLocation.query
        if not include_inactive:
            query = query.filter_by(is_active=True)
        return query.order_by(AttendanceLocation.name, AttendanceLocation.id).all()

    @staticmethod
    def match_location(
        latitude: float,
        longitude: float,
        tolerance_meters: float = BOUNDARY_TOLERANCE_METERS
    ) -> Optional[LocationMatch]:
        """First active location (in listing order) whose geofence contains the point.

        The radius is inclusive: a point on the boundary, within
        ``tolerance_meters``, matches.
        """
        for location in LocationService.list_active():
            distance = GeoService.calculate_distance(
                latitude, longitude,
                location.latitude, location.longitude
            )
            if distance <= location.radius_meters + tolerance_meters:
                return LocationMatch(location=location, distance_meters=distance)
        return None

    @staticmethod
    def get_location(location_id: int) -> AttendanceLocation:
        location = db.session.get(AttendanceLocation, location_id)
        if not location:
            raise NotFoundError(f"Location {location_id} not found")
        return location

    @staticmethod
    def _clean(data: Dict, partial: bool = False) -> Dict:
        """Validate location fields, returning only the recognised ones."""
        if not partial:
            Validator.validate_required_fields(data, ['name', 'latitude', 'longitude', 'radius_meters'])

        cleaned = {}
        if 'name' in data:
            cleaned['name'] = Validator.validate_name(data['name'])

        if 'latitude' in data or 'longitude' in data:
            if 'latitude' not in data or 'longitude' not in data:
                raise ValidationError("latitude and longitude must be updated together")
            cleaned['latitude'], cleaned['longitude'] = GeoService.validate_coordinates(
                data['latitude'], data['longitude']
            )

        if 'radius_meters' in data:
            radius = Validator.parse_float(data['radius_meters'], 'radius_meters')
            if radius <= 0:
                raise ValidationError("radius_meters must be greater than 0")
            cleaned['radius_meters'] = radius

        if 'is_active' in data:
            cleaned['is_active'] = Validator.parse_bool(data['is_active'], 'is_active')

        return cleaned

    @staticmethod
    def create_location(data: Dict) -> AttendanceLocation:
        location = AttendanceLocation(**LocationService._clean(data))
        db.session.add(location)
        db.session.commit()
        logger.info("Created attendance location %s (%s)", location.id, location.name)
        return location

    @staticmethod
    def update_location(location_id: int, data: Dict) -> AttendanceLocation:
        location = LocationService.get_location(location_id)
        return location.update(**LocationService._clean(data, partial=True))

    @staticmethod
    def toggle_location(location_id: int) -> AttendanceLocation:
        location = LocationService.get_location(location_id)
        location.update(is_active=not location.is_active)
        logger.info("Location %s is now %s", location.id, 'active' if location.is_active else 'inactive')
        return location

    @staticmethod
    def delete_location(location_id: int) -> None:
        """Hard delete, only for locations no ledger entry points at."""
        location = LocationService.get_location(location_id)

        referenced = AttendanceRecord.query.filter(
            db.or_(
                AttendanceRecord.check_in_location_id == location.id,
                AttendanceRecord.check_out_location_id == location.id
            )
        ).first()
        if referenced:
            raise ConflictError("Location is referenced by attendance records; deactivate it instead")

        db.session.delete(location)
        db.session.commit()
        logger.info("Deleted attendance location %s", location_id)
