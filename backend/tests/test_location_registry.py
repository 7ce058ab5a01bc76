"""Tests for the Location Registry."""
import math

import pytest

from student_attendance.models.attendance import AttendanceRecord
from student_attendance.models.location import AttendanceLocation
from student_attendance.services.geo_service import BOUNDARY_TOLERANCE_METERS, EARTH_RADIUS_METERS
from student_attendance.services.location_service import LocationService
from student_attendance.utils.validators import ConflictError, ValidationError
from tests.helpers import MONDAY

def test_boundary_point_matches(campus):
    # 0.0009 degrees of longitude on the equator is about 100 m
    match = LocationService.match_location(0.0, 0.0009)
    assert match is not None
    assert match.location.id == campus.id

def test_point_beyond_radius_does_not_match(campus):
    # about 111 m
    assert LocationService.match_location(0.0, 0.001) is None

def degrees_east(meters):
    """Longitude offset on the equator for a given distance."""
    return math.degrees(meters / EARTH_RADIUS_METERS)

def test_point_one_meter_past_radius_does_not_match(campus):
    assert BOUNDARY_TOLERANCE_METERS < 1
    assert LocationService.match_location(0.0, degrees_east(101)) is None

def test_sub_meter_overshoot_matches(campus):
    assert LocationService.match_location(0.0, degrees_east(100.4)) is not None
    assert LocationService.match_location(0.0, degrees_east(100.4), tolerance_meters=0) is None

def test_match_reports_distance(campus):
    match = LocationService.match_location(0.0, 0.0005)
    assert match.distance_meters == pytest.approx(55.6, abs=0.1)

def test_inactive_locations_are_ignored(campus):
    campus.update(is_active=False)
    assert LocationService.match_location(0.0, 0.0) is None

def test_overlapping_locations_first_listed_wins(campus):
    AttendanceLocation(name='Library', latitude=0.0, longitude=0.0001, radius_meters=500).save()
    match = LocationService.match_location(0.0, 0.0001)
    assert match.location.name == 'Main Campus'

def test_list_active_excludes_inactive(campus):
    other = AttendanceLocation(name='Field', latitude=1.0, longitude=1.0, radius_meters=50).save()
    LocationService.toggle_location(other.id)
    assert [loc.id for loc in LocationService.list_active()] == [campus.id]

def test_create_location_validates_radius(app):
    with pytest.raises(ValidationError):
        LocationService.create_location({'name': 'Gate', 'latitude': 0, 'longitude': 0, 'radius_meters': 0})

def test_create_location_validates_coordinates(app):
    with pytest.raises(ValidationError):
        LocationService.create_location({'name': 'Gate', 'latitude': 95, 'longitude': 0, 'radius_meters': 50})

def test_update_requires_both_coordinates(campus):
    with pytest.raises(ValidationError):
        LocationService.update_location(campus.id, {'latitude': 1.0})

def test_update_location(campus):
    location = LocationService.update_location(campus.id, {'name': 'North Campus', 'radius_meters': 250})
    assert location.name == 'North Campus'
    assert location.radius_meters == 250

def test_delete_unreferenced_location(campus):
    LocationService.delete_location(campus.id)
    assert AttendanceLocation.query.count() == 0

def test_referenced_location_cannot_be_deleted(campus, student):
    AttendanceRecord(
        student_id=student.id,
        attendance_date=MONDAY.date(),
        check_in_time=MONDAY.replace(hour=6, minute=40),
        check_in_location_id=campus.id
    ).save()

    with pytest.raises(ConflictError):
        LocationService.delete_location(campus.id)
    assert AttendanceLocation.query.count() == 1
