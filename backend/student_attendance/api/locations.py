"""Attendance Location administration - Admin Only."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from student_attendance.services.location_service import LocationService
from student_attendance.utils.decorators import admin_required
from student_attendance.utils.helpers import success_response
from student_attendance.utils.validators import ValidationError

locations_bp = Blueprint('attendance_locations', __name__)

@locations_bp.route('/', methods=['GET'])
@jwt_required()
@admin_required
def get_locations():
    """List locations; ``?active=true`` limits to active ones."""
    active_only = request.args.get('active', 'false').lower() == 'true'
    locations = LocationService.list_locations(include_inactive=not active_only)
    return success_response(data=[location.to_dict() for location in locations])

@locations_bp.route('/<int:location_id>', methods=['GET'])
@jwt_required()
@admin_required
def get_location(location_id):
    return success_response(data=LocationService.get_location(location_id).to_dict())

@locations_bp.route('/', methods=['POST'])
@jwt_required()
@admin_required
def create_location():
    """Create a geofenced location."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be JSON")

    location = LocationService.create_location(data)
    return success_response(data=location.to_dict(), message="Location created successfully"), 201

@locations_bp.route('/<int:location_id>', methods=['PUT'])
@jwt_required()
@admin_required
def update_location(location_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be JSON")

    location = LocationService.update_location(location_id, data)
    return success_response(data=location.to_dict(), message="Location updated successfully")

@locations_bp.route('/<int:location_id>/toggle', methods=['POST'])
@jwt_required()
@admin_required
def toggle_location(location_id):
    location = LocationService.toggle_location(location_id)
    state = 'activated' if location.is_active else 'deactivated'
    return success_response(data=location.to_dict(), message=f"Location {state}")

@locations_bp.route('/<int:location_id>', methods=['DELETE'])
@jwt_required()
@admin_required
def delete_location(location_id):
    """Delete an unreferenced location."""
    LocationService.delete_location(location_id)
    return success_response(message="Location deleted successfully")
