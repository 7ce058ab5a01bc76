"""Custom decorators for authorization."""
from functools import wraps
from flask import g
from flask_jwt_extended import get_jwt_identity
from student_attendance import db
from student_attendance.models.user import User, UserRole
from student_attendance.utils.helpers import error_response

def get_current_user():
    """Load the user behind the current JWT."""
    identity = get_jwt_identity()
    if identity is None:
        return None
    return db.session.get(User, int(identity))

def roles_required(*roles):
    """Require the current user to hold one of the given roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = get_current_user()

            if not user or not user.is_active:
                return error_response("User not found", 404)

            if user.role not in roles:
                return error_response("Access denied for this role", 403)

            g.current_user = user
            return f(*args, **kwargs)
        return decorated_function
    return decorator

admin_required = roles_required(UserRole.ADMIN)
staff_required = roles_required(UserRole.STAFF, UserRole.ADMIN)
student_required = roles_required(UserRole.STUDENT)
