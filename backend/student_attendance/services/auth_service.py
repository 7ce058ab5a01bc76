"""Authentication service."""
from datetime import datetime
from typing import Optional, Tuple

from flask_jwt_extended import create_access_token, create_refresh_token

from student_attendance import db
from student_attendance.models.user import User
from student_attendance.utils.validators import Validator

class AuthService:
    @staticmethod
    def issue_tokens(user: User) -> dict:
        identity = str(user.id)
        return {
            "access_token": create_access_token(identity=identity),
            "refresh_token": create_refresh_token(identity=identity),
            "user": user.to_dict()
        }

    @staticmethod
    def login(email: str, password: str) -> Tuple[Optional[dict], Optional[str]]:
        """Authenticate user and return tokens."""
        if not email or not password:
            return None, "Email and password are required"

        if not Validator.validate_email(email):
            return None, "Invalid email format"

        user = User.query.filter_by(email=email.lower().strip()).first()

        if not user or not user.check_password(password):
            return None, "Invalid email or password"

        if not user.is_active:
            return None, "Account is deactivated"

        user.last_login = datetime.utcnow()
        db.session.commit()

        return AuthService.issue_tokens(user), None
