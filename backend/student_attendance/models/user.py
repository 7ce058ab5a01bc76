"""User and class models for authentication and class assignment."""
from enum import Enum
from werkzeug.security import generate_password_hash, check_password_hash
from student_attendance import db
from student_attendance.models.base import BaseModel

class UserRole(Enum):
    """User roles enumeration."""
    STUDENT = 'student'
    STAFF = 'staff'
    ADMIN = 'admin'

class SchoolClass(BaseModel):
    """A class (homeroom) students are enrolled in."""

    __tablename__ = 'school_classes'

    name = db.Column(db.String(50), nullable=False, unique=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    students = db.relationship('User', backref='school_class', lazy='dynamic')

    def __repr__(self) -> str:
        return f'<SchoolClass {self.name}>'

class User(BaseModel):
    """User model for all system users."""

    __tablename__ = 'users'

    # Basic Information
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255), nullable=False)

    # Student number printed on the QR card
    nis = db.Column(db.String(50), unique=True, nullable=True, index=True)

    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.STUDENT)
    class_id = db.Column(db.Integer, db.ForeignKey('school_classes.id'), nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_login = db.Column(db.DateTime, nullable=True)

    def set_password(self, password: str) -> None:
        """Set user password with hashing."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Check if provided password matches user's password."""
        return check_password_hash(self.password_hash, password)

    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    def has_active_class(self) -> bool:
        return self.school_class is not None and self.school_class.is_active

    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary excluding sensitive data."""
        exclude = (exclude or []) + ['password_hash']
        result = super().to_dict(exclude=exclude)
        result['class_name'] = self.school_class.name if self.school_class else None
        return result

    def __repr__(self) -> str:
        return f'<User {self.email}>'
