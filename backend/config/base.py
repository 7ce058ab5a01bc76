"""Settings shared by every environment."""
import os
from datetime import timedelta

class BaseConfig:
    """Base configuration."""

    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # JWT Configuration
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'jwt-secret-key-change-in-production')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=2)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=7)
    JWT_ALGORITHM = 'HS256'

    # CORS
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]

    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.getenv('REDIS_URL') or 'memory://'
    RATELIMIT_DEFAULT = "200 per day, 50 per hour"

    # Redis backs the in-flight submission guard when set
    REDIS_URL = os.getenv('REDIS_URL')

    # Attendance
    ATTENDANCE_TIMEZONE = os.getenv('ATTENDANCE_TIMEZONE', 'Asia/Jakarta')
    GEOLOCATION_TIMEOUT_MS = 10000
    GEOLOCATION_MAX_AGE_MS = 60000
    SUBMISSION_LOCK_SECONDS = 30
    QR_ATTENDANCE_CUTOFF = os.getenv('QR_ATTENDANCE_CUTOFF', '07:00')

    # Violations side-channel
    VIOLATIONS_API_URL = os.getenv('VIOLATIONS_API_URL')
    VIOLATIONS_API_TOKEN = os.getenv('VIOLATIONS_API_TOKEN')
    VIOLATIONS_API_TIMEOUT = 10  # seconds
    VIOLATION_DISPATCH_ON_WRITE = True
    VIOLATION_MAX_ATTEMPTS = 5

    # Pagination
    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
