"""Student Self-Attendance - Application Factory."""
import logging
import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per day", "50 per hour"]
)

def create_app(config_name: str = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    setup_logging(app)
    setup_collaborators(app)
    register_blueprints(app)
    register_error_handlers(app)
    setup_database(app)
    register_commands(app)

    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'Student Self-Attendance',
            'version': '1.0.0'
        })

    return app

def setup_collaborators(app: Flask) -> None:
    """Attach clock, submission guard and violation sink to the app."""
    from student_attendance.utils.clock import SystemClock
    from student_attendance.services.submission_guard import build_submission_guard
    from student_attendance.services.violation_service import build_violation_sink

    app.extensions['attendance_clock'] = SystemClock(app.config['ATTENDANCE_TIMEZONE'])
    app.extensions['submission_guard'] = build_submission_guard(app.config)
    app.extensions['violation_sink'] = build_violation_sink(app.config)

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from student_attendance.api.auth import auth_bp
    from student_attendance.api.locations import locations_bp
    from student_attendance.api.schedules import schedules_bp
    from student_attendance.api.self_attendance import self_attendance_bp
    from student_attendance.api.qr_console import qr_console_bp
    from student_attendance.api.reports import reports_bp

    # Auth
    app.register_blueprint(auth_bp, url_prefix='/api/auth')

    # Admin Management
    app.register_blueprint(locations_bp, url_prefix='/api/admin/attendance-locations')
    app.register_blueprint(schedules_bp, url_prefix='/api/admin/attendance-schedules')

    # Core Features
    app.register_blueprint(self_attendance_bp, url_prefix='/api/self-attendance')
    app.register_blueprint(qr_console_bp, url_prefix='/api/qr-console')
    app.register_blueprint(reports_bp, url_prefix='/api/reports')

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from student_attendance.utils.helpers import handle_error
    from student_attendance.utils.validators import AttendanceError
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(AttendanceError)
    def attendance_error(error):
        return handle_error(error, error.status_code)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return handle_error(error, 500)

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e.description, e.code)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({
            'error': True,
            'message': 'Token has expired',
            'status_code': 401
        }), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({
            'error': True,
            'message': 'Invalid token',
            'status_code': 401
        }), 401

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({
            'error': True,
            'message': 'Authorization token required',
            'status_code': 401
        }), 401

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = logging.getLevelName(app.config.get('LOG_LEVEL', 'INFO'))
    package_logger = logging.getLogger('student_attendance')
    package_logger.setLevel(level)

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)
        package_logger.addHandler(file_handler)

        app.logger.setLevel(level)
        app.logger.info('Student Self-Attendance startup')

def setup_database(app: Flask) -> None:
    """Register models with SQLAlchemy metadata."""
    with app.app_context():
        from student_attendance.models import (  # noqa: F401
            User, UserRole, SchoolClass,
            AttendanceLocation, AttendanceSchedule, WeekDay,
            AttendanceRecord, AttendanceStatus, AttendanceSource,
            ViolationEvent, ViolationStatus
        )

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command('seed-db')
    def seed_db():
        """Seed database with a demo campus, schedule and accounts."""
        from student_attendance.services.seed_service import SeedService

        try:
            SeedService.seed_all()
            click.echo('Database seeded successfully!')
        except Exception as e:
            db.session.rollback()
            click.echo(f'Error seeding database: {str(e)}')

    @app.cli.command('create-admin')
    def create_admin():
        """Create admin user."""
        email = click.prompt('Admin email')
        name = click.prompt('Admin name')
        password = click.prompt('Password', hide_input=True)

        from student_attendance.models.user import User, UserRole

        admin = User(
            email=email.lower().strip(),
            full_name=name,
            role=UserRole.ADMIN
        )
        admin.set_password(password)

        try:
            db.session.add(admin)
            db.session.commit()
            click.echo(f'Admin user created: {email}')
        except Exception as e:
            db.session.rollback()
            click.echo(f'Error creating admin: {str(e)}')

    @app.cli.command('dispatch-violations')
    @click.option('--limit', default=100, show_default=True, help='Maximum events to deliver')
    def dispatch_violations(limit):
        """Deliver pending late-attendance violations."""
        from student_attendance.services.violation_service import ViolationOutbox

        outbox = ViolationOutbox(app.extensions['violation_sink'], app.config['VIOLATION_MAX_ATTEMPTS'])
        summary = outbox.dispatch_pending(limit=limit)
        click.echo(
            f"Delivered {summary['delivered']}, failed {summary['failed']}, "
            f"pending {summary['pending']}"
        )
