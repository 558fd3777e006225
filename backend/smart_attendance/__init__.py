"""Smart Attendance verification engine - Application Factory."""
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

    # Setup logging
    setup_logging(app)

    # Verification engine
    setup_verification(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Setup database
    setup_database(app)

    # Add CLI commands
    register_commands(app)

    # Add health check
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'Smart Attendance Verification Engine',
            'version': '1.0.0'
        })

    return app

def setup_verification(app: Flask) -> None:
    """Bind the orchestrator and its collaborators to the app."""
    from smart_attendance.services.notification_service import connect_default_receivers
    from smart_attendance.services.verification_service import init_verification

    init_verification(app)
    connect_default_receivers()

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from smart_attendance.api.attendance import attendance_bp
    from smart_attendance.api.sessions import sessions_bp
    from smart_attendance.utils.swagger import API_URL, SWAGGER_URL, generate_swagger_spec, get_swagger_blueprint

    # Claimants
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')

    # Session owners
    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')

    # Swagger UI
    @app.route(API_URL)
    def swagger_spec():
        """Serve Swagger/OpenAPI specification."""
        return jsonify(generate_swagger_spec())

    app.register_blueprint(get_swagger_blueprint(), url_prefix=SWAGGER_URL)

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from werkzeug.exceptions import HTTPException
    from smart_attendance.utils.errors import VerificationError
    from smart_attendance.utils.helpers import error_response, handle_error, verification_error_response

    @app.errorhandler(VerificationError)
    def verification_failed(error):
        return verification_error_response(error)

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e, e.code)

    @app.errorhandler(Exception)
    def internal_error(error):
        db.session.rollback()
        app.logger.exception("Unhandled error: %s", error)
        return error_response("Internal server error", 500, kind='InternalError')

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return error_response('Token has expired', 401, kind='AuthError')

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return error_response('Invalid token', 401, kind='AuthError')

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return error_response('Authorization token required', 401, kind='AuthError')

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    app.logger.setLevel(level)

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE') or 'logs/app.log'
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)

        app.logger.info('Smart Attendance verification engine startup')

def setup_database(app: Flask) -> None:
    """Setup database connections."""
    with app.app_context():
        # Import all models
        from smart_attendance.models import (
            User, UserRole,
            AttendanceSession, SessionStatus,
            AttendanceRecord, AttendanceStatus
        )

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click
    from flask_jwt_extended import create_access_token
    from smart_attendance.models.user import User, UserRole
    from smart_attendance.services.verification_service import get_verification_service
    from smart_attendance.utils.errors import VerificationError

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command('seed-demo')
    def seed_demo():
        """Create a faculty member, a student and an active demo session."""
        faculty = User.query.filter_by(email='faculty@demo.edu').first()
        if not faculty:
            faculty = User(email='faculty@demo.edu', name='Demo Faculty', role=UserRole.FACULTY)
            db.session.add(faculty)

        student = User.query.filter_by(email='student@demo.edu').first()
        if not student:
            student = User(
                email='student@demo.edu',
                name='Demo Student',
                roll_number='DEMO-001',
                role=UserRole.STUDENT
            )
            db.session.add(student)
        db.session.commit()

        registry = get_verification_service().registry
        try:
            session = registry.open_session(faculty, 'DEMO-101', 'demo')
            registry.activate(session, anchor_ip='192.168.43.1', latitude=21.25, longitude=81.63)
        except VerificationError as e:
            click.echo(f'Could not activate demo session: {e.message}')
            return

        click.echo(f'Faculty: {faculty.email} (id {faculty.id})')
        click.echo(f'Student: {student.email} (id {student.id})')
        click.echo(f'Session {session.id} active on SSID {session.ssid}')

    @app.cli.command('open-session')
    @click.option('--owner', 'owner_email', required=True, help='Faculty email')
    @click.option('--class-ref', required=True)
    @click.option('--timeslot', required=True)
    @click.option('--anchor-ip', required=True)
    @click.option('--lat', 'latitude', type=float, required=True)
    @click.option('--lng', 'longitude', type=float, required=True)
    @click.option('--radius', type=float, default=None, help='Geofence radius in meters')
    @click.option('--ssid', default=None, help='Hotspot name (generated when omitted)')
    @click.option('--duration', type=int, default=None, help='Auto-close after N minutes')
    def open_session(owner_email, class_ref, timeslot, anchor_ip, latitude, longitude, radius, ssid, duration):
        """Create and activate an attendance session."""
        owner = User.query.filter_by(email=owner_email).first()
        if not owner or not owner.is_faculty():
            raise click.ClickException(f'No faculty user {owner_email}')

        registry = get_verification_service().registry
        try:
            session = registry.open_session(owner, class_ref, timeslot)
            registry.activate(
                session,
                anchor_ip=anchor_ip,
                latitude=latitude,
                longitude=longitude,
                ssid=ssid,
                radius_meters=radius,
                duration_minutes=duration
            )
        except VerificationError as e:
            raise click.ClickException(e.message)

        click.echo(f'Session {session.id} active on SSID {session.ssid} (radius {session.radius_meters}m)')

    @app.cli.command('close-session')
    @click.argument('session_id', type=int)
    def close_session(session_id):
        """Close an attendance session."""
        registry = get_verification_service().registry
        try:
            summary = registry.close(registry.find_by_id(session_id))
        except VerificationError as e:
            raise click.ClickException(e.message)

        click.echo(
            f"Session {session_id} closed: {summary['present']} present, "
            f"{summary['late']} late, {summary['total']} total"
        )

    @app.cli.command('issue-token')
    @click.argument('email')
    def issue_token(email):
        """Mint an access token for a user (development helper)."""
        user = User.query.filter_by(email=email).first()
        if not user:
            raise click.ClickException(f'No user {email}')

        click.echo(create_access_token(identity=str(user.id), additional_claims={'role': user.role.value}))
