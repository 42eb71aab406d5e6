from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import os
from app.logger import get_logger

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per day", "50 per hour"],
    storage_uri="memory://"  # Use Redis in production for distributed systems
)


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def create_app(test_config=None):
    """
    Application factory.

    Args:
        test_config (dict, optional): Config keys applied after the environment
            is read. Tests use this for an in-memory database, a recording
            notification dispatcher and a fixed clock.
    """
    from pathlib import Path

    app = Flask(__name__)

    # Get singleton logger
    logger = get_logger("asset_attestation")
    logger.info("Initializing Flask application")

    test_config = test_config or {}

    # Configuration
    # SECURITY: Require SECRET_KEY in environment - no fallback
    app.config['SECRET_KEY'] = test_config.get('SECRET_KEY') or os.environ.get('SECRET_KEY')
    if not app.config['SECRET_KEY']:
        logger.critical("SECRET_KEY not set in environment! Application cannot start.")
        raise RuntimeError("SECRET_KEY environment variable is required")

    # Prefer an explicit DATABASE_URL env var; otherwise keep the SQLite
    # database inside the project's `instance/` directory.
    db_env = os.environ.get('DATABASE_URL')
    if db_env:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_env
    elif 'SQLALCHEMY_DATABASE_URI' not in test_config:
        base_dir = Path(__file__).parent.parent
        instance_dir = base_dir / 'instance'
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'asset_attestation.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Session cookie security configuration
    # Default to True (secure) - only set to False for development (HTTP)
    app.config['SESSION_COOKIE_SECURE'] = _env_flag('SESSION_COOKIE_SECURE', 'True')
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    app.config['PERMANENT_SESSION_LIFETIME'] = int(os.environ.get('PERMANENT_SESSION_LIFETIME', '3600'))
    app.config['REMEMBER_COOKIE_SECURE'] = _env_flag('REMEMBER_COOKIE_SECURE', 'True')
    app.config['REMEMBER_COOKIE_HTTPONLY'] = True

    # Attestation configuration
    app.config['FRONTEND_URL'] = os.environ.get('FRONTEND_URL', 'http://localhost:5173')
    app.config['ATTESTATION_NOTIFY_WORKERS'] = int(os.environ.get('ATTESTATION_NOTIFY_WORKERS', '4'))

    # SMTP configuration (notifications are logged only when SMTP_HOST is unset)
    app.config['SMTP_HOST'] = os.environ.get('SMTP_HOST')
    app.config['SMTP_PORT'] = int(os.environ.get('SMTP_PORT', '587'))
    app.config['SMTP_USERNAME'] = os.environ.get('SMTP_USERNAME')
    app.config['SMTP_PASSWORD'] = os.environ.get('SMTP_PASSWORD')
    app.config['SMTP_USE_TLS'] = _env_flag('SMTP_USE_TLS', 'True')
    app.config['SMTP_FROM'] = os.environ.get('SMTP_FROM', 'attestation@localhost')

    app.config.update(test_config)

    logger.debug(f"Database configured: {app.config['SQLALCHEMY_DATABASE_URI'].split(':', 1)[0]}")

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    logger.debug("Extensions initialized")

    # Import models to ensure they're registered with SQLAlchemy
    from app.data.core.build import build_models
    from app.data.attestation.build import build_models as build_attestation_models
    build_models()
    build_attestation_models()

    logger.debug("Models imported and registered")

    # Collaborators used by the attestation core
    from app.services.notifications import build_dispatcher
    from app.buisness.attestation.clock import SystemClock

    if 'NOTIFICATION_DISPATCHER' in app.config:
        app.extensions['notification_dispatcher'] = app.config['NOTIFICATION_DISPATCHER']
    else:
        app.extensions['notification_dispatcher'] = build_dispatcher(app.config)
    app.extensions['attestation_clock'] = app.config.get('ATTESTATION_CLOCK') or SystemClock()

    # Register blueprints
    from app.auth import auth
    from app.presentation.routes import init_app as init_routes

    app.register_blueprint(auth)
    init_routes(app)

    # Add security headers to all responses
    @app.after_request
    def set_security_headers(response):
        """Add security headers to all responses"""
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        return response

    logger.info("Flask application initialization complete")

    return app
