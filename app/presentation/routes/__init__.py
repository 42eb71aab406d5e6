"""
Routes package for the Asset Attestation service
"""

from app.logger import get_logger

logger = get_logger("asset_attestation.routes")


def init_app(app):
    """Initialize all route blueprints with the Flask app"""
    logger.debug("Initializing route blueprints")

    from app import csrf
    from .attestation import attestation_bp

    # JSON API authenticated by the SameSite=Lax session cookie
    csrf.exempt(attestation_bp)
    app.register_blueprint(attestation_bp, url_prefix='/attestation')

    logger.info("All route blueprints registered successfully")
