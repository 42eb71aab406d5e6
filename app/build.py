#!/usr/bin/env python3
"""
Database build orchestrator for the Asset Attestation service
Creates the tables and seeds the administrator account
"""

import os

from app import create_app, db
from app.logger import get_logger

logger = get_logger("asset_attestation.build")


def build_models():
    """Register every model with SQLAlchemy and create the tables"""
    from app.data.core.build import build_models as build_core_models
    from app.data.attestation.build import build_models as build_attestation_models

    logger.info("Building core registry models")
    build_core_models()
    logger.info("Building attestation models")
    build_attestation_models()

    db.create_all()
    logger.info("All database tables created")


def ensure_admin_user(email=None, password=None):
    """
    Create the administrator account when it does not exist yet

    Args:
        email (str, optional): Defaults to the ADMIN_EMAIL environment variable
        password (str, optional): Defaults to the ADMIN_PASSWORD environment variable

    Returns:
        User or None: The admin user, or None when no credentials are configured
    """
    from app.data.core.user_info.user import User

    email = email or os.environ.get('ADMIN_EMAIL')
    password = password or os.environ.get('ADMIN_PASSWORD')
    if not email or not password:
        logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin account creation")
        return None

    user, created = User.find_or_create_from_dict(
        {
            'email': email,
            'password': password,
            'first_name': 'Admin',
            'last_name': 'User',
            'role': 'admin',
            'is_active': True,
        },
        lookup_fields=['email'],
    )
    if created:
        logger.info(f"Created admin account: {email}")
    return user


def build_database(seed_admin=True):
    """
    Build the database for the configured DATABASE_URL

    Args:
        seed_admin (bool): Whether to create the administrator account
    """
    app = create_app()

    with app.app_context():
        logger.info("Starting database build")
        build_models()
        if seed_admin:
            ensure_admin_user()
        logger.info("Database build completed successfully")

    return app


if __name__ == '__main__':
    build_database()
