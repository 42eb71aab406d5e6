"""
Translate attestation domain errors into JSON responses
"""

from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.buisness.attestation.errors import (
    AttestationDomainError,
    AttestationNotFoundError,
    AttestationPermissionError,
    AttestationValidationError,
    DependencyFailure,
)
from app.logger import get_logger
from app.presentation.routes.attestation import attestation_bp

logger = get_logger("asset_attestation.routes.attestation.errors")

STATUS_BY_ERROR = (
    (AttestationNotFoundError, 404),
    (AttestationPermissionError, 403),
    (DependencyFailure, 502),
    (AttestationValidationError, 400),
)


def status_for(error: AttestationDomainError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 400


@attestation_bp.errorhandler(AttestationDomainError)
def handle_domain_error(error):
    status = status_for(error)
    if status == 502:
        logger.error(f"Dependency failure: {error}")
    else:
        logger.info(f"{type(error).__name__}: {error}")
    return jsonify({'error': str(error), 'type': type(error).__name__}), status


@attestation_bp.errorhandler(SQLAlchemyError)
def handle_database_error(error):
    db.session.rollback()
    logger.error(f"Database error: {error}", exc_info=True)
    return jsonify({'error': 'Database error'}), 500
