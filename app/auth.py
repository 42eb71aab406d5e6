from flask import Blueprint, jsonify, request
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from app.data.core.user_info.user import User
from app import db, limiter, login_manager, csrf
from app.buisness.attestation.clock import get_clock
from app.logger import get_logger
from app.utils.logging_sanitizer import sanitize_dict, sanitize_form_data

logger = get_logger("asset_attestation.auth")
auth = Blueprint('auth', __name__)
csrf.exempt(auth)


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Authentication required'}), 401


def _credentials():
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        logger.debug(f"Login payload: {sanitize_dict(data)}")
    else:
        data = request.form
        logger.debug(f"Login form data: {sanitize_form_data(data)}")
    return (data.get('email') or '').strip(), data.get('password') or ''


@auth.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    email, password = _credentials()

    logger.debug(f"Login attempt for email: {email}")

    if not email or not password:
        logger.warning(f"Login attempt with missing credentials for email: {email}")
        return jsonify({'error': 'Please enter both email and password'}), 400

    user = User.query.filter(func.lower(User.email) == email.lower()).first()

    if user is None or not user.check_password(password):
        logger.warning(f"Failed login attempt for email: {email}")
        return jsonify({'error': 'Invalid email or password'}), 401

    if not user.is_active:
        logger.warning(f"Login attempt for disabled account: {email}")
        return jsonify({'error': 'Account is disabled'}), 403

    login_user(user)
    user.last_login = get_clock().now()
    db.session.commit()
    logger.info(f"Successful login for user: {user.email}")

    # Pending invites for this address become attestation records
    from app.buisness.attestation.invite_manager import InviteManager
    converted = []
    try:
        converted = InviteManager().convert_for_user(user).succeeded
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Invite conversion failed for {user.email}: {e}", exc_info=True)

    return jsonify({
        'success': True,
        'user': user.to_dict(include_audit_fields=False),
        'converted_record_ids': converted,
    })


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    email = current_user.email
    logout_user()
    logger.info(f"User logged out: {email}")
    return jsonify({'success': True})


@auth.route('/me')
@login_required
def me():
    return jsonify({'user': current_user.to_dict(include_audit_fields=False)})
