"""
On-demand reminder, escalation and auto-close sweeps
"""

from flask import jsonify
from flask_login import current_user

from app.buisness.attestation.reminder_manager import ReminderManager
from app.logger import get_logger
from app.presentation.routes.attestation import attestation_bp
from app.presentation.routes.attestation.guards import ADMIN_ROLES, require_roles

logger = get_logger("asset_attestation.routes.attestation.tasks")


@attestation_bp.post('/tasks/run')
@require_roles(*ADMIN_ROLES)
def run_tasks():
    logger.info(f"Attestation sweeps triggered by {current_user.email}")
    summary = ReminderManager().run_all()
    return jsonify({'success': True, 'results': summary.to_dict()})
