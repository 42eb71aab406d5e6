"""
Invite routes: public token check and single-invite resend
"""

from flask import jsonify
from flask_login import current_user

from app.buisness.attestation.invite_manager import InviteManager
from app.presentation.routes.attestation import attestation_bp
from app.presentation.routes.attestation.guards import ADMIN_ROLES, require_roles


@attestation_bp.get('/validate-invite/<token>')
def validate_invite(token):
    return jsonify(InviteManager().validate_token(token).to_dict())


@attestation_bp.post('/pending-invites/<int:invite_id>/resend')
@require_roles(*ADMIN_ROLES)
def resend_invite(invite_id):
    InviteManager().resend(invite_id, current_user)
    return jsonify({'success': True, 'message': 'Invite resent successfully'})
