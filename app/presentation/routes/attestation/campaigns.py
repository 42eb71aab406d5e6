"""
Campaign routes: authoring, lifecycle transitions and read models
"""

from flask import jsonify
from flask_login import current_user

from app.buisness.attestation.campaign_context import CampaignContext
from app.buisness.attestation.invite_manager import InviteManager
from app.buisness.attestation.reminder_manager import ReminderManager
from app.buisness.attestation.validation import parse_id_list
from app.logger import get_logger
from app.presentation.routes.attestation import attestation_bp
from app.presentation.routes.attestation.guards import ADMIN_ROLES, VIEW_ROLES, json_body, require_roles

logger = get_logger("asset_attestation.routes.attestation.campaigns")


@attestation_bp.post('/campaigns')
@require_roles(*ADMIN_ROLES)
def create_campaign():
    ctx = CampaignContext.create(json_body(), current_user)
    return jsonify({'success': True, 'campaign_id': ctx.campaign_id, 'campaign': ctx.to_dict()}), 201


@attestation_bp.get('/campaigns')
@require_roles(*VIEW_ROLES)
def list_campaigns():
    return jsonify({'success': True, 'campaigns': CampaignContext.list_campaigns()})


@attestation_bp.get('/campaigns/<int:campaign_id>')
@require_roles(*VIEW_ROLES)
def get_campaign(campaign_id):
    ctx = CampaignContext.load(campaign_id)
    return jsonify({'success': True, 'campaign': ctx.to_dict(), 'stats': ctx.stats()})


@attestation_bp.put('/campaigns/<int:campaign_id>')
@require_roles(*ADMIN_ROLES)
def update_campaign(campaign_id):
    ctx = CampaignContext.load(campaign_id)
    changed = ctx.update(json_body(), current_user)
    return jsonify({'success': True, 'changed': sorted(changed), 'campaign': ctx.to_dict()})


@attestation_bp.delete('/campaigns/<int:campaign_id>')
@require_roles(*ADMIN_ROLES)
def delete_campaign(campaign_id):
    CampaignContext.load(campaign_id).delete(current_user)
    return jsonify({'success': True, 'message': 'Campaign deleted successfully'})


@attestation_bp.post('/campaigns/<int:campaign_id>/start')
@require_roles(*ADMIN_ROLES)
def start_campaign(campaign_id):
    result = CampaignContext.load(campaign_id).start(current_user)
    return jsonify({'success': True, 'message': 'Campaign started', **result.to_dict()})


@attestation_bp.post('/campaigns/<int:campaign_id>/cancel')
@require_roles(*ADMIN_ROLES)
def cancel_campaign(campaign_id):
    CampaignContext.load(campaign_id).cancel(current_user, json_body().get('reason'))
    return jsonify({'success': True})


@attestation_bp.post('/campaigns/<int:campaign_id>/complete')
@require_roles(*ADMIN_ROLES)
def complete_campaign(campaign_id):
    CampaignContext.load(campaign_id).complete(current_user)
    return jsonify({'success': True})


@attestation_bp.get('/campaigns/<int:campaign_id>/dashboard')
@require_roles(*VIEW_ROLES)
def campaign_dashboard(campaign_id):
    ctx = CampaignContext.load(campaign_id)
    return jsonify({'success': True, 'campaign': ctx.to_dict(), 'records': ctx.dashboard()})


@attestation_bp.get('/campaigns/<int:campaign_id>/pending-invites')
@require_roles(*VIEW_ROLES)
def campaign_pending_invites(campaign_id):
    ctx = CampaignContext.load(campaign_id)
    invites = InviteManager.pending_for_campaign(campaign_id)
    return jsonify({
        'success': True,
        'campaign_id': ctx.campaign_id,
        'campaign_name': ctx.campaign.name,
        'pending_invites': [invite.to_dict(exclude=('invite_token',)) for invite in invites],
    })


@attestation_bp.post('/campaigns/<int:campaign_id>/resend-invites')
@require_roles(*ADMIN_ROLES)
def resend_campaign_invites(campaign_id):
    data = json_body()
    invite_ids = parse_id_list(data.get('invite_ids'), 'invite_ids')
    result = InviteManager().resend_for_campaign(campaign_id, current_user, invite_ids or None)
    return jsonify({
        'success': True,
        'emails_sent': result.success_count,
        'failed': result.to_dict()['failed'],
    })


@attestation_bp.post('/campaigns/<int:campaign_id>/bulk-remind')
@require_roles(*VIEW_ROLES)
def bulk_remind(campaign_id):
    record_ids = parse_id_list(json_body().get('record_ids'), 'record_ids')
    result = ReminderManager().bulk_remind(campaign_id, record_ids, current_user)
    return jsonify({
        'success': True,
        'sent': result.success_count,
        'failed': result.failure_count,
        'failures': result.to_dict()['failed'],
    })
