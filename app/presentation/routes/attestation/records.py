"""
Record routes: the employee's attestation work and per-record admin actions
"""

from flask import jsonify
from flask_login import current_user, login_required

from app.buisness.attestation.record_context import RecordContext
from app.logger import get_logger
from app.presentation.routes.attestation import attestation_bp
from app.presentation.routes.attestation.guards import ADMIN_ROLES, VIEW_ROLES, json_body, require_roles

logger = get_logger("asset_attestation.routes.attestation.records")


@attestation_bp.get('/my-attestations')
@login_required
def my_attestations():
    return jsonify({'success': True, 'attestations': RecordContext.my_attestations(current_user)})


@attestation_bp.get('/records/<int:record_id>')
@login_required
def get_record(record_id):
    detail = RecordContext.load(record_id).detail(current_user)
    return jsonify({'success': True, **detail})


@attestation_bp.put('/records/<int:record_id>/assets/<int:asset_id>')
@login_required
def attest_asset(record_id, asset_id):
    data = json_body()
    entry = RecordContext.load(record_id).attest_asset(
        current_user,
        asset_id,
        data.get('attested_status'),
        notes=data.get('notes'),
        returned_date=data.get('returned_date'),
    )
    return jsonify({'success': True, 'attested_asset': entry.to_dict()})


@attestation_bp.post('/records/<int:record_id>/assets/new')
@login_required
def add_new_asset(record_id):
    entry = RecordContext.load(record_id).add_new_asset(current_user, json_body())
    return jsonify({'success': True, 'new_asset': entry.to_dict()}), 201


@attestation_bp.post('/records/<int:record_id>/complete')
@login_required
def complete_record(record_id):
    result = RecordContext.load(record_id).complete(current_user)
    return jsonify({'success': True, **result.to_dict()})


@attestation_bp.post('/records/<int:record_id>/remind')
@require_roles(*VIEW_ROLES)
def remind_record(record_id):
    RecordContext.load(record_id).remind(current_user)
    return jsonify({'success': True, 'message': 'Reminder sent successfully'})


@attestation_bp.post('/records/<int:record_id>/escalate')
@require_roles(*ADMIN_ROLES)
def escalate_record(record_id):
    RecordContext.load(record_id).escalate(current_user, json_body().get('custom_message'))
    return jsonify({'success': True, 'message': 'Escalation sent successfully'})
