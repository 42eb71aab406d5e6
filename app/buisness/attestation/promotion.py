"""
Promotion of staged new assets into the canonical asset registry

Each staged entry is promoted in its own transaction. A successful promotion
stamps promoted_at/promoted_asset_id so a retried completion skips it; a
failure is kept in promotion_error and does not stop the remaining entries.
"""

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.buisness.attestation.batch import BatchResult
from app.buisness.attestation.narrator import AttestationNarrator
from app.buisness.attestation.registry import AssetRegistry
from app.buisness.core.audit_context import AuditContext
from app.data.attestation.new_asset import AttestationNewAsset
from app.data.core.asset_info.asset import Asset
from app.logger import get_logger
from app.utils.logging_sanitizer import sanitize_exception_message

logger = get_logger("asset_attestation.buisness.attestation.promotion")


class NewAssetPromoter:

    def __init__(self, clock, registry=AssetRegistry):
        self.clock = clock
        self.registry = registry

    @staticmethod
    def asset_data(entry: AttestationNewAsset, owner) -> dict:
        """Canonical asset fields for a staged entry; owner fills gaps in the employee/manager fields"""
        return {
            'employee_email': entry.employee_email or owner.email,
            'employee_first_name': entry.employee_first_name or owner.first_name or '',
            'employee_last_name': entry.employee_last_name or owner.last_name or '',
            'manager_email': entry.manager_email or owner.manager_email or None,
            'manager_first_name': entry.manager_first_name or None,
            'manager_last_name': entry.manager_last_name or None,
            'company_id': entry.company_id,
            'asset_type': entry.asset_type,
            'make': entry.make or '',
            'model': entry.model or '',
            'serial_number': entry.serial_number,
            'asset_tag': entry.asset_tag,
            'status': Asset.STATUS_ACTIVE,
            'issued_date': entry.issued_date,
            'returned_date': entry.returned_date,
            'notes': entry.notes or '',
        }

    def promote_all(self, record, actor) -> BatchResult:
        """
        Promote every staged entry of the record that is not promoted yet.

        Returns:
            BatchResult: succeeded holds entry ids, failed holds (entry id, error)
        """
        result = BatchResult()
        entry_ids = [entry.id for entry in record.new_assets if not entry.is_promoted]
        for entry_id in entry_ids:
            self._promote_one(entry_id, actor, result)
        if entry_ids:
            logger.info(
                f"Record {record.id}: promoted {result.success_count} staged asset(s), {result.failure_count} failed"
            )
        return result

    def _promote_one(self, entry_id: int, actor, result: BatchResult) -> None:
        entry = db.session.get(AttestationNewAsset, entry_id)
        try:
            asset = self.registry.create_asset(self.asset_data(entry, actor), user_id=getattr(actor, 'id', None))
            entry.promoted_at = self.clock.now()
            entry.promoted_asset_id = asset.id
            entry.promotion_error = None
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            message = sanitize_exception_message(getattr(e, 'orig', None) or e)
            logger.error(f"Failed to promote staged asset {entry_id}: {message}")
            self._remember_failure(entry_id, message)
            result.add_failure(entry_id, message)
            AuditContext.record(
                'promotion_failed', 'attestation_new_asset', entry_id, entry.label,
                AttestationNarrator.new_asset_promotion_failed(entry, message), actor,
            )
            return

        result.add_success(entry_id)
        AuditContext.record(
            'create', 'asset', asset.id, entry.label,
            AttestationNarrator.new_asset_promoted(entry, asset), actor,
        )

    @staticmethod
    def _remember_failure(entry_id: int, message: str) -> None:
        try:
            AttestationNewAsset.query.filter_by(id=entry_id).update(
                {'promotion_error': message}, synchronize_session=False
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to record promotion error on staged asset {entry_id}: {e}", exc_info=True)
