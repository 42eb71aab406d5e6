"""
Audit Context
Single entry point for writing the audit trail.

Audit entries are written after the operation they describe has been
committed, in their own commit. A failure to audit is logged and never
undoes or blocks the operation.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.data.core.audit_log import AuditLog
from app.logger import get_logger
from app.utils.logging_sanitizer import strip_newlines

logger = get_logger("asset_attestation.buisness.core.audit_context")

SYSTEM_ACTOR = 'system'


class AuditContext:

    @staticmethod
    def actor_email(actor) -> str:
        return getattr(actor, 'email', None) or SYSTEM_ACTOR

    @staticmethod
    def record(action: str, entity_type: str, entity_id, entity_name: Optional[str],
               details: Optional[str], actor=None) -> Optional[int]:
        """
        Write one audit entry.

        Args:
            action: Verb such as 'create', 'start', 'reminder_sent'
            entity_type: e.g. 'attestation_campaign'
            entity_id: Id of the affected entity
            entity_name: Human readable label
            details: Free text detail
            actor: User performing the action; None for system sweeps

        Returns:
            int or None: Audit entry id, None when the write failed
        """
        try:
            entry_id = AuditLog.log(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                entity_name=strip_newlines(entity_name)[:255] if entity_name else entity_name,
                details=strip_newlines(details) if details else details,
                user_email=AuditContext.actor_email(actor),
            )
            db.session.commit()
            return entry_id
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to write audit entry {action} {entity_type}:{entity_id}: {e}", exc_info=True)
            return None
