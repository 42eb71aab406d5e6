"""
Record Ownership Policy

Only the user a record belongs to may attest, stage assets on, or complete it,
and only assets registered to that user can be attested through the record.
Administrators may view any record.
"""

from app.buisness.attestation.errors import AttestationPermissionError

VIEW_ANY_ROLES = ('admin',)


class RecordOwnershipPolicy:

    @classmethod
    def is_owner(cls, record, actor) -> bool:
        return actor is not None and record.user_id == actor.id

    @classmethod
    def check(cls, record, actor) -> None:
        """
        Raises:
            AttestationPermissionError: actor does not own the record
        """
        if not cls.is_owner(record, actor):
            raise AttestationPermissionError("Access denied to this attestation record")

    @classmethod
    def check_asset(cls, record, asset) -> None:
        """
        Raises:
            AttestationPermissionError: the asset belongs to someone else
        """
        owner = (asset.employee_email or '').strip().lower()
        if owner != (record.user.email or '').lower():
            raise AttestationPermissionError("Asset is not assigned to the owner of this record")

    @classmethod
    def check_view(cls, record, actor) -> None:
        if cls.is_owner(record, actor):
            return
        if actor is not None and actor.has_role(*VIEW_ANY_ROLES):
            return
        raise AttestationPermissionError("Access denied to this attestation record")
