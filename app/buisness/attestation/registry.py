"""
AssetRegistry - narrow gateway to the canonical user, company and asset tables

The attestation core reads owners and assets through this class and writes to
the asset table in exactly two ways: a status update when an employee attests
a changed status, and asset creation when a staged new asset is promoted.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy import and_, exists, func

from app import db
from app.data.core.asset_info.asset import Asset
from app.data.core.company_info.company import Company
from app.data.core.user_info.user import User
from app.logger import get_logger

logger = get_logger("asset_attestation.buisness.attestation.registry")


@dataclass(frozen=True)
class UnregisteredOwner:
    """Asset owner email with no matching user account"""
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    asset_count: int


class AssetRegistry:
    """Read helpers and the two permitted writes against the canonical registries"""

    # ========== Users ==========

    @staticmethod
    def get_user(user_id: int) -> Optional[User]:
        return db.session.get(User, user_id)

    @staticmethod
    def find_user_by_email(email: str) -> Optional[User]:
        if not email:
            return None
        return User.query.filter(func.lower(User.email) == email.strip().lower()).first()

    @staticmethod
    def all_users() -> List[User]:
        return User.query.order_by(User.id).all()

    @staticmethod
    def users_by_ids(user_ids: Iterable[int]) -> List[User]:
        """Users that still exist among user_ids; unknown ids are dropped"""
        ids = list(user_ids or [])
        if not ids:
            return []
        return User.query.filter(User.id.in_(ids)).order_by(User.id).all()

    @staticmethod
    def admin_emails() -> List[str]:
        rows = User.query.filter(User.role == 'admin', User.is_active.is_(True)).order_by(User.id).all()
        return [u.email for u in rows]

    # ========== Companies ==========

    @staticmethod
    def existing_company_ids(company_ids: Iterable[int]) -> List[int]:
        ids = list(company_ids or [])
        if not ids:
            return []
        rows = db.session.query(Company.id).filter(Company.id.in_(ids)).order_by(Company.id).all()
        return [row[0] for row in rows]

    @staticmethod
    def get_company(company_id: int) -> Optional[Company]:
        return db.session.get(Company, company_id)

    @staticmethod
    def company_names_for_owner(email: str) -> List[str]:
        rows = (
            db.session.query(Company.name)
            .join(Asset, Asset.company_id == Company.id)
            .filter(func.lower(Asset.employee_email) == (email or '').lower())
            .distinct()
            .order_by(Company.name)
            .all()
        )
        return [row[0] for row in rows]

    # ========== Owners ==========

    @staticmethod
    def users_owning_assets_in(company_ids: List[int]) -> List[User]:
        """Registered users owning at least one asset in the given companies"""
        if not company_ids:
            return []
        owns_asset = exists().where(and_(
            func.lower(Asset.employee_email) == func.lower(User.email),
            Asset.company_id.in_(company_ids),
        ))
        return User.query.filter(owns_asset).order_by(User.id).all()

    @staticmethod
    def unregistered_owners(company_ids: Optional[List[int]] = None) -> List[UnregisteredOwner]:
        """
        Asset owner emails that have no user account, grouped case-insensitively.

        Args:
            company_ids: Restrict to assets in these companies; None means all assets

        Returns:
            List of UnregisteredOwner with names taken from the owner's assets
        """
        owner_email = func.lower(Asset.employee_email)
        has_account = exists().where(func.lower(User.email) == owner_email)

        query = (
            db.session.query(
                owner_email.label('email'),
                func.max(Asset.employee_first_name),
                func.max(Asset.employee_last_name),
                func.count(Asset.id),
            )
            .filter(Asset.employee_email.isnot(None), Asset.employee_email != '')
            .filter(~has_account)
        )
        if company_ids is not None:
            if not company_ids:
                return []
            query = query.filter(Asset.company_id.in_(company_ids))

        rows = query.group_by(owner_email).order_by(owner_email).all()
        return [
            UnregisteredOwner(email=email, first_name=first, last_name=last, asset_count=count)
            for email, first, last, count in rows
        ]

    @staticmethod
    def manager_for_owner(email: str) -> Optional[dict]:
        """Manager recorded on the owner's first asset that names one"""
        asset = (
            Asset.owned_by(email)
            .filter(Asset.manager_email.isnot(None), Asset.manager_email != '')
            .order_by(Asset.id)
            .first()
        )
        if asset is None:
            return None
        return {
            'email': asset.manager_email,
            'first_name': asset.manager_first_name,
            'last_name': asset.manager_last_name,
        }

    # ========== Assets ==========

    @staticmethod
    def get_asset(asset_id: int) -> Optional[Asset]:
        return db.session.get(Asset, asset_id)

    @staticmethod
    def assets_for_owner(email: str, company_ids: Optional[List[int]] = None) -> List[Asset]:
        query = Asset.owned_by(email)
        if company_ids is not None:
            query = query.filter(Asset.company_id.in_(company_ids))
        return query.order_by(Asset.id).all()

    @staticmethod
    def update_asset_status(asset: Asset, status: str, returned_date=None, user_id: Optional[int] = None) -> None:
        """Write an attested status to the canonical asset (not committed)"""
        asset.status = status
        if returned_date is not None:
            asset.returned_date = returned_date
        if user_id is not None:
            asset.updated_by_id = user_id
        logger.info(f"Asset {asset.id} status set to {status}")

    @staticmethod
    def create_asset(data: dict, user_id: Optional[int] = None) -> Asset:
        """Insert a canonical asset and flush it (not committed)"""
        return Asset.create_from_dict(data, user_id=user_id, commit=False)
