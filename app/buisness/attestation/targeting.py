"""
Targeting resolution for attestation campaigns

Turns a campaign's targeting rule into the concrete set of registered
recipients (who get Records) and unregistered asset owners (who get Pending
Invites). Resolution reads registry state only; nothing is written.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from app.buisness.attestation.errors import TargetingError
from app.buisness.attestation.registry import AssetRegistry, UnregisteredOwner
from app.data.attestation.campaign import AttestationCampaign
from app.logger import get_logger

logger = get_logger("asset_attestation.buisness.attestation.targeting")


@dataclass
class ResolvedTargets:
    recipients: list = field(default_factory=list)
    unregistered_owners: List[UnregisteredOwner] = field(default_factory=list)
    company_ids: Optional[List[int]] = None

    @property
    def is_empty(self) -> bool:
        return not self.recipients and not self.unregistered_owners


class TargetingResolver:
    """
    Resolves a targeting rule against the registries.

    - all: every active user, plus every asset owner email with no account
    - selected: the listed users that still exist; stale ids are dropped
    - companies: users and unregistered owners holding assets in the listed
      companies that still exist
    """

    def __init__(self, registry=AssetRegistry):
        self.registry = registry

    def resolve_campaign(self, campaign: AttestationCampaign) -> ResolvedTargets:
        return self.resolve(campaign.target_type, campaign.target_user_ids, campaign.target_company_ids)

    def resolve(self, target_type: str, user_ids=None, company_ids=None) -> ResolvedTargets:
        """
        Args:
            target_type: 'all', 'selected' or 'companies'
            user_ids: Target user ids for 'selected'
            company_ids: Target company ids for 'companies'

        Raises:
            TargetingError: Unknown mode, or a company rule with nothing left to target
        """
        if target_type == AttestationCampaign.TARGET_ALL:
            return ResolvedTargets(
                recipients=self.registry.all_users(),
                unregistered_owners=self.registry.unregistered_owners(),
            )

        if target_type == AttestationCampaign.TARGET_SELECTED:
            requested = list(user_ids or [])
            users = self.registry.users_by_ids(requested)
            dropped = len(set(requested)) - len(users)
            if dropped:
                logger.info(f"Dropped {dropped} target user id(s) that no longer exist")
            return ResolvedTargets(recipients=users)

        if target_type == AttestationCampaign.TARGET_COMPANIES:
            valid_ids = self.registry.existing_company_ids(company_ids)
            if not valid_ids:
                raise TargetingError("None of the selected companies exist")
            targets = ResolvedTargets(
                recipients=self.registry.users_owning_assets_in(valid_ids),
                unregistered_owners=self.registry.unregistered_owners(valid_ids),
                company_ids=valid_ids,
            )
            if targets.is_empty:
                raise TargetingError("No asset owners found in the selected companies")
            return targets

        raise TargetingError(f"Unknown target type: {target_type}")
