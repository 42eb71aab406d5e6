"""
Core models package: the canonical user, company and asset registries
and the audit trail the attestation core writes into.
"""

from .user_info.user import User
from .company_info.company import Company
from .asset_info.asset import Asset
from .audit_log import AuditLog

__all__ = [
    'User',
    'Company',
    'Asset',
    'AuditLog',
]
