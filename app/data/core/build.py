"""
Core models build module
Registers the registry and audit models with SQLAlchemy
"""

from app.logger import get_logger

logger = get_logger("asset_attestation.models.core")

def build_models():
    """
    Build core models - importing the modules registers them with SQLAlchemy
    """
    import app.data.core.user_info.user
    import app.data.core.company_info.company
    import app.data.core.asset_info.asset
    import app.data.core.audit_log

    logger.debug("Core models registered")
