"""
Attestation models build module
"""

from app.logger import get_logger

logger = get_logger("asset_attestation.models.attestation")

def build_models():
    """
    Build attestation models - importing the modules registers them with SQLAlchemy
    """
    import app.data.attestation.campaign
    import app.data.attestation.record
    import app.data.attestation.pending_invite
    import app.data.attestation.attested_asset
    import app.data.attestation.new_asset

    logger.debug("Attestation models registered")
