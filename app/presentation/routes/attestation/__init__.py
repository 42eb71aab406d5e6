from flask import Blueprint

attestation_bp = Blueprint('attestation', __name__)

# Import all route modules
from . import (  # noqa: E402,F401
    errors,
    campaigns,
    records,
    invites,
    tasks,
)
