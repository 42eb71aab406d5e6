"""
Domain exceptions for attestation business logic

These exceptions represent business rule violations and collaborator failures.
They are raised by the business layer and translated to HTTP responses by the
attestation blueprint.
"""


class AttestationDomainError(Exception):
    """Base exception for all attestation domain errors"""
    pass


class AttestationValidationError(AttestationDomainError):
    """Raised when input is missing, malformed or breaks a business rule"""
    pass


class InvalidStateError(AttestationValidationError):
    """Raised when an operation is not allowed in the entity's current status"""
    pass


class TargetingError(AttestationValidationError):
    """Raised when a campaign's targeting rule resolves to nothing usable"""
    pass


class AttestationNotFoundError(AttestationDomainError):
    """Raised when a campaign, record, invite or asset does not exist"""
    pass


class AttestationPermissionError(AttestationDomainError):
    """Raised when the acting user may not touch the record"""
    pass


class DependencyFailure(AttestationDomainError):
    """Raised when a collaborator (e.g. email delivery) fails and that call was the point of the operation"""
    pass
