"""
State machines for campaign and record lifecycles

Encodes valid transitions and provides guard hooks.
Keeps "what is allowed" separate from "how persistence occurs".
"""

from typing import Dict, Set
from app.buisness.attestation.errors import InvalidStateError


class CampaignStateMachine:
    """
    State machine for AttestationCampaign.status transitions.

    Campaign lifecycle is one-directional: draft → active → completed | cancelled.
    A draft campaign cannot be cancelled, only deleted.
    """

    DRAFT = 'draft'
    ACTIVE = 'active'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    STATUSES = (DRAFT, ACTIVE, COMPLETED, CANCELLED)

    # Terminal states (cannot transition from these)
    TERMINAL_STATES = {COMPLETED, CANCELLED}

    TRANSITIONS: Dict[str, Set[str]] = {
        DRAFT: {ACTIVE},
        ACTIVE: {COMPLETED, CANCELLED},
        # COMPLETED and CANCELLED are terminal
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """
        Check if transition is valid.

        Campaign transitions are never no-ops: starting an active campaign or
        cancelling a cancelled one is rejected.

        Args:
            from_status: Current status
            to_status: Target status

        Returns:
            bool: True if transition is allowed
        """
        if from_status in cls.TERMINAL_STATES:
            return False
        return to_status in cls.TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """
        Validate transition and raise exception if invalid.

        Raises:
            InvalidStateError: If transition is not allowed
        """
        if not cls.can_transition(from_status, to_status):
            raise InvalidStateError(
                f"Invalid campaign status transition: {from_status} → {to_status}"
            )

    @classmethod
    def get_allowed_transitions(cls, from_status: str) -> Set[str]:
        """Get set of allowed target statuses from current status"""
        if from_status in cls.TERMINAL_STATES:
            return set()
        return cls.TRANSITIONS.get(from_status, set())

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return status in cls.TERMINAL_STATES


class RecordStateMachine:
    """
    State machine for AttestationRecord.status.

    pending → in_progress on the first attested or staged asset,
    pending | in_progress → completed when the employee submits.
    Completing again is allowed so staged assets that failed promotion can be retried.
    """

    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'

    STATUSES = (PENDING, IN_PROGRESS, COMPLETED)

    TRANSITIONS: Dict[str, Set[str]] = {
        PENDING: {IN_PROGRESS, COMPLETED},
        IN_PROGRESS: {COMPLETED},
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        # Allow staying in same state (no-op)
        if from_status == to_status:
            return True
        return to_status in cls.TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        if not cls.can_transition(from_status, to_status):
            raise InvalidStateError(
                f"Invalid record status transition: {from_status} → {to_status}"
            )
