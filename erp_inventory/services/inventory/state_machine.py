"""
Transformation order lifecycle

DRAFT -> PREPARING -> COMPLETED, with CANCELLED reachable from any
non-terminal state. Only execution moves an order into COMPLETED.
"""
from enum import Enum
from typing import Dict, FrozenSet, Union

from erp_inventory.core.exceptions import InvalidStateError, ValidationFailure


class TransformationOrderStatus(str, Enum):
    DRAFT = "DRAFT"
    PREPARING = "PREPARING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return not VALID_TRANSITIONS[self]


VALID_TRANSITIONS: Dict[TransformationOrderStatus, FrozenSet[TransformationOrderStatus]] = {
    TransformationOrderStatus.DRAFT: frozenset({
        TransformationOrderStatus.PREPARING,
        TransformationOrderStatus.CANCELLED,
    }),
    TransformationOrderStatus.PREPARING: frozenset({
        TransformationOrderStatus.COMPLETED,
        TransformationOrderStatus.CANCELLED,
    }),
    TransformationOrderStatus.COMPLETED: frozenset(),
    TransformationOrderStatus.CANCELLED: frozenset(),
}


def parse_status(value: Union[str, TransformationOrderStatus]) -> TransformationOrderStatus:
    try:
        return TransformationOrderStatus(value)
    except ValueError:
        raise ValidationFailure(f"Unknown transformation order status: {value}",
                                code="INVALID_STATUS", details={'status': value})


def can_transition(from_status, to_status) -> bool:
    return parse_status(to_status) in VALID_TRANSITIONS[parse_status(from_status)]


def validate_transition(from_status, to_status) -> TransformationOrderStatus:
    """
    Check a proposed status change against the transition table.

    Returns the target status; raises InvalidStateError carrying the
    current status when the move is not allowed.
    """
    current = parse_status(from_status)
    target = parse_status(to_status)

    if target not in VALID_TRANSITIONS[current]:
        allowed = ", ".join(sorted(s.value for s in VALID_TRANSITIONS[current])) or "none"
        raise InvalidStateError(
            f"Invalid status transition from {current.value} to {target.value}. "
            f"Allowed: {allowed}",
            current_status=current.value,
        )
    return target
