from typing import Dict, FrozenSet

from ..errors import InvalidTransitionError
from ..models import AppointmentStatus, EmergencyAlertStatus, ReceiptStatus

RECEIPT_TRANSITIONS: Dict[ReceiptStatus, FrozenSet[ReceiptStatus]] = {
    ReceiptStatus.PENDING: frozenset({ReceiptStatus.QUEUED, ReceiptStatus.PROCESSED, ReceiptStatus.COMPLETED}),
    ReceiptStatus.QUEUED: frozenset({ReceiptStatus.PROCESSED}),
    ReceiptStatus.PROCESSED: frozenset({ReceiptStatus.COMPLETED}),
    ReceiptStatus.COMPLETED: frozenset(),
}

APPOINTMENT_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

ALERT_TRANSITIONS: Dict[EmergencyAlertStatus, FrozenSet[EmergencyAlertStatus]] = {
    EmergencyAlertStatus.PENDING: frozenset({EmergencyAlertStatus.ACKNOWLEDGED}),
    EmergencyAlertStatus.ACKNOWLEDGED: frozenset({EmergencyAlertStatus.RESPONDED}),
    EmergencyAlertStatus.RESPONDED: frozenset({EmergencyAlertStatus.CLOSED}),
    EmergencyAlertStatus.CLOSED: frozenset(),
}


def receipt_transitions(allow_direct_completion: bool = True) -> Dict[ReceiptStatus, FrozenSet[ReceiptStatus]]:
    if allow_direct_completion:
        return RECEIPT_TRANSITIONS
    table = dict(RECEIPT_TRANSITIONS)
    table[ReceiptStatus.PENDING] = table[ReceiptStatus.PENDING] - {ReceiptStatus.COMPLETED}
    return table


def check_transition(entity: str, table, current, target) -> None:
    """Raise InvalidTransitionError unless ``current -> target`` is an edge of ``table``."""
    if target not in table.get(current, frozenset()):
        raise InvalidTransitionError(entity, current, target)
