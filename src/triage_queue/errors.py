"""Typed failures raised by the triage queue.

Each error carries the HTTP status the API layer answers with, so routers
never translate them by hand.
"""


class TriageError(Exception):
    status_code = 400


class NotFoundError(TriageError):
    status_code = 404

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidStateError(TriageError):
    status_code = 409


class InvalidTransitionError(TriageError):
    status_code = 409

    def __init__(self, entity: str, current, target):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(f"{entity} cannot move from {_name(current)} to {_name(target)}")


class DoctorUnavailableError(TriageError):
    status_code = 409


class ConcurrencyConflictError(TriageError):
    status_code = 503


def _name(status) -> str:
    return getattr(status, "value", str(status))
