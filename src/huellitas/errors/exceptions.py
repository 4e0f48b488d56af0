"""Custom exception classes for the notification service."""


class HuellitasError(Exception):
    """Base exception for the notification pipeline."""

    def __init__(self, code: str, message: str, details=None, status_code: int = 500):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)


class ValidationError(HuellitasError):
    """Malformed input rejected at the store boundary."""

    def __init__(self, message: str, details=None):
        super().__init__("VALIDATION_ERROR", message, details, status_code=400)


class NotFoundError(HuellitasError):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            "NOT_FOUND",
            f"{resource} '{resource_id}' not found",
            status_code=404,
        )


class TemplateNotFoundError(HuellitasError):
    """No active template exists for the key."""

    def __init__(self, template_key: str):
        self.template_key = template_key
        super().__init__(
            "TEMPLATE_NOT_FOUND",
            f"No active notification template '{template_key}'",
            details={"template_key": template_key},
            status_code=404,
        )


class InvalidStateTransitionError(HuellitasError):
    """A state machine was asked to move along an edge it does not have."""

    def __init__(self, entity: str, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(
            "INVALID_STATE_TRANSITION",
            f"{entity} cannot move from '{current}' to '{target}'",
            details={"current": current, "target": target},
            status_code=409,
        )


class PushCapabilityError(HuellitasError):
    """Base for errors the UI must explain to the user with concrete steps."""

    def __init__(self, code: str, message: str, guidance: list[str], status_code: int):
        self.guidance = guidance
        super().__init__(code, message, details={"guidance": guidance}, status_code=status_code)


class NotSupportedError(PushCapabilityError):
    """The device or browser lacks push capability."""

    def __init__(self, message: str, guidance: list[str]):
        super().__init__("NOT_SUPPORTED", message, guidance, status_code=501)


class PermissionDeniedError(PushCapabilityError):
    """The user denied (or never granted) notification permission."""

    def __init__(self, message: str, guidance: list[str]):
        super().__init__("PERMISSION_DENIED", message, guidance, status_code=403)


class RelayError(HuellitasError):
    """The push relay call failed (network, timeout, HTTP or success=false)."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__("RELAY_ERROR", message, details={"relay_status": status}, status_code=502)


class MigrationRowError(HuellitasError):
    """A single legacy row could not be migrated. Collected, never propagated."""

    def __init__(self, row_id: str, message: str):
        self.row_id = row_id
        super().__init__("MIGRATION_ROW_ERROR", message, details={"id": row_id}, status_code=500)
