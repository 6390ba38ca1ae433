"""Call session errors."""


class CallValidationError(ValueError):
    """Initiate request rejected before any session was created."""

    code = "VALIDATION_ERROR"


class CallInitiationError(Exception):
    """The gateway refused to place the call; the session was rolled back."""

    code = "CALL_INITIATION_FAILED"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
