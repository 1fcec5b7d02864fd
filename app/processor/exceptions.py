class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class InvalidPayloadError(ProcessorError):
    """Raised when a job payload is missing fields or has invalid values."""


class AuthorizationError(ProcessorError):
    """Raised when the payload secret does not match the configured secret."""


class InputFetchError(ProcessorError):
    """Raised when the source document cannot be retrieved."""
