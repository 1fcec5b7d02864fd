class SeparationError(Exception):
    """Base exception for separation extraction and rendering."""


class ExternalToolError(SeparationError):
    """Raised when an external tool is missing, times out, or exits nonzero."""


class OutputError(SeparationError):
    """Raised when an external tool produced no usable output files."""


class CompositeError(SeparationError):
    """Raised when colorized plates cannot be merged into a composite."""
