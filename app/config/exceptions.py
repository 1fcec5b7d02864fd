class ConfigurationError(Exception):
    """Raised when required startup configuration is missing or invalid."""
