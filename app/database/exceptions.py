class PersistenceError(Exception):
    """Raised when a job or target record status cannot be written."""
