class PageIsolationError(Exception):
    """Raised when a single page cannot be extracted from a document."""
