"""Custom exception classes for the application."""


class StockwatchException(Exception):
    """Base exception for all stockwatch errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class ClassificationAmbiguous(StockwatchException):
    """Raised when an input looks like a URL but cannot be parsed as one."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Could not classify input '{raw}'")


class SourceUnavailable(StockwatchException):
    """Raised when a product source fails or has no match."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Source {source} unavailable: {message}")


class ResolutionError(StockwatchException):
    """Base class for failures that drop a single input from a batch."""


class UnresolvableURL(ResolutionError):
    """Raised when no source can produce a canonical product URL."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"No product URL could be resolved for '{raw}'")


class CanonicalExtractionFailed(ResolutionError):
    """Raised when the product page lacks the expected structured payload."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"No product payload found at {url}")


class PersistenceCorrupt(StockwatchException):
    """Raised when the stored state file cannot be read at startup."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Store file {path} is unreadable: {message}")
