class AutomapError(Exception):
    """
    Base exception for all auto-mapping errors
    """
    pass


class ConfigError(AutomapError):
    """
    Raised when rule or run configuration is invalid
    """
    pass


class MalformedEventTypeError(AutomapError):
    """
    Raised when an event type payload cannot be parsed at all
    """
    pass


class PlatformError(AutomapError):
    """
    Raised when a call to the ingestion platform fails
    """

    def __init__(self, message: str, method: str = "", path: str = "", status_code: int | None = None):
        super().__init__(message)
        self.method = method
        self.path = path
        self.status_code = status_code
