"""Custom exception classes for the release enrichment service."""


class EnricherError(Exception):
    """Base exception for all enrichment service errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ProviderError(EnricherError):
    """Raised when a provider cannot be reached at the transport level."""

    pass


class ContentExtractionError(EnricherError):
    """Raised when article markup cannot be segmented at all."""

    pass


class ServiceInitializationError(EnricherError):
    """Raised when a service fails to initialize."""

    pass


class ConfigurationError(EnricherError):
    """Raised when there's a configuration error."""

    pass
