"""Error types raised by the dining enricher."""


class EnricherError(Exception):
    """Base class for enrichment failures."""


class ConfigError(EnricherError):
    """Raised for missing or invalid configuration. Fatal at startup."""


class ProviderResponseError(EnricherError):
    """Raised when the LLM provider returns an empty or malformed body."""


class StoreError(EnricherError):
    """Raised when a write to the venue store fails."""
