class MoondanceError(Exception):
    """Base exception for Moondance errors."""


class CatalogError(MoondanceError):
    """Raised when a target catalog is missing or malformed."""


class ConfigError(MoondanceError):
    """Raised for invalid configuration values."""
