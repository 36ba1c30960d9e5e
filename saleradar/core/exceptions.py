"""
Custom Exceptions for SaleRadar
"""


class SaleRadarException(Exception):
    """Base exception for all SaleRadar errors"""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# Embedding provider
class ProviderError(SaleRadarException):
    """Embedding provider call failed (network, quota, malformed output)"""

    pass


class DimensionMismatchError(ProviderError):
    """Provider returned a vector of unexpected dimensionality"""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Expected embedding of dimension {expected}, got {actual}",
        )
        self.expected = expected
        self.actual = actual


# Relational / vector store
class StoreError(SaleRadarException):
    """Store read or write failed"""

    pass


class RecordNotFoundError(StoreError):
    """Requested record not found in the store"""

    pass


# Startup
class ConfigurationError(SaleRadarException):
    """Missing credentials or unsupported configuration. Fatal."""

    pass


# Validation
class ValidationError(SaleRadarException):
    """Input validation failed"""

    pass
