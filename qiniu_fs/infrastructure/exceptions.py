"""
Custom exceptions for the Infrastructure layer.
"""

class InfrastructureError(Exception):
    """Base class for exceptions in the infrastructure layer."""
    pass


class StorageConfigurationError(InfrastructureError, ValueError):
    """Raised when a storage adapter cannot be built from its configuration."""
    pass
