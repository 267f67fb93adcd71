# =============================================================================
# Custom exceptions for the Message Service
# =============================================================================


class MessageServiceException(Exception):
    """Base exception for the message service"""
    pass


class AuthenticationError(MessageServiceException):
    """Raised when the bearer token is missing or rejected"""
    pass


class TenantRequiredError(MessageServiceException):
    """Raised when an operation runs without a tenant"""

    def __init__(self, message: str = "Tenant ID is required in x-tenant-id header"):
        super().__init__(message)


class ValidationError(MessageServiceException):
    """Raised when validation fails"""
    pass


class NotFoundError(MessageServiceException):
    """Raised when a resource is not found"""
    pass


# Alias for compatibility
ResourceNotFoundError = NotFoundError


class RateLimitExceededError(MessageServiceException):
    """Raised when the inbound request rate exceeds the configured window"""
    pass


class DomainError(MessageServiceException):
    """Raised for domain-specific errors"""
    pass


class InfrastructureError(MessageServiceException):
    """Raised for infrastructure errors"""
    pass


class SearchIndexError(InfrastructureError):
    """Raised when the search engine rejects an index or query operation"""
    pass
