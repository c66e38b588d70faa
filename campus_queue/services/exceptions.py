class ServiceError(Exception):
    """Base exception for service-level errors."""


class ValidationError(ServiceError):
    pass


class AuthenticationError(ServiceError):
    pass


class AuthorizationError(ServiceError):
    pass


class NotFoundError(ServiceError):
    pass


class ConflictError(ServiceError):
    pass


class QueueClosedError(ConflictError):
    pass
