"""Custom exception classes for pawfeed."""


class PawFeedError(Exception):
    """Base exception for pawfeed."""

    def __init__(self, code: str, message: str, details=None, status_code: int = 500):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)


class ValidationError(PawFeedError):
    """Request or action input rejected."""

    def __init__(self, message: str, details=None):
        super().__init__("VALIDATION_ERROR", message, details, status_code=400)


class NotFoundError(PawFeedError):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            "NOT_FOUND",
            f"{resource} '{resource_id}' not found",
            status_code=404,
        )


class AuthenticationError(PawFeedError):
    """No principal on the request."""

    def __init__(self, message: str = "Principal required"):
        super().__init__("AUTHENTICATION_ERROR", message, status_code=401)


class AuthorizationError(PawFeedError):
    """Principal may not act on this resource."""

    def __init__(self, message: str = "Not allowed"):
        super().__init__("AUTHORIZATION_ERROR", message, status_code=403)


class RemoteStoreError(PawFeedError):
    """A query or write against the remote document store failed."""

    def __init__(self, message: str, details=None):
        super().__init__("REMOTE_STORE_ERROR", message, details, status_code=502)


class LocalStorageError(PawFeedError):
    """Local durable storage could not be read or written."""

    def __init__(self, message: str, details=None):
        super().__init__("LOCAL_STORAGE_ERROR", message, details, status_code=500)
