"""Exceptions raised by the service layer."""


class ServiceError(Exception):
    """An operation failed in a way the caller should see.

    Args:
        message: Text returned to the client as ``{"error": message}``
        status_code: HTTP status the API answers with
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(ServiceError):
    def __init__(self, message: str):
        super().__init__(message, status_code=404)
