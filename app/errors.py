# app/errors.py


class UnauthorizedError(Exception):
    """Bearer token missing or rejected by the auth server."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)
        self.message = message


class InvalidRequestError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SalesImportError(InvalidRequestError):
    pass
