"""
Error taxonomy for the back-office API.

Each error carries the HTTP status used when it reaches the request
boundary. Messages are meant for direct display to the caller; Internal
errors are logged and replaced by a generic message.
"""


class BackOfficeError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(BackOfficeError):
    status_code = 404


class InvalidState(BackOfficeError):
    status_code = 409


class ValidationError(BackOfficeError):
    status_code = 400


class UnsupportedContactMethod(BackOfficeError):
    status_code = 400


class Internal(BackOfficeError):
    status_code = 500


GENERIC_ERROR_MESSAGE = "An unexpected error occurred"
