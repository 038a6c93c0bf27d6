"""
Error taxonomy for the customer service.

Every error carries the HTTP status the app factory renders it with; the
service raises them at the point of detection and never translates them.
"""


class CustomerServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ResourceNotFoundError(CustomerServiceError):
    status_code = 404


class DuplicateResourceError(CustomerServiceError):
    status_code = 409


class RequestValidationError(CustomerServiceError):
    status_code = 400


class ImageUploadError(CustomerServiceError):
    """Fatal blob-storage failure while writing a profile image."""

    status_code = 500
