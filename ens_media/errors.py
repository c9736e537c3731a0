"""
Error taxonomy for media reads and uploads.

Every error carries the HTTP status and the literal text returned to the client.
"""


class MediaError(Exception):
    """Base class for failures surfaced to the client as plain text."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidDataURLError(MediaError):
    status_code = 400


class UnsupportedMediaTypeError(MediaError):
    status_code = 415


class NameNotNormalizedError(MediaError):
    status_code = 400


class InvalidSignatureError(MediaError):
    status_code = 400


class PayloadTooLargeError(MediaError):
    status_code = 413


class NameNotFoundError(MediaError):
    status_code = 404


class ForbiddenError(MediaError):
    status_code = 403


class SignatureExpiredError(ForbiddenError):
    pass


class UnsupportedNetworkError(MediaError):
    status_code = 400


class InternalMediaError(MediaError):
    status_code = 500


class HashingError(InternalMediaError):
    pass


class UploadMismatchError(InternalMediaError):
    """Raised when the store reports a different key than the one written."""


class StorageError(InternalMediaError):
    pass


class OwnershipLookupError(InternalMediaError):
    pass
