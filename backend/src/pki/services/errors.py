"""Error taxonomy for the certificate lifecycle.

Every failure leaving the core is one of these. The HTTP layer maps them to
status codes and never inspects anything else.
"""


class PKIError(Exception):
    """Base class for certificate lifecycle failures."""

    code = "internal_error"


class ValidationError(PKIError):
    """Raised when required identity fields are missing or empty."""

    code = "missing_fields"


class NotFoundError(PKIError):
    """Raised when no certificate matches a lookup."""

    code = "not_found"


class ExpiredError(PKIError):
    """Raised when the matching certificate is past its validity window."""

    code = "certificate_expired"


class InvalidSignatureError(PKIError):
    """Raised when a stored certificate fails signature verification."""

    code = "invalid_signature"


class StorageError(PKIError):
    """Raised when the certificate store fails (connectivity, timeout, integrity)."""

    code = "storage_error"


class InternalError(PKIError):
    """Raised for any other unexpected failure, e.g. key generation."""

    code = "internal_error"
