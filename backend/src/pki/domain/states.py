from enum import StrEnum


class VerificationStatus(StrEnum):
    """Outcome of a single verification pass."""

    VALID = "valid"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    INVALID_SIGNATURE = "invalid_signature"


class LookupPolicy(StrEnum):
    """Which record wins when several certificates share an identity."""

    LATEST = "latest"  # most recently created
    FIRST = "first"  # first inserted


class SignatureMode(StrEnum):
    PLACEHOLDER = "placeholder"
    AUTHORITY = "authority"
