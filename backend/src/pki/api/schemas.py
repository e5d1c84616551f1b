"""Pydantic schemas for PKI API request/response validation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from pki.domain.models import as_utc


class CamelModel(BaseModel):
    """Wire format uses camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IdentityRequest(CamelModel):
    """Request body for issuing or verifying a certificate.

    Fields are optional here so that missing values reach the service layer and
    come back as a 400 with the service's message.
    """

    user_id: str | None = None
    email: str | None = None


class PublicKeyRequest(CamelModel):
    """Request body for public key lookup."""

    user_id: str | None = None


class CertificateResponse(CamelModel):
    """A stored certificate. Never carries a private key."""

    serial_number: str
    user_id: str
    email: str
    public_key: str
    issuer: str
    valid_from: datetime
    valid_to: datetime
    signature: str
    created_at: datetime | None = None

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    @field_validator("valid_from", "valid_to", "created_at")
    @classmethod
    def _ensure_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class IssueCertificateResponse(CamelModel):
    message: str
    certificate: CertificateResponse
    private_key: str


class VerifyCertificateResponse(CamelModel):
    valid: bool
    certificate: CertificateResponse


class PublicKeyResponse(CamelModel):
    public_key: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    detail: str | None = None
