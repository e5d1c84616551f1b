"""Certificate verification and public key lookup."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from pki.ca.signing import CertificateSigner, PlaceholderSigner, canonical_payload
from pki.domain.models import Certificate, utc_now
from pki.domain.states import LookupPolicy, VerificationStatus
from pki.metrics import pki_metrics
from pki.repository.repositories import CertificateRepository
from pki.services.errors import (
    ExpiredError,
    InternalError,
    InvalidSignatureError,
    NotFoundError,
    ValidationError,
)
from shared.config import settings

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass(frozen=True)
class VerificationResult:
    """Terminal state of a verification request."""

    status: VerificationStatus
    certificate: Certificate | None = None

    @property
    def valid(self) -> bool:
        return self.status is VerificationStatus.VALID

    def raise_for_status(self) -> Certificate:
        """Return the certificate when valid, otherwise raise the matching error."""
        if self.status is VerificationStatus.NOT_FOUND:
            raise NotFoundError("Certificate not found")
        if self.status is VerificationStatus.EXPIRED:
            raise ExpiredError("Certificate expired")
        if self.status is VerificationStatus.INVALID_SIGNATURE:
            raise InvalidSignatureError("Certificate signature is invalid")
        if self.certificate is None:
            raise InternalError("Valid verification result carries no certificate")
        return self.certificate


class CertificateVerifier:
    """Read-only checks against the certificate store."""

    def __init__(
        self,
        db: AsyncSession,
        signer: CertificateSigner | None = None,
        policy: LookupPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.signer = signer or PlaceholderSigner()
        self.clock = clock
        self.certificate_repo = CertificateRepository(
            db, policy or settings.LOOKUP_POLICY
        )

    async def verify(self, user_id: str | None, email: str | None) -> VerificationResult:
        """Look up the certificate for an identity and evaluate it.

        Validates:
        1. A certificate exists for (user_id, email)
        2. It is not past valid_to
        3. Its signature verifies (no-op with the placeholder signer)

        Raises:
            ValidationError: If user_id or email is missing.
            StorageError: If the store lookup fails.
        """
        with tracer.start_as_current_span("CertificateVerifier.verify") as span:
            if not user_id or not email:
                raise ValidationError("Missing required fields")

            span.set_attribute("user_id", user_id)

            certificate = await self.certificate_repo.find_one(user_id, email)
            result = self._evaluate(certificate)

            span.set_attribute("result", result.status.value)
            pki_metrics.record_verification(result.status.value)
            logger.debug(
                "certificate_verified",
                extra={
                    "user_id": user_id,
                    "result": result.status.value,
                    "serial": certificate.serial_number if certificate else None,
                },
            )
            return result

    def _evaluate(self, certificate: Certificate | None) -> VerificationResult:
        if certificate is None:
            return VerificationResult(VerificationStatus.NOT_FOUND)

        if certificate.is_expired(self.clock()):
            return VerificationResult(VerificationStatus.EXPIRED, certificate)

        payload = canonical_payload(certificate.signed_fields())
        if not self.signer.verify(payload, certificate.signature):
            return VerificationResult(VerificationStatus.INVALID_SIGNATURE, certificate)

        return VerificationResult(VerificationStatus.VALID, certificate)

    async def get_public_key(self, user_id: str | None) -> str:
        """Return the public key bound to ``user_id``.

        Raises:
            ValidationError: If user_id is missing.
            NotFoundError: If no certificate (or no public key) exists for user_id.
            StorageError: If the store lookup fails.
        """
        with tracer.start_as_current_span("CertificateVerifier.get_public_key") as span:
            if not user_id:
                raise ValidationError("User ID is required")

            span.set_attribute("user_id", user_id)

            public_key = await self.certificate_repo.find_public_key(user_id)
            if not public_key:
                pki_metrics.record_public_key_lookup("not_found")
                raise NotFoundError("Public key not found for the user")

            pki_metrics.record_public_key_lookup("found")
            return public_key
