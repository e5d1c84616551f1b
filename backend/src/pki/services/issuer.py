"""Certificate issuance: key pair generation, certificate construction, persistence."""

import asyncio
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from pki.ca.key_generator import KeyGenerator
from pki.ca.signing import CertificateSigner, canonical_payload
from pki.domain.models import Certificate, utc_now
from pki.metrics import pki_metrics
from pki.repository.repositories import CertificateRepository
from pki.services.errors import InternalError, PKIError, StorageError, ValidationError
from shared.config import settings

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass
class IssuedCertificate:
    """Result of issuance. ``private_key`` is handed to the caller and nowhere else."""

    certificate: Certificate
    private_key: str

    def __repr__(self) -> str:
        return (
            f"IssuedCertificate(serial={self.certificate.serial_number!r}, "
            "private_key=<redacted>)"
        )


class CertificateIssuer:
    """Issues certificates for (user_id, email) identities.

    Certificate attributes:
    - Serial: 16 random bytes, hex encoded
    - Validity: now() to now() + 365 days
    - Issuer: CERTIFICATE_ISSUER setting
    - Signature: produced by the injected signer
    """

    VALIDITY_DAYS = 365
    SERIAL_BYTES = 16

    def __init__(
        self,
        db: AsyncSession,
        signer: CertificateSigner,
        key_generator: KeyGenerator | None = None,
        issuer_name: str | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.signer = signer
        self.key_generator = key_generator or KeyGenerator()
        self.issuer_name = issuer_name or settings.CERTIFICATE_ISSUER
        self.clock = clock
        self.certificate_repo = CertificateRepository(db)

    async def issue(self, user_id: str | None, email: str | None) -> IssuedCertificate:
        """Generate a key pair and persist a certificate binding it to the identity.

        Raises:
            ValidationError: If user_id or email is missing. Nothing is generated or stored.
            StorageError: If the certificate could not be persisted.
            InternalError: If key generation or certificate construction fails.
        """
        with tracer.start_as_current_span("CertificateIssuer.issue") as span:
            if not user_id or not email:
                raise ValidationError("User ID and email are required")

            span.set_attribute("user_id", user_id)
            logger.info("certificate_issuance_requested", extra={"user_id": user_id})

            try:
                # CPU bound, keep it off the event loop
                key_pair = await asyncio.to_thread(self.key_generator.generate)
                certificate = self._build_certificate(key_pair.public_key, user_id, email)
            except PKIError:
                pki_metrics.record_issuance_failed("internal")
                raise
            except Exception as e:
                pki_metrics.record_issuance_failed("internal")
                logger.error(
                    "certificate_construction_failed",
                    extra={"user_id": user_id, "error": str(e)},
                )
                raise InternalError(f"Failed to construct certificate: {e}") from e

            span.set_attribute("serial", certificate.serial_number)

            try:
                await self.certificate_repo.create(certificate)
            except StorageError:
                pki_metrics.record_issuance_failed("storage")
                raise

            pki_metrics.record_certificate_issued(self.signer.mode.value)
            logger.info(
                "certificate_issued",
                extra={
                    "user_id": user_id,
                    "serial": certificate.serial_number,
                    "valid_to": certificate.valid_to.isoformat(),
                    "signature_mode": self.signer.mode.value,
                },
            )

            return IssuedCertificate(certificate=certificate, private_key=key_pair.private_key)

    def _build_certificate(self, public_key: str, user_id: str, email: str) -> Certificate:
        now = self.clock()
        certificate = Certificate(
            serial_number=secrets.token_hex(self.SERIAL_BYTES),
            user_id=user_id,
            email=email,
            public_key=public_key,
            issuer=self.issuer_name,
            valid_from=now,
            valid_to=now + timedelta(days=self.VALIDITY_DAYS),
        )
        certificate.signature = self.signer.sign(canonical_payload(certificate.signed_fields()))
        return certificate
