"""Repository layer for certificate data access."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from pki.domain.models import Certificate
from pki.domain.states import LookupPolicy
from pki.services.errors import StorageError

logger = logging.getLogger(__name__)


class CertificateRepository:
    """Single-row insert and single-row find over the certificate table.

    When several certificates share an identity, ``policy`` decides which one a
    lookup returns.
    """

    def __init__(self, db: AsyncSession, policy: LookupPolicy = LookupPolicy.LATEST):
        self.db = db
        self.policy = policy

    def _ordered(self, query: Select) -> Select:
        if self.policy is LookupPolicy.FIRST:
            return query.order_by(Certificate.id.asc())
        return query.order_by(Certificate.created_at.desc(), Certificate.id.desc())

    async def create(self, cert: Certificate) -> Certificate:
        """Insert a new certificate and commit."""
        try:
            self.db.add(cert)
            await self.db.flush()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "certificate_store_write_failed",
                extra={"serial": cert.serial_number, "error": str(e)},
            )
            raise StorageError(f"Failed to persist certificate: {e}") from e
        return cert

    async def find_one(self, user_id: str, email: str) -> Certificate | None:
        """Get the certificate for an identity, or None."""
        query = (
            select(Certificate)
            .where(Certificate.user_id == user_id)
            .where(Certificate.email == email)
        )
        try:
            result = await self.db.execute(self._ordered(query).limit(1))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("certificate_store_read_failed", extra={"error": str(e)})
            raise StorageError(f"Failed to look up certificate: {e}") from e

    async def find_public_key(self, user_id: str) -> str | None:
        """Get only the public key of a certificate issued to ``user_id``."""
        query = select(Certificate.public_key).where(Certificate.user_id == user_id)
        try:
            result = await self.db.execute(self._ordered(query).limit(1))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("certificate_store_read_failed", extra={"error": str(e)})
            raise StorageError(f"Failed to look up public key: {e}") from e
