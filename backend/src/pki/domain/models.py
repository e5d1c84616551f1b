from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shared.database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps (SQLite drops the offset on the way back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Certificate(Base):
    """A public key bound to a (user_id, email) identity for a validity window.

    Rows are written once at issuance and never updated. The private key is
    never stored here.
    """

    __tablename__ = "pki_certificates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    serial_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    public_key: Mapped[str] = mapped_column(Text, nullable=False)
    issuer: Mapped[str] = mapped_column(String(255), nullable=False)
    valid_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    valid_to: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    signature: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (Index("idx_pki_certificates_identity", "user_id", "email"),)

    def is_expired(self, now: datetime | None = None) -> bool:
        """True once ``now`` is strictly past ``valid_to``."""
        now = now or utc_now()
        return as_utc(now) > as_utc(self.valid_to)

    def signed_fields(self) -> dict[str, str]:
        """Fields covered by the certificate signature, in wire naming."""
        return {
            "serialNumber": self.serial_number,
            "userId": self.user_id,
            "email": self.email,
            "publicKey": self.public_key,
            "validFrom": as_utc(self.valid_from).isoformat(),
            "validTo": as_utc(self.valid_to).isoformat(),
        }
