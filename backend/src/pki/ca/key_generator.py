"""Per-request RSA key pair generation for end-user certificates."""

import logging
import time
from dataclasses import dataclass

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from pki.metrics import pki_metrics
from pki.services.errors import InternalError

logger = logging.getLogger(__name__)


class KeyGenerationError(InternalError):
    """Raised when key pair generation fails."""

    pass


@dataclass(frozen=True)
class KeyPair:
    """PEM-encoded key pair. The private half leaves the service exactly once."""

    public_key: str
    private_key: str

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self.public_key[:40]!r}..., private_key=<redacted>)"


class KeyGenerator:
    """Stateless generator of RSA key pairs.

    - Key: RSA 2048, public exponent 65537
    - Public key: SubjectPublicKeyInfo PEM
    - Private key: unencrypted PKCS#8 PEM
    """

    KEY_SIZE = 2048
    PUBLIC_EXPONENT = 65537

    def generate(self) -> KeyPair:
        """Generate a fresh key pair.

        Raises:
            KeyGenerationError: If the underlying backend fails.
        """
        start_time = time.time()
        try:
            private_key = rsa.generate_private_key(
                public_exponent=self.PUBLIC_EXPONENT,
                key_size=self.KEY_SIZE,
            )

            public_pem = (
                private_key.public_key()
                .public_bytes(
                    encoding=serialization.Encoding.PEM,
                    format=serialization.PublicFormat.SubjectPublicKeyInfo,
                )
                .decode("utf-8")
            )
            private_pem = private_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            ).decode("utf-8")
        except Exception as e:
            logger.error("key_generation_failed", extra={"error": str(e)})
            raise KeyGenerationError(f"Failed to generate key pair: {e}") from e

        pki_metrics.record_key_generated(time.time() - start_time)
        return KeyPair(public_key=public_pem, private_key=private_pem)
