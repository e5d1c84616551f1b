"""Authority key management for signing certificates.

Sources, in priority order:
- File (CA_KEY_PATH)
- Environment (CA_KEY_PEM, base64 encoded PEM)
- Generate new (written to CA_KEY_PATH if set)

Only used when SIGNATURE_MODE=authority.
"""

import base64
import logging
from dataclasses import dataclass
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from opentelemetry import trace

from shared.config import Settings, settings

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class KeyManagerError(Exception):
    """Raised when authority key management fails."""

    pass


@dataclass
class AuthorityKey:
    """Holds the authority private key and where it came from."""

    private_key: PrivateKeyTypes
    storage_type: str  # "file", "env", or "generated"

    @property
    def algorithm(self) -> str:
        if isinstance(self.private_key, rsa.RSAPrivateKey):
            return f"RSA-{self.private_key.key_size}"
        elif isinstance(self.private_key, ec.EllipticCurvePrivateKey):
            return f"ECDSA-{self.private_key.curve.name}"
        return "UNKNOWN"


class KeyManager:
    """Loads or generates the authority signing key."""

    DEFAULT_ALGORITHM = "RSA"
    RSA_KEY_SIZE = 4096
    ECDSA_CURVE = ec.SECP384R1()

    def __init__(self, config: Settings | None = None) -> None:
        self._config = config or settings
        self._key: AuthorityKey | None = None

    @property
    def key(self) -> AuthorityKey:
        """Get loaded authority key. Raises if not loaded."""
        if self._key is None:
            raise KeyManagerError("Authority key not loaded. Call load_or_generate() first.")
        return self._key

    def load_or_generate(self) -> AuthorityKey:
        """Load the authority key from the configured source or generate a new one.

        Raises:
            KeyManagerError: If loading fails.
        """
        with tracer.start_as_current_span("KeyManager.load_authority_key") as span:
            key = self._try_load_from_file() or self._try_load_from_env() or self._generate_new()

            span.set_attribute("storage_type", key.storage_type)
            span.set_attribute("algorithm", key.algorithm)

            self._key = key
            logger.info(
                "authority_key_loaded",
                extra={"storage_type": key.storage_type, "algorithm": key.algorithm},
            )
            return key

    def _try_load_from_file(self) -> AuthorityKey | None:
        key_path = self._config.CA_KEY_PATH
        if not key_path:
            return None

        key_file = Path(key_path)
        if not key_file.exists():
            logger.debug("Authority key file not found", extra={"key_path": key_path})
            return None

        try:
            private_key = serialization.load_pem_private_key(key_file.read_bytes(), password=None)
        except Exception as e:
            logger.error(
                "authority_key_load_failed",
                extra={"storage_type": "file", "error": str(e)},
            )
            raise KeyManagerError(f"Failed to load authority key from file: {e}") from e

        return AuthorityKey(private_key=private_key, storage_type="file")

    def _try_load_from_env(self) -> AuthorityKey | None:
        key_b64 = self._config.CA_KEY_PEM
        if not key_b64:
            return None

        try:
            private_key = serialization.load_pem_private_key(
                base64.b64decode(key_b64), password=None
            )
        except Exception as e:
            logger.error(
                "authority_key_load_failed",
                extra={"storage_type": "env", "error": str(e)},
            )
            raise KeyManagerError(f"Failed to load authority key from environment: {e}") from e

        return AuthorityKey(private_key=private_key, storage_type="env")

    def _generate_new(self) -> AuthorityKey:
        algorithm = (self._config.CA_ALGORITHM or self.DEFAULT_ALGORITHM).upper()

        logger.info("Generating new authority key", extra={"algorithm": algorithm})

        if algorithm == "ECDSA":
            private_key: PrivateKeyTypes = ec.generate_private_key(self.ECDSA_CURVE)
        else:
            private_key = rsa.generate_private_key(
                public_exponent=65537,
                key_size=self.RSA_KEY_SIZE,
            )

        key = AuthorityKey(private_key=private_key, storage_type="generated")
        self._try_save_to_file(key)
        return key

    def _try_save_to_file(self, key: AuthorityKey) -> None:
        key_path = self._config.CA_KEY_PATH
        if not key_path:
            logger.warning("Authority key generated but not saved - set CA_KEY_PATH to persist")
            return

        try:
            key_pem = key.private_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
            Path(key_path).write_bytes(key_pem)
            logger.info("Authority key saved to file", extra={"key_path": key_path})
        except OSError as e:
            logger.warning("Failed to save authority key to file", extra={"error": str(e)})
