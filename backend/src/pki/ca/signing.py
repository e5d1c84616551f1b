"""Certificate signature strategies.

The signer is injected into the issuer and the verifier. Two implementations:

- PlaceholderSigner: 32 random bytes, hex. Not connected to the certificate
  content or to any key, so it proves nothing. This is the default.
- AuthoritySigner: signs the canonical encoding of the certificate fields with
  the authority private key (see KeyManager) and verifies it on lookup.
"""

import json
import secrets
from typing import Protocol

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

from pki.ca.key_manager import KeyManager
from pki.domain.states import SignatureMode
from shared.config import Settings, settings


def canonical_payload(fields: dict[str, str]) -> bytes:
    """Deterministic byte encoding of the signed certificate fields."""
    return json.dumps(fields, sort_keys=True, separators=(",", ":")).encode("utf-8")


class CertificateSigner(Protocol):
    mode: SignatureMode

    def sign(self, payload: bytes) -> str: ...

    def verify(self, payload: bytes, signature: str) -> bool: ...


class PlaceholderSigner:
    """Random signature token with no cryptographic meaning."""

    mode = SignatureMode.PLACEHOLDER
    TOKEN_BYTES = 32

    def sign(self, payload: bytes) -> str:
        return secrets.token_hex(self.TOKEN_BYTES)

    def verify(self, payload: bytes, signature: str) -> bool:
        # Nothing to check against
        return True


class AuthoritySigner:
    """Signs certificates with the authority key (RSA PKCS#1 v1.5 or ECDSA, SHA-256)."""

    mode = SignatureMode.AUTHORITY

    def __init__(self, private_key: PrivateKeyTypes) -> None:
        if not isinstance(private_key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
            raise TypeError(f"Unsupported authority key type: {type(private_key).__name__}")
        self._private_key = private_key
        self._public_key = private_key.public_key()

    def sign(self, payload: bytes) -> str:
        if isinstance(self._private_key, rsa.RSAPrivateKey):
            raw = self._private_key.sign(payload, padding.PKCS1v15(), hashes.SHA256())
        else:
            raw = self._private_key.sign(payload, ec.ECDSA(hashes.SHA256()))
        return raw.hex()

    def verify(self, payload: bytes, signature: str) -> bool:
        try:
            raw = bytes.fromhex(signature)
        except ValueError:
            return False

        try:
            if isinstance(self._public_key, rsa.RSAPublicKey):
                self._public_key.verify(raw, payload, padding.PKCS1v15(), hashes.SHA256())
            else:
                self._public_key.verify(raw, payload, ec.ECDSA(hashes.SHA256()))
        except InvalidSignature:
            return False
        return True


def build_signer(config: Settings | None = None) -> CertificateSigner:
    """Create the signer selected by SIGNATURE_MODE.

    Raises:
        KeyManagerError: If the authority key cannot be loaded.
    """
    config = config or settings
    if config.SIGNATURE_MODE is SignatureMode.AUTHORITY:
        authority_key = KeyManager(config).load_or_generate()
        return AuthoritySigner(authority_key.private_key)
    return PlaceholderSigner()
