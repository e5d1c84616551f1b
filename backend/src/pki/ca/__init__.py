"""Certificate Authority primitives for the PKI service.

This module provides:
- Per-request RSA key pair generation
- Certificate signature strategies (placeholder and authority-backed)
- Authority key management (loading, generation, storage)
"""

from pki.ca.key_generator import KeyGenerator, KeyPair
from pki.ca.key_manager import KeyManager
from pki.ca.signing import AuthoritySigner, CertificateSigner, PlaceholderSigner

__all__ = [
    "AuthoritySigner",
    "CertificateSigner",
    "KeyGenerator",
    "KeyManager",
    "KeyPair",
    "PlaceholderSigner",
]
