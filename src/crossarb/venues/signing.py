"""RSA-PSS request signing for the Kalshi API."""

from __future__ import annotations

import base64
from typing import Callable

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

# signer(timestamp_ms, method, path) -> base64 signature
RequestSigner = Callable[[str, str, str], str]


def load_private_key(pem: str | bytes) -> rsa.RSAPrivateKey:
    """Load an unencrypted PKCS#1 or PKCS#8 PEM key. Raises ValueError if it is not RSA."""
    data = pem.encode() if isinstance(pem, str) else pem
    key = serialization.load_pem_private_key(data, password=None)
    if not isinstance(key, rsa.RSAPrivateKey):
        raise ValueError("Kalshi signing key must be an RSA private key")
    return key


def rsa_pss_signer(private_key: rsa.RSAPrivateKey) -> RequestSigner:
    """Signs timestamp + method + path (no query string) with RSA-PSS/SHA-256."""

    def sign(timestamp: str, method: str, path: str) -> str:
        message = f"{timestamp}{method}{path}".encode()
        signature = private_key.sign(
            message,
            padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=padding.PSS.DIGEST_LENGTH),
            hashes.SHA256(),
        )
        return base64.b64encode(signature).decode()

    return sign
