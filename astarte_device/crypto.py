"""
Device Key and Certificate Material

Generates the device key pair and the certificate signing request sent to the
pairing API, and validates the client certificate that comes back.
"""

import logging
from typing import Optional

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from .errors import CryptoError

logger = logging.getLogger(__name__)


def generate_device_key() -> ec.EllipticCurvePrivateKey:
    """Generate a new P-384 device key."""
    return ec.generate_private_key(ec.SECP384R1())


def private_key_to_pem(private_key: ec.EllipticCurvePrivateKey) -> str:
    """Serialize a private key as unencrypted PKCS#8 PEM."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


def load_private_key(pem: str) -> ec.EllipticCurvePrivateKey:
    """Load a PEM private key written by ``private_key_to_pem``."""
    try:
        key = serialization.load_pem_private_key(pem.encode(), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CryptoError(f"Invalid device private key: {e}") from e

    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise CryptoError(f"Unsupported device key type: {type(key).__name__}")
    return key


def generate_csr(realm: str, device_id: str, private_key: Optional[ec.EllipticCurvePrivateKey] = None) -> str:
    """
    Build a certificate signing request for the device.

    The subject common name is ``{realm}/{device_id}``.

    Args:
        realm: Realm the device belongs to
        device_id: Device identifier
        private_key: Key to sign with; a new one is generated if omitted

    Returns:
        str: PEM encoded CSR

    Raises:
        CryptoError: If the CSR cannot be built or signed
    """
    if private_key is None:
        private_key = generate_device_key()

    try:
        subject = x509.Name([
            x509.NameAttribute(NameOID.COMMON_NAME, f"{realm}/{device_id}"),
        ])
        csr = (
            x509.CertificateSigningRequestBuilder()
            .subject_name(subject)
            .sign(private_key, hashes.SHA256())
        )
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CryptoError(f"Cannot build CSR for {realm}/{device_id}: {e}") from e

    logger.debug(f"Generated CSR for {realm}/{device_id}")
    return csr.public_bytes(serialization.Encoding.PEM).decode()


def load_client_certificate(pem: str) -> x509.Certificate:
    """
    Parse the client certificate returned by the pairing API.

    Raises:
        CryptoError: If the PEM does not hold a valid X.509 certificate
    """
    try:
        return x509.load_pem_x509_certificate(pem.encode("utf-8"))
    except (ValueError, TypeError) as e:
        raise CryptoError(f"Invalid client certificate: {e}") from e


def certificate_fingerprint(certificate: x509.Certificate) -> str:
    """SHA-256 fingerprint of a certificate, hex encoded."""
    return certificate.fingerprint(hashes.SHA256()).hex()


def certificate_matches_key(certificate: x509.Certificate, private_key: ec.EllipticCurvePrivateKey) -> bool:
    """Check that the certificate was issued for the given key."""
    fmt = serialization.PublicFormat.SubjectPublicKeyInfo
    return (
        certificate.public_key().public_bytes(serialization.Encoding.DER, fmt)
        == private_key.public_key().public_bytes(serialization.Encoding.DER, fmt)
    )
