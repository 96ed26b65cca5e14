"""
Device Provisioning

Obtains everything the device needs to open its broker session: a fresh key,
a client certificate issued for it, and the broker URL. Credentials can be
written to and read back from a directory.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import httpx

from .crypto import (
    certificate_fingerprint,
    certificate_matches_key,
    generate_csr,
    generate_device_key,
    load_client_certificate,
    private_key_to_pem,
)
from .errors import CryptoError
from .pairing import PairingContext, fetch_broker_url, fetch_credentials

logger = logging.getLogger(__name__)

KEY_FILE = "device.key"
CERT_FILE = "device.crt"
BROKER_URL_FILE = "broker_url.txt"


@dataclass(frozen=True)
class DeviceCredentials:
    """Material needed to connect to the broker."""
    private_key_pem: str
    certificate_pem: str
    broker_url: str

    @property
    def fingerprint(self) -> str:
        return certificate_fingerprint(load_client_certificate(self.certificate_pem))


async def provision_device(
    context: PairingContext,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: Optional[float] = None,
) -> DeviceCredentials:
    """
    Pair the device: generate a key, get it certified, discover the broker.

    Raises:
        PairingError: From either pairing request, or ``CryptoError`` if the
            returned certificate is invalid or was not issued for our key
    """
    private_key = generate_device_key()
    csr = generate_csr(context.realm, context.device_id, private_key)

    certificate_pem = await fetch_credentials(context, csr, transport=transport, timeout=timeout)

    certificate = load_client_certificate(certificate_pem)
    if not certificate_matches_key(certificate, private_key):
        raise CryptoError("Client certificate does not match the device key")

    broker_url = await fetch_broker_url(context, transport=transport, timeout=timeout)

    logger.info(
        f"Device {context.realm}/{context.device_id} provisioned, "
        f"certificate {certificate_fingerprint(certificate)[:16]}, broker {broker_url}"
    )

    return DeviceCredentials(
        private_key_pem=private_key_to_pem(private_key),
        certificate_pem=certificate_pem,
        broker_url=broker_url,
    )


def save_credentials(credentials: DeviceCredentials, directory: Union[str, Path]) -> Path:
    """Write key, certificate and broker URL to ``directory``."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    key_path = directory / KEY_FILE
    fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write(credentials.private_key_pem)

    (directory / CERT_FILE).write_text(credentials.certificate_pem)
    (directory / BROKER_URL_FILE).write_text(credentials.broker_url + "\n")

    logger.info(f"Credentials saved to {directory}")
    return directory


def load_credentials(directory: Union[str, Path]) -> Optional[DeviceCredentials]:
    """Read credentials saved by ``save_credentials``; ``None`` if any file is missing."""
    directory = Path(directory)
    paths = [directory / KEY_FILE, directory / CERT_FILE, directory / BROKER_URL_FILE]
    if not all(p.exists() for p in paths):
        return None

    key_path, cert_path, url_path = paths
    return DeviceCredentials(
        private_key_pem=key_path.read_text(),
        certificate_pem=cert_path.read_text(),
        broker_url=url_path.read_text().strip(),
    )
