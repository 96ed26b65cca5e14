"""
Device Identity and Property State

This package provides the persistent property cache of a device client and
the pairing client used to obtain its certificate and broker URL.
"""

__version__ = "0.1.0"

from .database import MEMORY_URL, PropertyStore, SqlitePropertyStore, StoredProperty
from .errors import (
    AggregateInPropertyError,
    ApiError,
    CryptoError,
    InvalidCredentialsError,
    InvalidUrlError,
    PairingError,
    PropertyStoreError,
    RequestError,
    UnexpectedResponseError,
)
from .memory_store import MemoryPropertyStore
from .pairing import build_pairing_url, fetch_broker_url, fetch_credentials
from .provisioning import DeviceCredentials, provision_device
from .types import UNSET, Aggregate, Individual, JsonPayloadCodec, PayloadCodec, Unset

__all__ = [
    "MEMORY_URL",
    "PropertyStore",
    "SqlitePropertyStore",
    "MemoryPropertyStore",
    "StoredProperty",
    "PropertyStoreError",
    "AggregateInPropertyError",
    "PairingError",
    "InvalidCredentialsError",
    "InvalidUrlError",
    "RequestError",
    "UnexpectedResponseError",
    "ApiError",
    "CryptoError",
    "build_pairing_url",
    "fetch_credentials",
    "fetch_broker_url",
    "DeviceCredentials",
    "provision_device",
    "UNSET",
    "Unset",
    "Individual",
    "Aggregate",
    "PayloadCodec",
    "JsonPayloadCodec",
]
