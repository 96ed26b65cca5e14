"""
Typed Values and Payload Codec

A payload is either an individual value or an object aggregate. An empty
payload carries the explicit ``UNSET`` marker, which is how an unset
property is represented both on the wire and in the property cache.
"""

import base64
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Protocol, Union


class Unset:
    """Marker for a property that was explicitly unset."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = Unset()


@dataclass(frozen=True)
class Individual:
    """A single value (scalar, array of scalars, or ``UNSET``)."""
    value: Any


@dataclass(frozen=True)
class Aggregate:
    """An object aggregate: several named values sent together."""
    values: Dict[str, Any]


TypedValue = Union[Individual, Aggregate]


class PayloadCodec(Protocol):
    """Converts typed values to and from payload bytes."""

    def encode_individual(self, value: Any) -> bytes: ...

    def encode_object(self, values: Dict[str, Any]) -> bytes: ...

    def decode(self, payload: bytes) -> TypedValue: ...


# Tags for values JSON has no native type for
_BINARY_TAG = "$binary"
_DATETIME_TAG = "$date"


def _to_json(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return {_BINARY_TAG: base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, datetime):
        return {_DATETIME_TAG: value.isoformat()}
    if isinstance(value, (list, tuple)):
        return [_to_json(v) for v in value]
    return value


def _from_json(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value) == {_BINARY_TAG}:
            return base64.b64decode(value[_BINARY_TAG])
        if set(value) == {_DATETIME_TAG}:
            return datetime.fromisoformat(value[_DATETIME_TAG])
        return {k: _from_json(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_json(v) for v in value]
    return value


def _is_tagged(value: Any) -> bool:
    return isinstance(value, dict) and set(value) in ({_BINARY_TAG}, {_DATETIME_TAG})


class JsonPayloadCodec:
    """Reference codec storing ``{"v": value}`` documents as UTF-8 JSON.

    Binary blobs and datetimes are tagged so they survive a round trip.
    """

    def encode_individual(self, value: Any) -> bytes:
        if value is UNSET:
            return b""
        if isinstance(value, dict):
            raise ValueError("individual values cannot be mappings, use encode_object()")
        return self._dump(_to_json(value))

    def encode_object(self, values: Dict[str, Any]) -> bytes:
        if not values:
            raise ValueError("object aggregates need at least one value")
        return self._dump({k: _to_json(v) for k, v in values.items()})

    def decode(self, payload: bytes) -> TypedValue:
        if not payload:
            return Individual(UNSET)

        document = json.loads(bytes(payload).decode("utf-8"))
        if not isinstance(document, dict) or "v" not in document:
            raise ValueError("payload is not a value document")

        raw = document["v"]
        if isinstance(raw, dict) and not _is_tagged(raw):
            return Aggregate(_from_json(raw))
        return Individual(_from_json(raw))

    @staticmethod
    def _dump(value: Any) -> bytes:
        return json.dumps({"v": value}, separators=(",", ":"), sort_keys=True).encode("utf-8")
