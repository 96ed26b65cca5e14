"""
In-memory property store, for tests and devices without persistent storage.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from .database import StoredProperty
from .errors import AggregateInPropertyError
from .types import Aggregate, JsonPayloadCodec, PayloadCodec

logger = logging.getLogger(__name__)


class MemoryPropertyStore:
    """Property store keeping rows in a dict; nothing survives the process."""

    def __init__(self, codec: Optional[PayloadCodec] = None):
        self.codec: PayloadCodec = codec or JsonPayloadCodec()
        self._rows: Dict[Tuple[str, str], StoredProperty] = {}

    async def store_property(self, interface: str, path: str, value: bytes, interface_major: int) -> None:
        if not value:
            logger.debug(f"Unsetting {interface} {path}")
        self._rows[(interface, path)] = StoredProperty(interface, path, bytes(value), interface_major)

    async def load_property(self, interface: str, path: str, interface_major: int) -> Optional[Any]:
        row = self._rows.get((interface, path))
        if row is None:
            return None

        if row.interface_major != interface_major:
            await self.delete_property(interface, path)
            return None

        data = self.codec.decode(row.value)
        if isinstance(data, Aggregate):
            raise AggregateInPropertyError(interface, path)
        return data.value

    async def delete_property(self, interface: str, path: str) -> None:
        self._rows.pop((interface, path), None)

    async def clear(self) -> None:
        self._rows.clear()

    async def list_all_properties(self) -> List[StoredProperty]:
        return [self._rows[key] for key in sorted(self._rows)]
