"""
Process-local key-value storage used for caching, rate limiting and reset tokens.

InMemoryStore keeps everything in this process only. Running several instances
needs a shared backend implementing KeyValueStore instead.
"""

import time
from collections import OrderedDict
from typing import Any, Protocol


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None: ...

    async def delete(self, key: str) -> bool: ...

    async def expire(self, key: str, ttl: float) -> bool: ...

    async def incr(self, key: str, amount: int = 1) -> int: ...


class InMemoryStore:
    def __init__(self, max_size: int = 1000, default_ttl: float = 300.0, clock=time.monotonic):
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()

    def __len__(self) -> int:
        self.cleanup()
        return len(self._entries)

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._is_expired(expires_at):
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_size:
            self.cleanup()
            if len(self._entries) >= self.max_size:
                # oldest insertion goes first
                self._entries.popitem(last=False)

        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (value, self._clock() + ttl if ttl > 0 else None)

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def expire(self, key: str, ttl: float) -> bool:
        if await self.get(key) is None:
            return False
        value, _ = self._entries[key]
        self._entries[key] = (value, self._clock() + ttl)
        return True

    async def incr(self, key: str, amount: int = 1) -> int:
        """Increments a counter, keeping the expiry of an existing entry."""
        current = await self.get(key)
        if current is None:
            await self.set(key, amount)
            return amount

        _, expires_at = self._entries[key]
        new_value = int(current) + amount
        self._entries[key] = (new_value, expires_at)
        return new_value

    def cleanup(self) -> int:
        expired = [key for key, (_, expires_at) in self._entries.items() if self._is_expired(expires_at)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def _is_expired(self, expires_at: float | None) -> bool:
        return expires_at is not None and self._clock() >= expires_at
