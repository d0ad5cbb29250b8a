# lumen/store.py
"""Key-value store backends: memory, JSON file (asynctinydb) and Redis."""

import asyncio
import os
from collections import OrderedDict
from time import time
from typing import Protocol, Tuple

from asynctinydb import Query, TinyDB
from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError

from .errors import KeyNotFoundError, StoreError


class IStore(Protocol):
    """Interface for the key-value store."""

    async def get(self, key: str) -> str:
        """Return the value for key, raise KeyNotFoundError if absent."""
        ...

    async def set(self, key: str, value: str, ttl: int = 0) -> None:
        """Store value; ttl in seconds, 0 keeps it forever."""
        ...

    async def delete(self, key: str) -> None:
        ...

    async def close(self) -> None:
        ...


def _expires_at(ttl: int) -> float:
    return time() + ttl if ttl > 0 else 0


class MemoryStore:
    """In-process store with per-key TTL. Nothing survives the process."""

    def __init__(self):
        self.data: OrderedDict[str, Tuple[float, str]] = OrderedDict()
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str:
        async with self._lock:
            if key in self.data:
                expires, value = self.data[key]
                if not expires or time() < expires:
                    return value
                del self.data[key]
            raise KeyNotFoundError(key)

    async def set(self, key: str, value: str, ttl: int = 0) -> None:
        async with self._lock:
            self.data[key] = (_expires_at(ttl), value)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self.data.pop(key, None)

    async def close(self) -> None:
        pass


class FileStore:
    """JSON file store on asynctinydb; one document per key."""

    def __init__(self, path: str):
        self.path = path
        self.db = TinyDB(path)
        self.query = Query()

    async def get(self, key: str) -> str:
        result = await self.db.search(self.query.key == key)
        if not result:
            raise KeyNotFoundError(key)

        entry = result[0]
        if entry.get("expires") and time() >= entry["expires"]:
            await self.db.remove(self.query.key == key)
            raise KeyNotFoundError(key)
        return entry["value"]

    async def set(self, key: str, value: str, ttl: int = 0) -> None:
        entry = {"key": key, "value": str(value), "expires": _expires_at(ttl)}
        if await self.db.search(self.query.key == key):
            await self.db.update(entry, self.query.key == key)
        else:
            await self.db.insert(entry)

    async def delete(self, key: str) -> None:
        await self.db.remove(self.query.key == key)

    async def close(self) -> None:
        await self.db.close()


class RedisStore:
    def __init__(self, url: str):
        self.redis = Redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> str:
        try:
            value = await self.redis.get(key)
        except RedisError as ex:
            raise StoreError(f"redis get failed: {ex}") from ex
        if value is None:
            raise KeyNotFoundError(key)
        return value

    async def set(self, key: str, value: str, ttl: int = 0) -> None:
        try:
            await self.redis.set(key, value, ex=ttl if ttl > 0 else None)
        except RedisError as ex:
            raise StoreError(f"redis set failed: {ex}") from ex

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(key)
        except RedisError as ex:
            raise StoreError(f"redis delete failed: {ex}") from ex

    async def close(self) -> None:
        await self.redis.aclose()


class NamespacedStore:
    """Prefixes every key with "<namespace>:" before hitting the backend."""

    def __init__(self, store: IStore, namespace: str = "default"):
        self.store = store
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> str:
        logger.debug(f"getting {self._key(key)}")
        return await self.store.get(self._key(key))

    async def set(self, key: str, value: str, ttl: int = 0) -> None:
        logger.debug(f"setting {self._key(key)}")
        await self.store.set(self._key(key), value, ttl)

    async def delete(self, key: str) -> None:
        logger.debug(f"deleting {self._key(key)}")
        await self.store.delete(self._key(key))

    async def close(self) -> None:
        await self.store.close()


def open_store(url: str) -> IStore:
    """
    Create a store backend from a URL.

    Args:
        url: "memory://", "file:<path>" or "redis://..."

    Returns:
        Store instance
    """
    if url.startswith("memory:"):
        return MemoryStore()
    if url.startswith("file:"):
        path = os.path.expanduser(url[len("file:"):])
        if not path:
            raise StoreError(f"bad store url: {url}")
        return FileStore(path)
    if url.startswith(("redis://", "rediss://", "unix://")):
        return RedisStore(url)
    raise StoreError(f"unknown store backend: {url}")

