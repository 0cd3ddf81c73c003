"""Local key-value store backed by Redis"""
import json
from typing import Any, Optional

from redis import asyncio as aioredis


class KeyValueStore:
    """JSON values under string keys in the device-local Redis instance."""

    def __init__(self, client: aioredis.Redis):
        self._client = client

    async def get(self, key: str) -> Optional[str]:
        return await self._client.get(key)

    async def set(self, key: str, value: str) -> None:
        await self._client.set(key, value)

    async def get_json(self, key: str) -> Any:
        raw = await self._client.get(key)
        return json.loads(raw) if raw is not None else None

    async def set_json(self, key: str, value: Any) -> None:
        await self._client.set(key, json.dumps(value))

    async def delete(self, *keys: str) -> None:
        if keys:
            await self._client.delete(*keys)
