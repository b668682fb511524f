from src.app.services.auth.rate_limit_storage import IRateLimitStorage


class RateLimiter:
    """Namespaces rate-limit keys with a prefix and delegates to a storage backend"""

    def __init__(self, storage: IRateLimitStorage, key_prefix: str = ""):
        self.storage = storage
        self.key_prefix = key_prefix

    def key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        return await self.storage.allow(self.key(key), limit, window_seconds)

    async def get_remaining_attempts(self, key: str, limit: int, window_seconds: int) -> int:
        return await self.storage.get_remaining_attempts(self.key(key), limit, window_seconds)

    async def get_reset_time(self, key: str, window_seconds: int) -> int:
        return await self.storage.get_reset_time(self.key(key), window_seconds)

    async def reset(self, key: str) -> None:
        await self.storage.reset(self.key(key))

    async def clear(self) -> None:
        await self.storage.clear()
