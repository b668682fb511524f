import hashlib

from src.app.services.auth.rate_limit_storage import IRateLimitStorage
from src.app.services.auth.rate_limiter import RateLimiter

KEY_PREFIX = "resend_verify_"


def email_key(email: str) -> str:
    """Rate-limit key for an email address; the address itself is never stored"""
    digest = hashlib.sha256(email.strip().lower().encode()).hexdigest()
    return f"email:{digest}"


def ip_key(ip: str) -> str:
    return f"ip:{ip}"


class ResendVerificationThrottle:
    """
    Combined IP and email throttle for "resend verification email" requests.

    Defaults: 5 requests per IP and 1 request per email address, each per
    5-minute window. Both windows must allow the request.

    The IP counter is incremented before the email window is checked and is
    not rolled back when the email window rejects the request.
    """

    def __init__(
        self,
        storage: IRateLimitStorage,
        ip_limit: int = 5,
        ip_window: int = 300,
        email_limit: int = 1,
        email_window: int = 300,
        key_prefix: str = KEY_PREFIX,
    ):
        self.limiter = RateLimiter(storage, key_prefix=key_prefix)
        self.ip_limit = ip_limit
        self.ip_window = ip_window
        self.email_limit = email_limit
        self.email_window = email_window

    @property
    def storage(self) -> IRateLimitStorage:
        return self.limiter.storage

    async def allow(self, ip: str, email: str) -> bool:
        if not await self.limiter.allow(ip_key(ip), self.ip_limit, self.ip_window):
            return False
        return await self.limiter.allow(email_key(email), self.email_limit, self.email_window)

    async def get_remaining_ip_attempts(self, ip: str) -> int:
        return await self.limiter.get_remaining_attempts(ip_key(ip), self.ip_limit, self.ip_window)

    async def get_remaining_email_attempts(self, email: str) -> int:
        return await self.limiter.get_remaining_attempts(
            email_key(email), self.email_limit, self.email_window
        )

    async def get_ip_reset_time(self, ip: str) -> int:
        return await self.limiter.get_reset_time(ip_key(ip), self.ip_window)

    async def get_email_reset_time(self, email: str) -> int:
        return await self.limiter.get_reset_time(email_key(email), self.email_window)

    async def reset_ip(self, ip: str) -> None:
        await self.limiter.reset(ip_key(ip))

    async def reset_email(self, email: str) -> None:
        await self.limiter.reset(email_key(email))

    async def clear(self) -> None:
        await self.limiter.clear()
