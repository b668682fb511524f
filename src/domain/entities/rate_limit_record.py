"""
RateLimitRecord Entity

Fixed-window request counter for one rate-limit key.
"""

from datetime import datetime

from sqlmodel import Column, DateTime, Field, Index, SQLModel


class RateLimitRecord(SQLModel, table=True):
    """
    One counter per key, e.g. ``resend_verify_ip:10.0.0.1``.

    Business Rules:
    - count is only changed by single-statement UPDATEs (count = count + 1)
    - The window restarts lazily on the first hit after reset_at
    """

    __tablename__ = "rate_limits"

    key: str = Field(primary_key=True, max_length=255)
    count: int = Field(default=0)
    window_started_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    reset_at: datetime = Field(sa_column=Column(DateTime, nullable=False))

    __table_args__ = (Index("idx_rate_limit_reset_at", "reset_at"),)
