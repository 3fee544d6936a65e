import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from withdrawals._policy import MAX_ITEMS_PER_WITHDRAWAL, ORDER_CAPACITY, Policy

load_dotenv(Path.cwd() / ".env")

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def _get_int(name: str, fallback: int) -> int:
    raw_value = os.getenv(name)
    if not raw_value:
        return fallback
    try:
        return int(raw_value)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {raw_value!r}") from exc


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    order_capacity: int = ORDER_CAPACITY
    max_items: int = MAX_ITEMS_PER_WITHDRAWAL
    log_level: str = "INFO"
    environment: str = "development"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("WITHDRAWALS_DATABASE_URL", DEFAULT_DATABASE_URL),
            order_capacity=_get_int("WITHDRAWALS_ORDER_CAPACITY", ORDER_CAPACITY),
            max_items=_get_int("WITHDRAWALS_MAX_ITEMS", MAX_ITEMS_PER_WITHDRAWAL),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            environment=os.getenv("ENVIRONMENT", "development").lower(),
        )

    @property
    def is_production(self) -> bool:
        return self.environment in ("production", "staging")

    def policy(self) -> Policy:
        return Policy(capacity=self.order_capacity, max_items=self.max_items)
