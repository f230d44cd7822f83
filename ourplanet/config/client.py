# ourplanet/config/client.py

import os
from dataclasses import dataclass

from dotenv import load_dotenv

EONET_API = "https://eonet.gsfc.nasa.gov/api/v2.1"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class ClientConfig:
    api_base: str = EONET_API
    days: int = 360
    concurrency: int = 2
    timeout_seconds: int = 30
    user_agent: str = "ourplanet/0.1 (+https://eonet.gsfc.nasa.gov)"

    def __post_init__(self) -> None:
        if self.days <= 0:
            raise ValueError("days must be > 0")
        if self.concurrency <= 0:
            raise ValueError("concurrency must be > 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")

    @classmethod
    def from_env(cls) -> "ClientConfig":
        load_dotenv()
        defaults = cls()
        return cls(
            api_base=os.getenv("EONET_API", defaults.api_base),
            days=_env_int("EONET_DAYS", defaults.days),
            concurrency=_env_int("EONET_CONCURRENCY", defaults.concurrency),
            timeout_seconds=_env_int("EONET_TIMEOUT", defaults.timeout_seconds),
        )
