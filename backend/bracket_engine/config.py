"""Runtime settings read from the environment (and an optional .env file)."""
import os
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    return int(raw)


def _backoff_env(name: str, default: Tuple[int, ...]) -> Tuple[int, ...]:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    return tuple(int(part) for part in raw.split(",") if part.strip())


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tournament.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Round-robin generation is O(N^2); keep organizer rosters bounded.
LEAGUE_MIN_PARTICIPANTS = 3
LEAGUE_MAX_PARTICIPANTS = _int_env("LEAGUE_MAX_PARTICIPANTS", 16)
KNOCKOUT_MIN_PARTICIPANTS = 4

# Bounded retry for serialization conflicts / deadlocks at the orchestrator
TX_RETRY_ATTEMPTS = _int_env("TX_RETRY_ATTEMPTS", 3)
TX_RETRY_BACKOFF_MS = _backoff_env("TX_RETRY_BACKOFF_MS", (50, 150, 300))

CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    CORS_ORIGINS.extend(o.strip() for o in _extra.split(",") if o.strip())
