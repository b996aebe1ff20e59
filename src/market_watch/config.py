"""Runtime settings read from the environment (and a local .env file, if any)."""
import json
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

_DEFAULT_DB_URL = "sqlite:///./market_watch.db"


def _load_dotenv(path: str = ".env") -> None:
    """Populate os.environ from a .env file without overriding real env vars."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw in env_path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip().strip('"').strip("'"))


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%r; using %s", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid number for %s=%r; using %s", name, raw, default)
        return default


def _env_dict(name: str) -> dict[str, str]:
    raw = os.getenv(name)
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Invalid JSON for %s; ignoring", name)
        return {}
    if not isinstance(parsed, dict):
        return {}
    return {str(k): str(v) for k, v in parsed.items()}


@dataclass(frozen=True)
class Settings:
    """All tunables for ingestion, caching, alert evaluation and delivery."""

    log_level: str = "INFO"
    database_url: str = _DEFAULT_DB_URL
    sql_echo: bool = False

    # Price cache
    redis_url: str = ""
    cache_ttl_seconds: int = 600
    broadcast_max_items: int = 50

    # Ingestion
    scheduler_enabled: bool = True
    ingestion_interval_seconds: float = 10.0

    coingecko_api_key: str = ""
    coingecko_use_pro: bool = False
    coingecko_page_size: int = 250
    coingecko_timeout_seconds: float = 10.0

    equity_source: str = "finnhub"
    finnhub_api_key: str = ""
    finnhub_api_url: str = "https://finnhub.io/api/v1"
    equity_batch_size: int = 5
    equity_batch_delay_seconds: float = 1.5
    equity_request_timeout_seconds: float = 5.0
    equity_min_resolved_ratio: float = 0.5

    # Alert evaluation
    evaluation_interval_seconds: float = 300.0

    # Notifications
    notification_queue_size: int = 100
    notification_workers: int = 4
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    email_from: str = ""
    dashboard_url: str = "http://localhost:3000/dashboard"
    user_emails: dict[str, str] = field(default_factory=dict)

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process."""
    _load_dotenv()
    finnhub_key = _env("FINNHUB_API_KEY")
    return Settings(
        log_level=_env("LOG_LEVEL", "INFO"),
        database_url=_env("DATABASE_URL", _DEFAULT_DB_URL),
        sql_echo=_env_bool("SQL_ECHO", False),
        redis_url=_env("REDIS_URL"),
        cache_ttl_seconds=_env_int("CACHE_TTL_SECONDS", 600),
        broadcast_max_items=_env_int("BROADCAST_MAX_ITEMS", 50),
        scheduler_enabled=_env_bool("SCHEDULER_ENABLED", True),
        ingestion_interval_seconds=_env_float("INGESTION_INTERVAL_SECONDS", 10.0),
        coingecko_api_key=_env("COINGECKO_API_KEY"),
        coingecko_use_pro=_env_bool("COINGECKO_USE_PRO", False),
        coingecko_page_size=_env_int("COINGECKO_PAGE_SIZE", 250),
        coingecko_timeout_seconds=_env_float("COINGECKO_TIMEOUT_SECONDS", 10.0),
        equity_source=_env("EQUITY_SOURCE", "finnhub" if finnhub_key else "yfinance").lower(),
        finnhub_api_key=finnhub_key,
        finnhub_api_url=_env("FINNHUB_API_URL", "https://finnhub.io/api/v1"),
        equity_batch_size=_env_int("EQUITY_BATCH_SIZE", 5),
        equity_batch_delay_seconds=_env_float("EQUITY_BATCH_DELAY_SECONDS", 1.5),
        equity_request_timeout_seconds=_env_float("EQUITY_REQUEST_TIMEOUT_SECONDS", 5.0),
        equity_min_resolved_ratio=_env_float("EQUITY_MIN_RESOLVED_RATIO", 0.5),
        evaluation_interval_seconds=_env_float("EVALUATION_INTERVAL_SECONDS", 300.0),
        notification_queue_size=_env_int("NOTIFICATION_QUEUE_SIZE", 100),
        notification_workers=_env_int("NOTIFICATION_WORKERS", 4),
        smtp_host=_env("EMAIL_HOST", "smtp.gmail.com"),
        smtp_port=_env_int("EMAIL_PORT", 587),
        smtp_user=_env("EMAIL_USER"),
        smtp_password=_env("EMAIL_PASS"),
        email_from=_env("EMAIL_FROM"),
        dashboard_url=_env("DASHBOARD_URL", "http://localhost:3000/dashboard"),
        user_emails=_env_dict("USER_EMAILS"),
    )
