"""
Database engine factory for the word store.

Usage:
    from db.engine import get_engine

    # Web server / long-lived processes (QueuePool from Config)
    engine = get_engine("web")

    # CLI one-shot commands (NullPool, fresh connection per operation)
    engine = get_engine("job")

Warmup with retry:
    - Exponential backoff (0.75s, 1.5s, 3s, 6s)
    - Fails fast after 4 attempts with clear error
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import NullPool

log = logging.getLogger(__name__)

# Module-level engine cache (per-process singletons)
_ENGINES: Dict[str, Engine] = {}


def _base_options() -> Dict[str, Any]:
    from config import Config

    return dict(getattr(Config, "SQLALCHEMY_ENGINE_OPTIONS", {}) or {})


def _warmup(engine: Engine, attempts: int = 4, base_sleep: float = 0.75) -> None:
    """
    Warm up database connection with exponential backoff retry.

    Raises:
        OperationalError: If all attempts fail
    """
    last_error: Optional[Exception] = None

    for i in range(attempts):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            log.info("db_warmup_success attempt=%d", i + 1)
            return
        except OperationalError as e:
            last_error = e
            sleep_s = base_sleep * (2 ** i)
            log.warning(
                "db_warmup_retry attempt=%d/%d sleep_s=%.2f err=%s",
                i + 1, attempts, sleep_s, str(e)[:100]
            )
            if i < attempts - 1:
                time.sleep(sleep_s)

    log.error("db_warmup_failed after %d attempts", attempts)
    raise last_error  # type: ignore[misc]


def get_engine(kind: str = "web", database_url: Optional[str] = None, warmup: bool = True) -> Engine:
    """
    Get a database engine configured for the specified use case.

    Args:
        kind: "web" (QueuePool, Config options) or "job" (NullPool)
        database_url: Override for Config's DATABASE_URL
        warmup: Run the SELECT 1 warmup before returning

    Returns:
        SQLAlchemy Engine instance (cached per-process and kind)

    Raises:
        ValueError: If kind is not "job" or "web"
        OperationalError: If database connection fails after retries
    """
    if kind not in ("job", "web"):
        raise ValueError("kind must be 'job' or 'web'")

    if kind in _ENGINES:
        return _ENGINES[kind]

    if database_url is None:
        from config import get_database_url
        database_url = get_database_url()

    opts = _base_options()
    connect_args = dict(opts.pop("connect_args", {}) or {})

    if kind == "job":
        engine = create_engine(
            database_url,
            poolclass=NullPool,
            connect_args=connect_args,
            pool_pre_ping=opts.get("pool_pre_ping", True),
        )
        log.info("db_engine_created kind=job poolclass=NullPool")
    else:
        engine = create_engine(database_url, connect_args=connect_args, **opts)
        log.info(
            "db_engine_created kind=web pool_size=%s max_overflow=%s",
            opts.get("pool_size", "default"),
            opts.get("max_overflow", "default")
        )

    if warmup:
        _warmup(engine)

    _ENGINES[kind] = engine
    return engine


def dispose_engines() -> None:
    """Dispose all cached engines (for testing/cleanup)."""
    for kind, engine in list(_ENGINES.items()):
        try:
            engine.dispose()
        except Exception as e:
            log.warning("db_engine_dispose_failed kind=%s err=%s", kind, e)
        del _ENGINES[kind]

    log.info("db_engines_disposed")
