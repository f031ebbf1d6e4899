"""Process-wide SQLAlchemy engine for LLM cost records.

The matching core itself is stateless; the only table it writes is llm_costs,
and only when OpenRouterResource.persist_costs is on. The engine uses NullPool:
connections are opened on demand and returned immediately after use, so a
ranking run holds no idle connections.

DATABASE_URL wins when set; otherwise the URL is built from POSTGRES_* variables.
"""

import os
import threading

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool


_lock = threading.Lock()
_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def _build_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    user = os.getenv("POSTGRES_USER", "jobsync")
    password = os.getenv("POSTGRES_PASSWORD", "jobsync_dev")
    database = os.getenv("POSTGRES_DB", "jobsync")
    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


def get_engine() -> Engine:
    """Return the process-wide SQLAlchemy engine, creating it on first call."""
    global _engine, _session_factory
    if _engine is None:
        with _lock:
            if _engine is None:
                _engine = create_engine(_build_url(), poolclass=NullPool)
                _session_factory = sessionmaker(bind=_engine)
    return _engine


def get_session() -> Session:
    """Create a new session from the shared engine."""
    get_engine()
    return _session_factory()
