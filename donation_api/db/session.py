import asyncio
import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from donation_api.db.base import Base

logger = logging.getLogger(__name__)

DISCONNECTED = "disconnected"
CONNECTING = "connecting"
CONNECTED = "connected"

STATE_LABELS = {
    DISCONNECTED: "Disconnected",
    CONNECTING: "Connecting",
    CONNECTED: "Connected",
}


def connection_hint(exc: Exception) -> Optional[str]:
    """map common connection failures to something an operator can act on."""
    message = str(exc).lower()
    if "could not translate host name" in message or "name or service not known" in message or "nodename nor servname" in message:
        return "check the database hostname in DATABASE_URL"
    if "password authentication failed" in message or "access denied" in message:
        return "check the database username and password"
    if "timeout" in message or "timed out" in message:
        return "check that the database accepts connections from this host"
    if "connection refused" in message:
        return "check that the database server is running and the port is right"
    return None


def is_connection_error(exc: Exception) -> bool:
    """failures that mean the store went away, as opposed to a bad write."""
    if isinstance(exc, OperationalError):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


class Database:
    """
    process-scoped store connection.

    The engine is built lazily by connect(); until a connect succeeds the
    store reports itself as not ready and callers must not touch sessions.
    """

    def __init__(
        self,
        url: str,
        connect_timeout: int = 5,
        pool_size: int = 10,
        max_overflow: int = 5,
        auto_create: bool = True,
        echo: bool = False,
        retry_interval: float = 10,
    ):
        self.url = url
        self.connect_timeout = connect_timeout
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.auto_create = auto_create
        self.echo = echo
        self.retry_interval = retry_interval
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None
        self.state = DISCONNECTED
        self._last_attempt = 0.0

    @property
    def is_ready(self) -> bool:
        return self.state == CONNECTED

    def ensure_ready(self) -> bool:
        """
        readiness check for the request path.

        A store that dropped after startup gets one reconnect attempt per
        retry interval; a store that never connected is left to the startup
        loop.
        """
        if self.is_ready:
            return True
        if self.engine is None or self.state == CONNECTING:
            return False
        if time.monotonic() - self._last_attempt < self.retry_interval:
            return False
        return self.connect()

    def mark_disconnected(self, exc: Exception) -> None:
        logger.error(f"Lost database connection: {exc}")
        self.state = DISCONNECTED

    @property
    def masked_url(self) -> str:
        try:
            return make_url(self.url).render_as_string(hide_password=True)
        except Exception:
            return "<unparseable database url>"

    def _build_engine(self) -> Engine:
        engine_kwargs: Dict[str, Any] = {
            "echo": self.echo,
            "pool_pre_ping": True,
            "future": True,
        }

        if self.url.startswith("sqlite"):
            # local/dev store; in-memory databases must share one connection
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in self.url:
                engine_kwargs["poolclass"] = StaticPool
            return create_engine(self.url, **engine_kwargs)

        engine_kwargs.update({
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_timeout": self.connect_timeout,
            "pool_recycle": 3600,
            "connect_args": {
                "connect_timeout": self.connect_timeout,
                "application_name": "donation_api",
            },
        })
        return create_engine(self.url, **engine_kwargs)

    def connect(self) -> bool:
        """single connection attempt; returns whether the store is ready."""
        self.state = CONNECTING
        self._last_attempt = time.monotonic()
        logger.info(f"Connecting to database at {self.masked_url}")
        try:
            if self.engine is None:
                self.engine = self._build_engine()
                self.SessionLocal = sessionmaker(
                    bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False
                )
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            if self.auto_create:
                # importing registers the tables on Base.metadata
                from donation_api.models import models  # noqa: F401
                Base.metadata.create_all(self.engine)
        except Exception as e:
            self.state = DISCONNECTED
            logger.error(f"Database connection error: {e}")
            hint = connection_hint(e)
            if hint:
                logger.error(f"Hint: {hint}")
            return False

        self.state = CONNECTED
        logger.info("Database connected successfully")
        return True

    async def connect_forever(self, retry_interval: float) -> None:
        """keep trying to connect on a fixed interval until it works."""
        while not await asyncio.to_thread(self.connect):
            logger.info(f"Retrying database connection in {retry_interval:g} seconds...")
            await asyncio.sleep(retry_interval)

    def describe(self) -> Dict[str, Any]:
        try:
            url = make_url(self.url)
            backend, host, port, name = url.get_backend_name(), url.host, url.port, url.database
        except Exception:
            backend = host = port = name = None
        return {
            "backend": backend or "unknown",
            "host": host or "Not connected",
            "port": port or "Unknown",
            "name": name or "No database selected",
            "url": self.masked_url,
            "state": self.state,
        }

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """provide a transactional scope around a series of operations."""
        if self.SessionLocal is None:
            raise RuntimeError("Database is not connected")
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.state = DISCONNECTED


def database_from_settings(settings) -> Database:
    return Database(
        settings.DATABASE_URL,
        connect_timeout=settings.DB_CONNECTION_TIMEOUT,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        auto_create=settings.DB_AUTO_CREATE,
        echo=False,
        retry_interval=settings.DB_RETRY_INTERVAL_SECONDS,
    )
