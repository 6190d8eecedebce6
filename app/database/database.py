from sqlalchemy import create_engine, text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import sessionmaker, declarative_base
from app.core.config import settings
from typing import Optional
import threading
import time
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()


class EngineCache:
    """
    Cache del engine de base de datos con tiempo de vida.

    El engine se recrea cuando supera el TTL configurado o cuando una
    operación marcó la conexión como inválida (invalidate()).
    """

    def __init__(self, ttl_seconds: int = 300):
        self.ttl_seconds = ttl_seconds
        self._engine = None
        self._session_factory = None
        self._created_at: Optional[float] = None
        self._status: Optional[dict] = None
        self._lock = threading.Lock()

    def _expired(self, now: float) -> bool:
        return self._created_at is None or (now - self._created_at) >= self.ttl_seconds

    def _build_engine(self):
        url = settings.database_url
        kwargs = {"pool_pre_ping": True, "echo": settings.DEBUG and settings.ENVIRONMENT == "development"}
        if not url.startswith("sqlite"):
            kwargs.update(pool_size=settings.DB_POOL_SIZE, max_overflow=settings.DB_MAX_OVERFLOW)
        return create_engine(url, **kwargs)

    def get_engine(self):
        now = time.monotonic()
        with self._lock:
            if self._engine is None or self._expired(now):
                if self._engine is not None:
                    logger.info("Database client expired after %ss, recreating", self.ttl_seconds)
                    self._engine.dispose()
                self._engine = self._build_engine()
                self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
                self._created_at = now
                self._status = None
                logger.debug("Database client created")
            return self._engine

    def get_session_factory(self):
        self.get_engine()
        return self._session_factory

    def invalidate(self, reason: Optional[str] = None):
        with self._lock:
            if self._engine is not None:
                logger.warning(f"Invalidating database client: {reason or 'unknown reason'}")
                self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self._created_at = None
            self._status = {"healthy": False, "lastChecked": time.time(), "error": reason} if reason else None

    def status(self) -> dict:
        age = None
        if self._created_at is not None:
            age = round(time.monotonic() - self._created_at, 2)
        return {
            "cached": self._engine is not None,
            "ageSeconds": age,
            "ttlSeconds": self.ttl_seconds,
        }

    @property
    def last_check(self) -> Optional[dict]:
        return self._status

    def record_check(self, healthy: bool, error: Optional[str] = None) -> dict:
        status = {"healthy": healthy, "lastChecked": time.time()}
        if error:
            status["error"] = error
        self._status = status
        return status


engine_cache = EngineCache(ttl_seconds=settings.DB_CLIENT_TTL_SECONDS)


def get_engine():
    return engine_cache.get_engine()


def invalidate_engine(reason: Optional[str] = None):
    engine_cache.invalidate(reason)


def get_engine_status() -> dict:
    return engine_cache.status()


def _is_connection_failure(error: Exception) -> bool:
    if isinstance(error, OperationalError):
        return True
    return isinstance(error, DBAPIError) and bool(getattr(error, "connection_invalidated", False))


def find_connection_failure(error: Optional[BaseException]) -> Optional[BaseException]:
    """
    Busca un error de conexión en la cadena de excepciones. Los servicios
    convierten los errores de base de datos en HTTPException 500, así que el
    error original queda en __cause__ o __context__.
    """
    seen = set()
    while error is not None and id(error) not in seen:
        if _is_connection_failure(error):
            return error
        seen.add(id(error))
        error = error.__cause__ or error.__context__
    return None


def get_db():
    """Genera una sesión de base de datos a partir del engine cacheado."""
    db = engine_cache.get_session_factory()()
    try:
        yield db
    except Exception as e:
        failure = find_connection_failure(e)
        if failure is not None:
            logger.error(f"Database connection error: {failure}")
            invalidate_engine(str(failure))
            db.rollback()
        raise
    finally:
        db.close()


def check_database_connection() -> dict:
    """Ejecuta SELECT 1 contra la base de datos y registra el resultado."""
    try:
        with get_engine().connect() as connection:
            connection.execute(text("SELECT 1"))
        return engine_cache.record_check(True)
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        invalidate_engine(str(e))
        return engine_cache.record_check(False, str(e))
