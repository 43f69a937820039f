"""
Engine y fábrica de sesiones SQLAlchemy (una sola instancia por proceso).
"""
from typing import Any, Dict, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker

from catalog_api.config import get_settings


def engine_options(database_url: str, debug: bool = False) -> Dict[str, Any]:
    """
    Argumentos de create_engine según el motor.

    SQLite (desarrollo y tests) no admite pool_size ni max_overflow y
    necesita compartir la conexión entre hilos del servidor.
    """
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}, "echo": debug}
    return {
        "pool_pre_ping": True,
        "pool_recycle": 3600,
        "pool_size": 5,
        "max_overflow": 10,
        "echo": debug,
    }


class DatabaseConnection:
    """
    Singleton que guarda el engine y el sessionmaker del proceso.
    """
    _instance: Optional["DatabaseConnection"] = None
    _engine: Optional[Engine] = None
    _session_factory: Optional[sessionmaker] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._engine is not None:
            return
        settings = get_settings()
        self._engine = create_engine(
            settings.DATABASE_URL, **engine_options(settings.DATABASE_URL, settings.DEBUG)
        )
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        return self._session_factory

    def close(self) -> None:
        """Liberar las conexiones del pool."""
        if self._engine is not None:
            self._engine.dispose()


_db = DatabaseConnection()

engine = _db.engine
SessionLocal = _db.session_factory


def get_db_connection() -> DatabaseConnection:
    """Instancia única de la conexión."""
    return _db
