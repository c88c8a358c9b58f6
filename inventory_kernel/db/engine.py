"""
Engine and session management.

One engine per process, initialised from a URL or from ``InventoryConfig``.
Callers that own the transaction boundary use ``session_scope()``; services
only ever flush.

PostgreSQL runs at READ COMMITTED and relies on ``SELECT ... FOR UPDATE`` on
balance and movement rows.  SQLite is accepted for local runs and tests: the
pysqlite driver is put in autocommit mode and BEGIN is issued explicitly so
that SAVEPOINT works, and foreign keys are switched on per connection.
"""

import atexit
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from inventory_kernel.config import InventoryConfig
from inventory_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None

_NOT_INITIALISED = "Engine not initialized. Call init_engine_from_url() first."


def _sqlite_engine(url: str, echo: bool) -> Engine:
    # StaticPool shares one connection so an in-memory database survives.
    engine = create_engine(
        url,
        echo=echo,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create the process engine and session factory, replacing any previous one.

    Pool arguments apply to PostgreSQL only.
    """
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()

    if database_url.startswith("sqlite"):
        engine = _sqlite_engine(database_url, echo)
    else:
        engine = create_engine(
            database_url,
            echo=echo,
            isolation_level="READ COMMITTED",
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
        )

    _engine = engine
    _session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": engine.dialect.name, "pool_size": pool_size, "echo": echo},
    )
    return engine


def init_engine_from_config(config: InventoryConfig) -> Engine:
    configure_logging(level=config.logging_level)
    return init_engine_from_url(
        config.database_url, echo=config.echo_sql, pool_size=config.pool_size,
    )


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALISED)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Factory for callers that open one session per thread."""
    if _session_factory is None:
        raise RuntimeError(_NOT_INITIALISED)
    return _session_factory


def get_session() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Commit on success, roll back and re-raise on error, always close.

        with session_scope() as session:
            service = MovementService(session, BalanceApplier(session))
            service.confirm(movement_id, approved_by=actor_id)
    """
    session = get_session()
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def _metadata():
    from inventory_kernel.db.base import Base
    import inventory_kernel.models  # noqa: F401  registers every table

    return Base.metadata


def create_tables() -> None:
    metadata = _metadata()
    metadata.create_all(get_engine())
    logger.info("tables_created", extra={"tables": sorted(metadata.tables)})


def drop_tables() -> None:
    """Drop every inventory table. Tests and local resets only."""
    _metadata().drop_all(get_engine())


def reset_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


atexit.register(reset_engine)


def is_postgres() -> bool:
    return _engine is not None and _engine.dialect.name == "postgresql"
