from pathlib import Path
from typing import Generator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from bracket_engine.config import DATABASE_URL, SQL_ECHO

_is_sqlite = DATABASE_URL.startswith("sqlite")
_connect_args = {"check_same_thread": False} if _is_sqlite else {}

if _is_sqlite and ":memory:" not in DATABASE_URL:
    db_path = DATABASE_URL.replace("sqlite:///", "", 1)
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)


def enable_sqlite_write_locking(target: Engine) -> None:
    """
    Start every SQLite transaction with BEGIN IMMEDIATE.

    pysqlite defers BEGIN until the first write and SQLite ignores FOR UPDATE,
    so without this the reads an operation validates against are unlocked.
    A second writer waits on the lock and surfaces "database is locked" as
    OperationalError, which the orchestrator retries.
    """

    @event.listens_for(target, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(target, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine: Engine = create_engine(
    DATABASE_URL,
    echo=SQL_ECHO,
    connect_args=_connect_args,
)

if _is_sqlite:
    enable_sqlite_write_locking(engine)


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def init_db() -> None:
    """Initialize database - create all tables"""
    # Import all models to ensure they're registered with SQLModel metadata
    from bracket_engine.models.match import Match  # noqa: F401
    from bracket_engine.models.participant import Participant  # noqa: F401
    from bracket_engine.models.tournament import Tournament  # noqa: F401

    SQLModel.metadata.create_all(engine)
