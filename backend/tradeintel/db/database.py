"""
Database connection and session management.
"""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
import os
from dotenv import load_dotenv

load_dotenv()

# Get settings from environment
database_url = os.getenv("DATABASE_URL", "sqlite:///./trade_intel.db")
sql_echo = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")
import_progress_every = int(os.getenv("IMPORT_PROGRESS_EVERY", "5000"))

class Settings:
    database_url = database_url
    sql_echo = sql_echo
    import_progress_every = import_progress_every

settings = Settings()


def enable_sqlite_savepoints(engine: Engine) -> Engine:
    """
    Let SQLAlchemy own transaction boundaries on pysqlite connections.

    The sqlite3 driver opens transactions lazily and does not know about
    SAVEPOINT, so per-row savepoints only work once the driver's own
    transaction handling is switched off and BEGIN is emitted explicitly.
    """
    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def build_engine(url: str, echo: bool = False, **kwargs) -> Engine:
    connect_args = kwargs.pop("connect_args", {})
    if url.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)
    engine = create_engine(url, echo=echo, connect_args=connect_args, **kwargs)
    if engine.dialect.name == "sqlite":
        enable_sqlite_savepoints(engine)
    return engine


engine = build_engine(settings.database_url, echo=settings.sql_echo)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
