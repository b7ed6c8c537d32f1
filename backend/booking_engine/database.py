from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .config import settings

# Execution option marking a session transaction that must hold the write lock
WRITE_LOCK_OPTION = "sqlite_write_lock"


def configure_engine(engine: Engine) -> Engine:
    """
    Attach SQLite connection hooks to an engine.

    - foreign keys are enforced on every connection
    - WAL journal, so readers never block the writer
    - pysqlite's implicit transaction handling is disabled; transactions
      opened with WRITE_LOCK_OPTION start with BEGIN IMMEDIATE, so the
      write lock is held before the occupancy check of a commit is read.
      Every other transaction stays deferred.
    """
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=30000")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


def build_engine(url: str) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # check_same_thread=False: FastAPI serves sync routes from a thread pool
        connect_args = {"check_same_thread": False, "timeout": 30}
    return configure_engine(create_engine(url, connect_args=connect_args))


engine = build_engine(settings.resolved_database_url)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
