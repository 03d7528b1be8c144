from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from boom.config import get_settings

settings = get_settings()

WRITE_LOCK_OPTION = "sqlite_begin"


def build_engine(database_url: str, echo: bool = False, busy_timeout: float | None = None) -> Engine:
    """
    Create an engine for the given URL.
    On SQLite, read transactions start with a deferred BEGIN. Transactions opened through
    begin_write() start with BEGIN IMMEDIATE, so two writers never read the same balance
    concurrently; the second one waits for the lock instead.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    # SQLite needs check_same_thread=False for FastAPI
    engine = create_engine(
        database_url,
        connect_args={
            "check_same_thread": False,
            "timeout": settings.sqlite_busy_timeout_seconds if busy_timeout is None else busy_timeout,
        },
        echo=echo,
    )

    @event.listens_for(engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        # hand transaction control to SQLAlchemy (pysqlite would defer BEGIN)
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _sqlite_begin(conn):
        mode = conn.get_execution_options().get(WRITE_LOCK_OPTION, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def begin_write(db: Session) -> None:
    """
    Start a transaction that is going to write. A read-only transaction already open on
    the session (e.g. the current-user lookup) is ended first. On SQLite the new
    transaction holds the database write lock from its first statement.
    """
    if db.in_transaction():
        db.commit()
    db.connection(execution_options={WRITE_LOCK_OPTION: "IMMEDIATE"})


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
