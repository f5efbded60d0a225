from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from config import settings


def create_db_engine(url, **kwargs):
    """Build an engine for `url`.

    SQLite ignores SELECT ... FOR UPDATE, so on SQLite every transaction is
    opened with BEGIN IMMEDIATE instead: the write lock is taken before the
    first read, and a reference check cannot be undercut by a concurrent delete.
    """
    is_sqlite = url.startswith("sqlite")
    connect_args = kwargs.pop("connect_args", {})
    if is_sqlite:
        connect_args.setdefault("check_same_thread", False)
    engine = create_engine(url, connect_args=connect_args, echo=False, **kwargs)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _driver_autocommit(dbapi_connection, connection_record):
            # pysqlite would otherwise defer BEGIN until the first write
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


db_engine = create_db_engine(settings.DB_URL)

LocalSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

Base = declarative_base()

def obtain_db_session():
    dbSession = LocalSession()
    try:
        yield dbSession
    finally:
        dbSession.close()
