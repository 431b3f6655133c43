import logging
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from .config import config

logger = logging.getLogger(__name__)

# Variáveis Globais
engine = None
db_session = None


def normalize_database_url(database_url: Optional[str]) -> Optional[str]:
    """
    Normaliza a URL do banco.
    - Se for Postgres, garante que sslmode=require esteja presente.
    - URLs legadas `postgres://` viram `postgresql://`.
    """
    if not database_url:
        return None

    if database_url.startswith("postgres://"):
        database_url = "postgresql://" + database_url[len("postgres://"):]

    try:
        url = make_url(database_url)
    except ArgumentError:
        # Mantém a URL como está se não for parseável pelo SQLAlchemy
        return database_url

    if url.drivername.startswith("postgresql") and "sslmode" not in url.query and url.host not in (None, "localhost", "127.0.0.1"):
        url = url.set(query={**url.query, "sslmode": "require"})

    return url.render_as_string(hide_password=False)


def _engine_kwargs(database_url: str) -> dict:
    url = make_url(database_url)
    if url.drivername.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory databases must share one connection or every session sees an empty schema
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {"pool_pre_ping": True, "poolclass": NullPool}


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_db(database_url: Optional[str] = None, create_tables: bool = False):
    """Create the engine and the request-scoped session registry."""
    global engine, db_session

    database_url = normalize_database_url(database_url or config.DATABASE_URL)
    if not database_url:
        raise RuntimeError("DATABASE_URL não configurada.")

    masked_url = database_url.split("@")[-1] if "@" in database_url else database_url
    logger.info(f"Conectando ao banco: {masked_url}")

    if db_session is not None:
        db_session.remove()
    if engine is not None:
        engine.dispose()

    engine = create_engine(database_url, **_engine_kwargs(database_url))
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    # Objects stay readable after commit; the request teardown closes the session
    db_session = scoped_session(sessionmaker(autoflush=False, expire_on_commit=False, bind=engine))

    if create_tables:
        create_all()

    return db_session


def create_all():
    from .models_db import Base
    Base.metadata.create_all(engine)


def drop_all():
    from .models_db import Base
    Base.metadata.drop_all(engine)


def get_db():
    """Yields the scoped session for the current thread."""
    if db_session is None:
        init_db()
    yield db_session()
