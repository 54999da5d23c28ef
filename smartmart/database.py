# smartmart/database.py
from collections.abc import Callable

from sqlmodel import SQLModel, create_engine, Session

from smartmart.core.config import get_settings

settings = get_settings()

# ---------------------------------------------------------
# Postgres connection (via the Supabase pooler)
#
# - sslmode=require   : enforce SSL when running in the cloud
# - pool_size=5       : the summary endpoint opens up to four
#                       sessions at once next to the request session
# - pool_pre_ping=True: validate connections before using them
#
# Non-Postgres URLs (local SQLite) get the driver defaults.
# ---------------------------------------------------------

db_url = settings.DATABASE_URL
engine_kwargs: dict = {"echo": False, "pool_pre_ping": True}

if db_url.startswith("postgres"):
    # Append sslmode=require if it is not already present
    if "sslmode=" not in db_url:
        if "?" in db_url:
            db_url = db_url + "&sslmode=require"
        else:
            db_url = db_url + "?sslmode=require"
    engine_kwargs.update(pool_size=5, max_overflow=0)
elif db_url.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}

engine = create_engine(db_url, **engine_kwargs)


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session


def get_session_factory() -> Callable[[], Session]:
    """
    FastAPI dependency returning a callable that opens a new Session.

    Used where one request needs several independent sessions
    (e.g. concurrent summary queries). Callers own the session:

        with factory() as session:
            ...
    """
    return lambda: Session(engine)
