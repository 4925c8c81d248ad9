# db/init.py
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# ---- Base for ORM models ----
Base = declarative_base()


# ---- Database engine & Session ----
def build_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL. SQLite connections are shared across
    FastAPI's worker threads, and in-memory databases keep a single connection
    so every session sees the same tables.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# ---- Initialization ----
def init_db(engine: Engine):
    """
    Imports the model modules to register tables, then creates them.
    """
    # Import models so their metadata is registered on Base
    from models import subscription  # noqa: F401

    Base.metadata.create_all(bind=engine)
