# storefront/utils/db.py

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from storefront.config import get_settings


def build_engine(database_url: str):
    if database_url.startswith("sqlite"):
        # check_same_thread=False is only needed for SQLite. It's not needed for other databases.
        connect_args = {"check_same_thread": False}
        if ":memory:" in database_url or database_url == "sqlite://":
            # One shared connection, otherwise every session sees its own empty database
            return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(database_url, connect_args=connect_args)
    return create_engine(database_url, pool_pre_ping=True)


# Process-wide connection pool; sessions (and everything authenticated) are per request
engine = build_engine(get_settings().database_url)


def create_db_and_tables(bind=None) -> None:
    # Import the models so their tables are registered on SQLModel.metadata
    import storefront.models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    # Dependency to yield a database session
    with Session(engine) as session:
        yield session
