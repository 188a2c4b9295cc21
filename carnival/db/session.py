import logging

from fastapi import Request
from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from carnival.core.config import Settings
from carnival.core.errors import DatabaseUnavailableError
from carnival.models.entities import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(config: Settings) -> Engine:
    url = config.database_url
    echo = config.is_development

    if url.get_backend_name() == "sqlite":
        in_memory = url.database in (None, "", ":memory:")
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool if in_memory else None,
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    connect_args = {"sslmode": "require"} if config.database_ssl else {}
    return create_engine(
        url,
        echo=echo,
        connect_args=connect_args,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=0,
        pool_timeout=config.DB_POOL_TIMEOUT,
        pool_recycle=config.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db(request: Request):
    db: Session = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def check_connection(engine: Engine) -> None:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise DatabaseUnavailableError(f"Unable to connect to the database: {exc}") from exc


def sync_schema(engine: Engine) -> list:
    """Bring the live schema in line with the declared entities.

    Missing tables are created; columns declared on an existing table but
    absent from the database are added (always nullable). Nothing is dropped.
    Returns the list of ``table.column`` names that were added.
    """
    Base.metadata.create_all(bind=engine)

    added = []
    inspector = inspect(engine)
    preparer = engine.dialect.identifier_preparer
    with engine.begin() as conn:
        for table in Base.metadata.sorted_tables:
            existing = {col["name"] for col in inspector.get_columns(table.name)}
            for column in table.columns:
                if column.name in existing:
                    continue
                column_type = column.type.compile(dialect=engine.dialect)
                conn.execute(
                    text(f"ALTER TABLE {preparer.quote(table.name)} ADD COLUMN {preparer.quote(column.name)} {column_type}")
                )
                added.append(f"{table.name}.{column.name}")
                logger.warning("Added missing column %s.%s (%s)", table.name, column.name, column_type)
    return added
