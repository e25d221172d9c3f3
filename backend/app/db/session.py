from sqlalchemy import create_engine, event
from sqlalchemy.engine.url import make_url
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker

from app.core.config import settings

engine_kwargs: dict = {"pool_pre_ping": True}
connect_args: dict = {}

url = make_url(settings.DATABASE_URL)
if url.get_backend_name() in {"postgresql", "postgres"}:
    # psycopg2/libpq option flag
    connect_args.setdefault("options", "-c client_encoding=UTF8")

if url.get_backend_name() == "sqlite":
    connect_args = {**connect_args, "check_same_thread": False}
    if ":memory:" in settings.DATABASE_URL:
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, **engine_kwargs)


if url.get_backend_name() == "sqlite":

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):  # pragma: no cover
        """SQLite only enforces ON DELETE CASCADE with foreign_keys turned on."""
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
