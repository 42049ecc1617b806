from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from college_enroll.core.config import get_settings

settings = get_settings()


def make_engine(database_url: str, **kwargs):
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, connect_args=connect_args, **kwargs)

    if engine.dialect.name == "sqlite":
        # SQLite leaves FK enforcement off per connection unless asked
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = make_engine(settings.database_url, echo=settings.sql_echo)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)
