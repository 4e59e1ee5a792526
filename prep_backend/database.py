from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from prep_backend.core import config


def _connect_args(database_url: str) -> dict:
    # SQLite connections are shared across FastAPI's worker threads.
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    config.DATABASE_URL,
    connect_args=_connect_args(config.DATABASE_URL),
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def init_db() -> None:
    # Model modules register their tables on Base when imported.
    from prep_backend.models import interview_session, question, user  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
