from contextlib import contextmanager

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session
from app.config import settings


def _build_engine(url: str):
    if url.startswith("sqlite"):
        # in-memory sqlite must share one connection across threads
        return create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,      # checks dead connections
        pool_recycle=1800        # refresh every 30 min
    )


engine = _build_engine(settings.database_url)


def create_db_and_tables():
    from app.models import user, product, basket, order, order_item, order_event
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session


@contextmanager
def unit_of_work(session: Session):
    """
    Commit once on success, roll back everything on any error.
    Repository calls inside the block must not commit on their own.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
