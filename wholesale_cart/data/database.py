# wholesale_cart/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from wholesale_cart.utils.settings import DATABASE_URL


def make_engine(url: str | None = None):
    url = url or DATABASE_URL
    #sqlite connections are shared with the FastAPI threadpool
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, future=True)


engine = make_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

Base = declarative_base()
