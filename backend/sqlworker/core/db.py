import os
from typing import Optional

from sqlalchemy import JSON, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()

# JSONB on Postgres, plain JSON everywhere else
JSONType = JSON().with_variant(JSONB(), "postgresql")

# Bound by init_engine(); entry points call it once the environment is loaded.
SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def database_url() -> str:
    # Postgres in production; SQLite is fine for local runs
    return os.getenv("DATABASE_URL", "sqlite:///./sqlworker.db")


def init_engine(url: Optional[str] = None) -> Engine:
    url = url or database_url()
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_engine(url, pool_pre_ping=True, connect_args=connect_args)
    SessionLocal.configure(bind=engine)
    return engine
