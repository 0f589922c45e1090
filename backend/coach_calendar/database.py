from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from .config import settings

database_url = settings.resolved_database_url

# check_same_thread=False: sync endpoints run on the thread pool
connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}

engine = create_engine(
    database_url,
    connect_args=connect_args,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
