from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from learning_portal.core.config import settings


# Base must not depend on entities
class Base(DeclarativeBase):
    pass


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.SQLALCHEMY_ECHO,
    connect_args={"check_same_thread": False}
    if settings.DB_IS_SQLITE
    else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
