"""
Database configuration and session management
"""

from sqlmodel import SQLModel, Session, create_engine
import structlog

from campus_order.core.config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    connect_args=connect_args,
)


def init_db():
    """Create database tables (development only, production uses Alembic)"""
    SQLModel.metadata.create_all(engine)
    logger.info("Database tables created")


def get_session():
    """Dependency to get database session"""
    with Session(engine) as session:
        yield session


def open_session() -> Session:
    """Short-lived session for code that must not hold a connection open"""
    return Session(engine)


def get_session_factory():
    """Dependency returning a callable that opens a session; callers close it"""
    return open_session
