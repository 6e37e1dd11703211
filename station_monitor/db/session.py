from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from station_monitor.core.config import settings
from station_monitor.core.logger import logger

# Create SQLAlchemy engine
engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {}
)

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class for models
Base = declarative_base()


def get_db():
    """
    Dependency to get database session.
    Use this in route dependencies.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Initialize database - create all tables"""
    # Import models to register them with Base BEFORE creating tables
    from station_monitor.db.models import Member, Station, StationNotice, Journal  # noqa: F401
    
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    
    # Verify tables were created
    from sqlalchemy import inspect
    inspector = inspect(bind)
    tables = inspector.get_table_names()
    logger.info(f"Database tables ready: {tables}")
    
    if not tables:
        logger.error(f"No tables found after create_all(): {list(Base.metadata.tables.keys())}")
        raise RuntimeError("Failed to create database tables!")
