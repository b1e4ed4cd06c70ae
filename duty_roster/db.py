from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from duty_roster.load_secrets import db_backend

if db_backend == "postgres":
    from duty_roster.create_postgres_engine import engine
else:
    from duty_roster.create_sqlite_engine import engine

# Centralized session factory to avoid creating it in router modules.
Session = async_sessionmaker(
    autocommit=False,
    class_=AsyncSession,
    autoflush=True,
    expire_on_commit=False,
    bind=engine,
)
