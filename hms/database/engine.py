from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from hms.config import DATABASE_URL

# SQLite pools do not accept sizing arguments
engine_options = {} if DATABASE_URL.startswith("sqlite") else {"pool_size": 20, "max_overflow": 0}

# 1. Async engine
engine = create_async_engine(
    DATABASE_URL,
    echo=False,  # True to log SQL
    **engine_options,
)

# 2. Declarative base for all models
Base = declarative_base()

# 3. Async session factory
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


# 4. FastAPI dependency
async def get_async_session():
    async with AsyncSessionLocal() as session:
        yield session
