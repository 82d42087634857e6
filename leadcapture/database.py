from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from .config import settings

# Create Async Engine
engine = create_async_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO, future=True)


def create_session_factory(bind: AsyncEngine) -> sessionmaker:
    """Session factory shared by request handlers and detached pipelines."""
    return sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


async_session = create_session_factory(engine)


async def init_db(bind: AsyncEngine = engine):
    # Register table metadata before create_all
    from . import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncSession:
    async with async_session() as session:
        yield session
