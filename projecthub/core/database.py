from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from fastapi import Request
from typing import AsyncGenerator, Optional

# Create base class for models (can be defined before engine)
Base = declarative_base()


def normalize_database_url(db_url: str) -> str:
    """Get properly formatted async database URL"""
    if db_url.startswith("postgresql://"):
        db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif db_url.startswith("sqlite:///"):
        db_url = db_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return db_url


class Database:
    """
    Owns the engine and session factory for one database URL.

    The engine is created lazily on first use so that building the app never
    touches the network. One instance is created per app in create_app() and
    kept on app.state.

    Connection pooling strategy:
    - SQLite: NullPool (required for thread safety)
    - PostgreSQL: default QueuePool with pre-ping
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = normalize_database_url(url)
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            if "sqlite" in self.url:
                self._engine = create_async_engine(
                    self.url,
                    echo=self.echo,
                    connect_args={"check_same_thread": False},
                    poolclass=NullPool,
                )
            else:
                self._engine = create_async_engine(
                    self.url,
                    echo=self.echo,
                    pool_pre_ping=True,  # Verify connections before use
                )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session, rolling back on error"""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create all tables known to the metadata"""
        import projecthub.models  # noqa: F401  (register models on Base.metadata)

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        """Close database connections"""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None


# Dependency to get DB session
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get a database session from the app's Database"""
    database: Database = request.app.state.database
    async for session in database.session():
        yield session
