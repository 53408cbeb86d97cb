from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import Settings, get_settings
from .models import BACKGROUND_URL_KEY, Base, Device, Setting

settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.echo_sql,
    pool_pre_ping=True,
    pool_recycle=3600,
)

async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_db(
    bind: AsyncEngine,
    session_factory: async_sessionmaker[AsyncSession],
    config: Settings,
) -> None:
    """Create tables, then seed the device pool and the default background once."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session, session.begin():
        count = await session.scalar(select(func.count()).select_from(Device))
        if not count:
            session.add_all([Device(id=i) for i in range(1, config.device_count + 1)])
        if await session.get(Setting, BACKGROUND_URL_KEY) is None:
            session.add(Setting(key=BACKGROUND_URL_KEY, value=config.default_background_url))
