from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from .config import settings
from .base import Base

engine = create_async_engine(settings.DATABASE_DSN, pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

async def get_session():
    async with SessionLocal() as session:
        yield session

def import_models():
    # every mapped class must be imported before create_all / health table checks
    from clinic.modules.auth import models as _auth  # noqa: F401
    from clinic.modules.patients import models as _patients  # noqa: F401
    from clinic.modules.qr_tokens import models as _qr  # noqa: F401
    from clinic.modules.appointments import models as _appointments  # noqa: F401
    from clinic.modules.procedures import models as _procedures  # noqa: F401
    from clinic.modules.treatments import models as _treatments  # noqa: F401
    from clinic.modules.notifications import models as _notifications  # noqa: F401
    from clinic.modules.reminders import models as _reminders  # noqa: F401
    from clinic.modules.medical_history import models as _mh  # noqa: F401
    return Base.metadata

async def init_models():
    # In dev-only "create_all" mode build the schema here; otherwise migrations own it.
    if settings.DB_MANAGE.lower() == "create_all":
        metadata = import_models()
        async with engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
