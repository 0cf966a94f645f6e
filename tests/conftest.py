import os

# Settings are read at import time
os.environ["ENV"] = "test"
os.environ["DATABASE_DSN"] = "sqlite+aiosqlite:///:memory:"
os.environ["DB_MANAGE"] = "none"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["EMAIL_PROVIDER"] = "noop"
os.environ["SITE_URL"] = "http://clinic.test"
os.environ["CRON_SECRET"] = "cron-secret"
os.environ["CLINIC_TIMEZONE"] = "UTC"

from datetime import timedelta
import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from clinic.main import app
from clinic.core.clock import local_today
from clinic.core.db import get_session, import_models
from clinic.core.security import hash_password, create_access_token
from clinic.modules.auth.models import AdminUser
from clinic.platform.ports.email import EmailDeliveryError
from clinic.platform.provider_registry import registry

ADMIN_PASSWORD = "secret123"

class FakeEmail:
    """In-memory email adapter; set ``fail`` to simulate provider errors."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> str:
        if self.fail:
            raise EmailDeliveryError("provider unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        return f"fake-{len(self.sent)}"

@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    metadata = import_models()
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    async def _get_session():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    yield factory
    app.dependency_overrides.pop(get_session, None)
    await engine.dispose()

@pytest.fixture
def email():
    fake = FakeEmail()
    registry.use_email(fake)
    yield fake
    registry.use_email(None)

@pytest.fixture
async def client(session_factory, email):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

@pytest.fixture
async def admin(session_factory):
    async with session_factory() as s:
        user = AdminUser(username="admin", email="admin@example.com", password_hash=hash_password(ADMIN_PASSWORD))
        s.add(user)
        await s.commit()
        return user

@pytest.fixture
async def admin_client(session_factory, email, admin):
    token = create_access_token(admin.id, admin.username, admin.email)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://test", headers={"Cookie": f"auth-token={token}"},
    ) as c:
        yield c

@pytest.fixture
def future_day():
    return (local_today() + timedelta(days=7)).isoformat()

def patient_payload(**overrides) -> dict:
    data = {
        "first_name": "Juan",
        "last_name": "Dela Cruz",
        "email": "juan@example.com",
        "phone": "09171234567",
        "date_of_birth": "1990-05-17",
    }
    data.update(overrides)
    return data

@pytest.fixture
async def patient(admin_client):
    r = await admin_client.post("/api/patients", json=patient_payload())
    assert r.status_code == 201, r.text
    return r.json()

@pytest.fixture
async def procedure(admin_client):
    r = await admin_client.post("/api/procedures", json={"name": "Tooth Filling", "default_cost": 1500, "estimated_duration": 45})
    assert r.status_code == 201, r.text
    return r.json()

@pytest.fixture
def patient_data():
    return patient_payload
