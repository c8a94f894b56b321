import os
import tempfile

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("MAIL_BACKEND", "console")
os.environ.setdefault("DB_AUTO_CREATE", "false")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "hrm-test-logs"))

import itertools
from datetime import timedelta
from typing import AsyncGenerator
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from main import app
from app.core.database import get_async_session
from app.core.exceptions import EmailDeliveryError
from app.core.security import create_access_token, get_password_hash
from app.db.init_db import install_notification_defaults
from app.models import User
from app.models.base import Base
from app.models.shared.enums import UserRole

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
DEFAULT_PASSWORD = "Password123!"


class FakeTransport:
    """In-memory mail transport; addresses in ``fail_for`` raise like a broken SMTP server"""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = {address.lower() for address in fail_for}

    def is_configured(self) -> bool:
        return True

    async def send_email(self, to_email, subject, html_content, text_content=None):
        if to_email.lower() in self.fail_for:
            raise EmailDeliveryError("Connection refused")
        self.sent.append({"to": to_email, "subject": subject, "html": html_content})


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session with the system templates and default rules installed"""
    async with session_factory() as session:
        await install_notification_defaults(session)
        yield session


@pytest.fixture
async def client(session_factory, db_session) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def create_user(db_session):
    counter = itertools.count(1)

    async def _create(role: UserRole = UserRole.EMPLOYEE, email: str = None, password: str = DEFAULT_PASSWORD, **fields):
        n = next(counter)
        user = User(
            email=email or f"{role.value.lower()}{n}@example.com",
            first_name=fields.pop("first_name", role.value.title().replace("_", " ")),
            last_name=fields.pop("last_name", f"User{n}"),
            hashed_password=get_password_hash(password),
            role=role,
            is_active=fields.pop("is_active", True),
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _create


@pytest.fixture
def auth_headers():
    """Bearer header for a user, without going through /auth/login"""
    def _headers(user: User) -> dict:
        token = create_access_token(
            data={"sub": str(user.id), "email": user.email, "role": user.role.value},
            expires_delta=timedelta(minutes=30),
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def reload(db_session):
    """Re-read a row, discarding whatever this session has cached"""
    async def _reload(model, pk):
        return await db_session.get(model, pk, populate_existing=True)

    return _reload


@pytest.fixture
def make_transport():
    return FakeTransport
