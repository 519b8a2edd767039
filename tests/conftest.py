"""
Pytest configuration and fixtures
Shared test setup for all test modules
"""

import os
import tempfile

# Settings are read once at import time, so the environment must be in place first
_TEST_DB = os.path.join(tempfile.mkdtemp(prefix="kartly-tests-"), "kartly.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB}"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["RAZORPAY_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ["ADMIN_SECRET"] = "test-admin-secret"
os.environ["BUSINESS_TIMEZONE"] = "UTC"

import asyncio
from typing import Any, AsyncGenerator, Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from kartly.main import app
from kartly.api.dependencies import get_email_service, get_payment_gateway
from kartly.core.config import settings
from kartly.db.database import async_session_local
from kartly.db.models import Vendor
from tests.factories import FakeGateway, RecordingMailer, RecordingNotifier, make_vendor, reset_database


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create clean database for each test"""
    await reset_database()

    async with async_session_local() as session:
        yield session
        await session.rollback()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
async def test_vendor(db_session: AsyncSession) -> Vendor:
    """Vendor with a current paid subscription"""
    return await make_vendor(db_session)


@pytest.fixture(scope="function")
def client(fake_gateway: FakeGateway, mailer: RecordingMailer):
    """Test client on a clean database, with the payment gateway and mail faked out"""
    asyncio.run(reset_database())

    app.dependency_overrides[get_payment_gateway] = lambda: fake_gateway
    app.dependency_overrides[get_email_service] = lambda: mailer

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def registered_vendor(client: TestClient) -> Dict[str, Any]:
    """Vendor registered through the API, on its trial plan"""
    response = client.post("/api/v1/auth/register", json={
        "name": "Asha",
        "shopName": "Asha's Chaat",
        "phone": "9876543210",
        "email": "asha@example.com",
        "password": "supersecret",
    })
    assert response.status_code == 201
    data = response.json()
    return {
        "id": data["vendor"]["id"],
        "token": data["accessToken"],
        "headers": {"Authorization": f"Bearer {data['accessToken']}"},
    }


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return {"X-Admin-Secret": settings.ADMIN_SECRET}
