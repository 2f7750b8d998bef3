"""
Test configuration and fixtures for the marketplace API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os

# Settings are read at import time, so the test environment goes first
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")

import io
import uuid
import pytest
from decimal import Decimal
from typing import AsyncGenerator, Dict, Optional
from PIL import Image
from fastapi import UploadFile
from starlette.datastructures import Headers
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

import marketplace.models  # noqa: F401
from marketplace.main import app
from marketplace.database import Base, get_db
from marketplace.models.user import User, UserRole
from marketplace.models.property import Property, PropertyType, ListingType, PropertyStatus
from marketplace.models.inquiry import Inquiry, InquiryStatus, InquiryPriority
from marketplace.repositories.user import UserRepository
from marketplace.repositories.property import PropertyRepository
from marketplace.repositories.inquiry import InquiryRepository
from marketplace.utils.auth import create_access_token
from marketplace.utils.storage import LocalFileStorage, get_storage


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session used by factories and service-level tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage(tmp_path) -> LocalFileStorage:
    return LocalFileStorage(base_dir=str(tmp_path / "media"), public_prefix="/media")


@pytest.fixture
async def client(session_factory, storage) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client; every request gets its own session on the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as async_client:
        yield async_client

    app.dependency_overrides.clear()


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    async def create_user(
        session: AsyncSession,
        role: UserRole = UserRole.SELLER,
        email: Optional[str] = None,
        password: str = "testpassword123",
        full_name: str = "Test User",
        is_verified: bool = True,
        is_active: bool = True
    ) -> User:
        return await UserRepository(session).create_user({
            "email": email or f"{role.value}{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "full_name": full_name,
            "role": role,
            "is_verified": is_verified,
            "is_active": is_active,
        })


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(**overrides) -> dict:
        """Request body for POST /properties."""
        data = {
            "title": "Three bedroom house in East Legon",
            "description": "Newly built house with a garden and a two-car garage.",
            "price": 850000,
            "property_type": "house",
            "listing_type": "for_sale",
            "bedrooms": 3,
            "bathrooms": 2,
            "address": "12 Boundary Road",
            "city": "Accra",
        }
        data.update(overrides)
        return data

    @staticmethod
    async def create_property(
        session: AsyncSession,
        seller_id: uuid.UUID,
        status: PropertyStatus = PropertyStatus.ACTIVE,
        title: str = "Test Property",
        price: Decimal = Decimal("250000.00"),
        city: str = "Accra",
        property_type: PropertyType = PropertyType.HOUSE,
        listing_type: ListingType = ListingType.FOR_SALE,
        bedrooms: int = 3,
        views_count: int = 0
    ) -> Property:
        return await PropertyRepository(session).create_property({
            "title": title,
            "description": "A well kept property close to schools and shops.",
            "property_type": property_type,
            "listing_type": listing_type,
            "price": price,
            "bedrooms": bedrooms,
            "bathrooms": 2,
            "address": "1 Test Street",
            "city": city,
            "status": status,
            "views_count": views_count,
            "seller_id": seller_id,
        })


class InquiryFactory:
    """Factory for creating test inquiries."""

    @staticmethod
    def create_inquiry_data(property_id, **overrides) -> dict:
        """Request body for POST /inquiries."""
        data = {
            "property_id": str(property_id),
            "buyer_name": "Kwame Asante",
            "buyer_email": "kwame@example.com",
            "message": "Is this property still available for viewing?",
        }
        data.update(overrides)
        return data

    @staticmethod
    async def create_inquiry(
        session: AsyncSession,
        property_id: uuid.UUID,
        status: InquiryStatus = InquiryStatus.NEW,
        priority: InquiryPriority = InquiryPriority.MEDIUM
    ) -> Inquiry:
        return await InquiryRepository(session).create({
            "property_id": property_id,
            "buyer_name": "Kwame Asante",
            "buyer_email": "kwame@example.com",
            "message": "Is this property still available for viewing?",
            "status": status,
            "priority": priority,
        })


def auth_headers(user: User) -> Dict[str, str]:
    """Bearer header for a user."""
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


def create_test_image(width: int = 64, height: int = 48, format: str = "PNG") -> bytes:
    """Create a test image in memory."""
    img = Image.new("RGB", (width, height), color="red")
    img_bytes = io.BytesIO()
    img.save(img_bytes, format=format)
    return img_bytes.getvalue()


def make_upload(filename: str, content: bytes, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type})
    )


# Common test fixtures
@pytest.fixture
async def seller(db_session) -> User:
    return await UserFactory.create_user(db_session, role=UserRole.SELLER, full_name="Ama Mensah")


@pytest.fixture
async def other_seller(db_session) -> User:
    return await UserFactory.create_user(db_session, role=UserRole.SELLER, full_name="Kofi Boateng")


@pytest.fixture
async def agent(db_session) -> User:
    return await UserFactory.create_user(db_session, role=UserRole.AGENT, full_name="Test Agent")


@pytest.fixture
async def buyer(db_session) -> User:
    return await UserFactory.create_user(db_session, role=UserRole.BUYER, full_name="Test Buyer")


@pytest.fixture
async def admin(db_session) -> User:
    return await UserFactory.create_user(db_session, role=UserRole.ADMIN, full_name="Test Admin")


@pytest.fixture
async def active_property(db_session, seller) -> Property:
    return await PropertyFactory.create_property(db_session, seller.id)
