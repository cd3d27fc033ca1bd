"""
Test configuration and fixtures for the listings API.
Provides an in-memory database, fake outbound collaborators, test data
factories and an HTTP client bound to the application.
"""

import io
import os
import uuid
from decimal import Decimal
from types import SimpleNamespace
from typing import AsyncGenerator, Dict, List, Optional

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from starlette.datastructures import Headers, UploadFile

from app.database import Base, get_db, utcnow
from app.main import app
from app.models.agency import Agency
from app.models.property import Property, PropertyStatus, model_for_category
from app.models.user import User, UserRole
from app.repositories.property import PropertyRepository
from app.repositories.user import UserRepository
from app.services.storage import ImageStorage
from app.utils.auth import create_access_token
from app.utils.dependencies import get_email_service, get_image_storage, get_llm_client


TEST_DATABASE_URL = "sqlite+aiosqlite://"

DEFAULT_PASSWORD = "testpassword123"


@pytest.fixture
async def db_engine():
    """Fresh in-memory schema for every test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


class FakeEmailService:
    """Records messages instead of calling SendGrid."""

    def __init__(self, succeed: bool = True, raise_error: bool = False):
        self.succeed = succeed
        self.raise_error = raise_error
        self.sent: List[Dict[str, str]] = []

    async def send(self, to: str, subject: str, html: str) -> bool:
        if self.raise_error:
            raise RuntimeError("mail provider unreachable")
        self.sent.append({"to": to, "subject": subject, "html": html})
        return self.succeed


class FakeCompletions:
    """Stands in for ``client.chat.completions``; replies are consumed in order."""

    def __init__(self, replies: List[str], error: Optional[Exception] = None):
        self.replies = list(replies)
        self.error = error
        self.calls: List[Dict] = []

    async def create(self, model: str, messages: List[Dict[str, str]]):
        self.calls.append({"model": model, "messages": messages})
        if self.error is not None:
            raise self.error
        content = self.replies.pop(0) if self.replies else ""
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeLLMClient:
    """Minimal async OpenAI client double."""

    def __init__(self, replies: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.completions = FakeCompletions(replies or [], error)
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self) -> List[Dict]:
        return self.completions.calls


@pytest.fixture
def email_service() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture
def llm_client() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def image_storage(tmp_path) -> ImageStorage:
    return ImageStorage(base_dir=str(tmp_path), base_url="/media")


@pytest.fixture
async def async_client(
    db_session: AsyncSession,
    email_service: FakeEmailService,
    llm_client: FakeLLMClient,
    image_storage: ImageStorage
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the database and outbound collaborators replaced."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_llm_client] = lambda: llm_client
    app.dependency_overrides[get_image_storage] = lambda: image_storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def png_bytes(color: str = "red") -> bytes:
    """A small valid PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_upload(filename: str = "photo.png", content: Optional[bytes] = None) -> UploadFile:
    """Upload object as the form parser would produce it."""
    return UploadFile(
        file=io.BytesIO(content if content is not None else png_bytes()),
        filename=filename,
        headers=Headers({"content-type": "image/png"})
    )


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    async def create_user(
        user_repo: UserRepository,
        email: str = None,
        password: str = DEFAULT_PASSWORD,
        user_name: str = "Test User",
        role: UserRole = UserRole.USER,
        is_active: bool = True
    ) -> User:
        return await user_repo.create_user({
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "user_name": user_name,
            "phone_number": "01000000000",
            "role": role,
            "is_active": is_active
        })


class PropertyFactory:
    """Factory for creating listings directly in the database."""

    @staticmethod
    async def create_property(
        db_session: AsyncSession,
        owner: User,
        category: str = "rent",
        public: bool = True,
        title: str = "Test Property",
        price: Decimal = Decimal("5000"),
        city: str = "Cairo",
        property_type: str = "شقة",
        **overrides
    ) -> Property:
        model = model_for_category(category)
        values = {
            "title": title,
            "description": "A bright flat close to the metro",
            "price": price,
            "city": city,
            "address": "15 Tahrir St",
            "property_type": property_type,
            "area": 120,
            "bedrooms": 3,
            "bathrooms": 2,
            "contact_name": "Ahmed Ali",
            "contact_email": "ahmed@example.com",
            "owner_id": owner.id,
        }
        if public:
            values.update(status=PropertyStatus.AVAILABLE, is_approved=True, is_active=True, approved_at=utcnow())
        else:
            values.update(status=PropertyStatus.PENDING, is_approved=False, is_active=False)
        values.update(overrides)

        property_obj = model(**values)
        repo = PropertyRepository(db_session)
        await repo.save(property_obj)
        return await repo.get_property_with_details(property_obj.id)


@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def property_repository(db_session: AsyncSession) -> PropertyRepository:
    return PropertyRepository(db_session)


@pytest.fixture
async def test_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, email="user@example.com", user_name="Regular User")


@pytest.fixture
async def test_agent(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="agent@example.com", user_name="Agent", role=UserRole.AGENT
    )


@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="admin@example.com", user_name="Admin", role=UserRole.ADMIN
    )


@pytest.fixture
async def test_inactive_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="inactive@example.com", user_name="Inactive", is_active=False
    )


@pytest.fixture
async def public_property(db_session: AsyncSession, test_agent: User) -> Property:
    return await PropertyFactory.create_property(db_session, test_agent, title="Maadi flat")


@pytest.fixture
async def pending_property(db_session: AsyncSession, test_user: User) -> Property:
    return await PropertyFactory.create_property(
        db_session, test_user, category="sale", public=False, title="Pending villa",
        property_type="فيلا", price=Decimal("2500000"), contact_email="owner@example.com"
    )


@pytest.fixture
async def agencies(db_session: AsyncSession) -> List[Agency]:
    items = [
        Agency(name="Nile Homes", description="Apartments across Cairo", is_featured=True),
        Agency(name="Delta Estates", description=None, is_featured=False),
    ]
    db_session.add_all(items)
    await db_session.commit()
    return items
