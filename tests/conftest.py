"""Common test fixtures."""

import io
from dataclasses import dataclass
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import hacienda.models  # noqa: F401
from hacienda.core.database import Base, get_db
from hacienda.core.security import get_password_hash, revoked_tokens
from hacienda.core.storage import ObjectStorage, get_storage
from hacienda.main import app
from hacienda.models.file_item import FileItem, ItemType
from hacienda.models.user import User
from hacienda.services.file_service import FileService
from hacienda.services.notification_service import ToastCenter, toast_center
from hacienda.services.view_state import view_states

BUCKET = "test-bucket"


@dataclass
class FakeListedObject:
    object_name: str
    size: int
    is_dir: bool = False


@dataclass
class FakeStat:
    size: int
    content_type: str


class FakeResponse:
    """Stands in for the urllib3 response returned by get_object."""

    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)
        self.closed = False
        self.released = False

    def read(self, amt=None):
        return self._buffer.read(amt)

    def close(self):
        self.closed = True

    def release_conn(self):
        self.released = True


class FakeMinio:
    """In-memory replacement for the MinIO client, keyed by object name."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.buckets: set[str] = set()
        self.fail_keys: set[str] = set()

    def _check(self, object_name: str):
        if object_name in self.fail_keys:
            raise ConnectionError(f"storage unavailable for {object_name}")

    def bucket_exists(self, bucket_name):
        return bucket_name in self.buckets

    def make_bucket(self, bucket_name):
        self.buckets.add(bucket_name)

    def fput_object(self, bucket_name, object_name, file_path, content_type="application/octet-stream"):
        self._check(object_name)
        with open(file_path, "rb") as fh:
            self.objects[object_name] = fh.read()
        self.content_types[object_name] = content_type

    def put(self, object_name: str, data: bytes, content_type: str = "application/octet-stream"):
        self.objects[object_name] = data
        self.content_types[object_name] = content_type

    def stat_object(self, bucket_name, object_name):
        self._check(object_name)
        if object_name not in self.objects:
            raise KeyError(object_name)
        return FakeStat(size=len(self.objects[object_name]), content_type=self.content_types[object_name])

    def get_object(self, bucket_name, object_name):
        self._check(object_name)
        return FakeResponse(self.objects[object_name])

    def remove_object(self, bucket_name, object_name):
        self._check(object_name)
        self.objects.pop(object_name, None)
        self.content_types.pop(object_name, None)

    def copy_object(self, bucket_name, object_name, source):
        self._check(source.object_name)
        self.objects[object_name] = self.objects[source.object_name]
        self.content_types[object_name] = self.content_types.get(source.object_name, "application/octet-stream")

    def list_objects(self, bucket_name, prefix=None, recursive=False):
        for name in sorted(self.objects):
            if prefix is None or name.startswith(prefix):
                yield FakeListedObject(object_name=name, size=len(self.objects[name]))

    def presigned_get_object(self, bucket_name, object_name, expires=None):
        return f"http://minio.test/{bucket_name}/{object_name}?expires={int(expires.total_seconds())}"


class FakeUpload:
    """Minimal UploadFile lookalike for calling FileService.upload directly."""

    def __init__(self, filename: str, data: bytes, content_type: str | None = None):
        self.filename = filename
        self.content_type = content_type
        self.size = len(data)
        self._buffer = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


@pytest.fixture
def fake_minio() -> FakeMinio:
    return FakeMinio()


@pytest.fixture
def storage(fake_minio) -> ObjectStorage:
    return ObjectStorage(fake_minio, BUCKET)


@pytest_asyncio.fixture
async def session_maker(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as db:
        yield db


@pytest.fixture(autouse=True)
def reset_memory_state():
    yield
    toast_center.clear()
    view_states.reset()
    revoked_tokens.clear()


@pytest_asyncio.fixture
async def user(session) -> User:
    db_user = User(email="ana@hacienda-erp.com", hashed_password=get_password_hash("s3cret-pass"))
    session.add(db_user)
    await session.commit()
    await session.refresh(db_user)
    return db_user


@pytest.fixture
def toasts() -> ToastCenter:
    return ToastCenter(default_duration=60)


@pytest.fixture
def file_service(session, storage, user, toasts) -> FileService:
    return FileService(session, storage, user, toasts)


@pytest.fixture
def make_item(session, user):
    """Insert a FileItem row directly."""

    async def _make(name: str, type: ItemType = ItemType.FILE, parent_id=None, **fields) -> FileItem:
        item = FileItem(
            name=name,
            type=type,
            parent_id=parent_id,
            owner_id=user.id,
            owner_email=user.email,
            is_deleted=fields.pop("is_deleted", False),
            **fields,
        )
        session.add(item)
        await session.commit()
        await session.refresh(item)
        return item

    return _make


@pytest_asyncio.fixture
async def client(session_maker, storage) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        async with session_maker() as db:
            yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def register_user(client):
    """Register through the API and return bearer headers for the new account."""

    async def _register(email: str = "ana@hacienda-erp.com", password: str = "s3cret-pass") -> dict:
        response = await client.post("/auth/register", json={"email": email, "password": password})
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _register


@pytest_asyncio.fixture
async def auth_headers(register_user) -> dict:
    return await register_user()


@pytest.fixture
def make_upload():
    return FakeUpload