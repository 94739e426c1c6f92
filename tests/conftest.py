"""Pytest configuration and fixtures."""
import hashlib
import json
import os
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Dict, List, Optional

# Must be set before sitepub.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sitepub.api.dependencies import get_http_client
from sitepub.database import Base, get_db_session
from sitepub.main import app
from sitepub.models import BuildConfig, BuildOutput, BuildStatus, Project, User
from sitepub.services.vercel import VercelClient
from sitepub.utils.security import create_access_token

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
)

TestAsyncSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class FakeVercel:
    """In-memory stand-in for the Vercel REST API behind an httpx MockTransport.

    Records every call in ``events`` so tests can assert on ordering.
    """

    def __init__(self) -> None:
        self.stored: Dict[str, bytes] = {}
        self.events: List[str] = []
        self.upload_requests: List[httpx.Request] = []
        self.deployments: List[Dict[str, Any]] = []
        self.domains: List[Dict[str, str]] = []
        self.deleted_projects: List[str] = []
        self.upload_status: Optional[int] = None
        self.deploy_status: Optional[int] = None
        self.deploy_error_message: Optional[str] = None
        self.domain_status: Optional[int] = None
        self.project_id = "prj_fake123"

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path

        if request.method == "POST" and path == "/v2/files":
            return self._upload(request)
        if request.method == "POST" and path == "/v13/deployments":
            return self._deploy(request)
        if request.method == "POST" and path.endswith("/domains"):
            self.events.append("domain")
            self.domains.append({"project": path.split("/")[3], **json.loads(request.content)})
            if self.domain_status is not None:
                return httpx.Response(self.domain_status, json={"error": {"message": "domain error"}})
            return httpx.Response(200, json={"name": self.domains[-1]["name"]})
        if request.method == "DELETE" and path.startswith("/v9/projects/"):
            self.events.append("delete_project")
            self.deleted_projects.append(path.rsplit("/", 1)[-1])
            return httpx.Response(204)
        return httpx.Response(404, json={"error": {"message": "not found"}})

    def _upload(self, request: httpx.Request) -> httpx.Response:
        self.events.append("upload")
        self.upload_requests.append(request)
        if self.upload_status is not None:
            return httpx.Response(self.upload_status, json={"error": {"message": "upload rejected"}})

        digest = request.headers["x-vercel-digest"]
        if hashlib.sha1(request.content).hexdigest() != digest:
            return httpx.Response(400, json={"error": {"message": "digest mismatch"}})
        if digest in self.stored:
            return httpx.Response(409, json={"error": {"code": "file_exists"}})
        self.stored[digest] = request.content
        return httpx.Response(200, json={})

    def _deploy(self, request: httpx.Request) -> httpx.Response:
        self.events.append("deploy")
        if self.deploy_status is not None:
            body = {"error": {"message": self.deploy_error_message}} if self.deploy_error_message else {}
            return httpx.Response(self.deploy_status, json=body)

        payload = json.loads(request.content)
        missing = [ref for ref in payload["files"] if ref["sha"] not in self.stored]
        if missing:
            return httpx.Response(400, json={"error": {"message": "missing_files"}})

        self.deployments.append(payload)
        deployment_id = f"dpl_{len(self.deployments)}"
        return httpx.Response(
            200,
            json={
                "id": deployment_id,
                "url": f"{payload['name']}-{deployment_id}.vercel.app",
                "projectId": self.project_id,
            },
        )


@pytest.fixture
def fake_vercel() -> FakeVercel:
    return FakeVercel()


@pytest_asyncio.fixture
async def vercel_http(fake_vercel: FakeVercel) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_vercel.handler)) as client:
        yield client


@pytest.fixture
def vercel_client(vercel_http: httpx.AsyncClient) -> VercelClient:
    return VercelClient("user-token", vercel_http, base_url="https://api.vercel.com")


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test.

    Yields:
        AsyncSession for database operations
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestAsyncSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    vercel_http: httpx.AsyncClient,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with database and provider overrides."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    async def override_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
        yield vercel_http

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_http_client] = override_http_client

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def user(db_session: AsyncSession) -> User:
    user = User(email="owner@example.com", name="Owner")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    user = User(email="someone-else@example.com", name="Someone Else")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token({"sub": str(user.id), "user_id": user.id})
    return {"Authorization": f"Bearer {token}"}


async def make_project(
    session: AsyncSession,
    owner: User,
    name: str = "Acme Landing",
    framework: Optional[str] = None,
) -> Project:
    project = Project(name=name, owner_id=owner.id)
    session.add(project)
    await session.commit()
    await session.refresh(project)
    if framework is not None:
        session.add(BuildConfig(project_id=project.id, framework=framework))
        await session.commit()
    return project


async def make_build(
    session: AsyncSession,
    project: Project,
    status: BuildStatus = BuildStatus.COMPLETE,
    files: Optional[List[Dict[str, str]]] = None,
    age_minutes: int = 0,
    preview_token: Optional[str] = None,
) -> BuildOutput:
    """Insert a build row; larger ``age_minutes`` means older."""
    build = BuildOutput(
        project_id=project.id,
        status=status,
        files=files if files is not None else [{"path": "index.html", "content": "<h1>Hi</h1>"}],
        preview_token=preview_token or hashlib.sha256(os.urandom(16)).hexdigest(),
        created_at=datetime.now(timezone.utc) - timedelta(minutes=age_minutes),
    )
    session.add(build)
    await session.commit()
    await session.refresh(build)
    return build


@pytest_asyncio.fixture
async def project(db_session: AsyncSession, user: User) -> Project:
    return await make_project(db_session, user)
