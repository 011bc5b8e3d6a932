import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from gemquest.api.v1 import deps
from gemquest.core import db as db_module
from gemquest.core.bootstrap import seed_roles
from gemquest.core.errors import NotificationFailure
from gemquest.core.permissions import SUPER_ADMIN
from gemquest.core.security import hash_password
from gemquest.main import app
from gemquest.models import Client, User
from gemquest.repository import TortoisePrincipalRepository
from gemquest.services.mailer import Mailer, render_template


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


class RecordingMailer(Mailer):
    """
    Mailer test double: renders like the real ones and keeps every message
    in `outbox`. Set `fail = True` to make delivery fail.
    """

    def __init__(self):
        self.outbox: list[dict] = []
        self.fail = False

    async def send(self, to, subject, template, variables):
        if self.fail:
            raise NotificationFailure(f"Error sending email to {to}")
        self.outbox.append(
            {
                "to": to,
                "subject": subject,
                "template": template,
                "variables": dict(variables),
                "html": render_template(template, variables),
            }
        )

    def last_to(self, email: str) -> dict:
        return [m for m in self.outbox if m["to"] == email][-1]


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch and roles are seeded.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()
    await seed_roles()


@pytest_asyncio.fixture
async def db():
    """Fresh database without the HTTP app, for service-level tests."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def repo():
    return TortoisePrincipalRepository()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest_asyncio.fixture
async def client(mailer):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    Outgoing email is captured by the `mailer` fixture.
    """
    await _init_test_db()
    app.dependency_overrides[deps.get_mailer] = lambda: mailer
    # Use ASGITransport without lifespan parameter (not supported in all httpx versions)
    try:
        transport = ASGITransport(app=app, lifespan="off")
    except TypeError:
        # Fallback for httpx versions that don't support lifespan parameter
        transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    app.dependency_overrides.clear()
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def create_user(repo):
    """
    Factory fixture to create confirmed users directly via the repository.
    """

    async def _create_user(password: str = "UserPass!23", email: str | None = None) -> tuple[User, str]:
        suffix = uuid.uuid4().hex[:6]
        user = await repo.create_user(
            username=f"user_{suffix}",
            email=email or f"{suffix}@example.com",
            password_hash=hash_password(password),
            email_confirmed=True,
        )
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def create_admin(repo, create_user):
    """
    Factory fixture to create a user holding the global Super Administrator role.
    """

    async def _create_admin(password: str = "AdminPass!23") -> tuple[User, str]:
        user, password = await create_user(password=password)
        role = await repo.find_role_by_name(SUPER_ADMIN)
        await repo.assign_role(user.id, role.id, None)
        return user, password

    return _create_admin


@pytest_asyncio.fixture
async def create_client():
    """Factory fixture to create a tenant."""

    async def _create_client(name: str | None = None, owner: User | None = None) -> Client:
        return await Client.create(name=name or f"client_{uuid.uuid4().hex[:6]}", owner=owner)

    return _create_client


@pytest_asyncio.fixture
async def grant(repo):
    """Assign a role by name to a user, globally (client=None) or within a client."""

    async def _grant(user: User, role_name: str, client: Client | None = None):
        role = await repo.find_role_by_name(role_name)
        assignment, _ = await repo.assign_role(user.id, role.id, client.id if client else None)
        return assignment

    return _grant


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(email: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/auth/login",
            json={"email": email, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["data"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
