"""
Pytest configuration for the roster tests.

The app modules read their settings at import time, so the environment is
prepared before anything from duty_roster is imported. Every test that needs
storage gets its own on-disk aiosqlite database.
"""
import os
import tempfile
from datetime import date, datetime
from zoneinfo import ZoneInfo

os.environ["DB_BACKEND"] = "sqlite"
os.environ["SQLITE_PATH"] = os.path.join(tempfile.mkdtemp(), "unused.sqlite3")
os.environ["PEPPER_DATA"] = "test-pepper"
os.environ["ROSTER_TIMEZONE"] = "Africa/Dar_es_Salaam"

import httpx  # noqa: E402
import pytest  # noqa: E402
from httpx import ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from duty_roster.crud import CreateData  # noqa: E402
from duty_roster.models.dc_models import GenderModel, UserModel  # noqa: E402
from duty_roster.services.roster_db import RosterRepository  # noqa: E402
from duty_roster.sms_gateway import SmsGateway  # noqa: E402

TZ = ZoneInfo("Africa/Dar_es_Salaam")
PASSWORD = "Passw0rd!"

# 2025-01-22 is a Wednesday.
WEDNESDAY = date(2025, 1, 22)


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def repository(anyio_backend, tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'roster.sqlite3'}")
    await CreateData.create_table(engine)
    sessionmaker = async_sessionmaker(
        autocommit=False,
        class_=AsyncSession,
        autoflush=True,
        expire_on_commit=False,
        bind=engine,
    )
    yield RosterRepository(sessionmaker)
    await engine.dispose()


@pytest.fixture
def make_user(repository):
    counter = {"n": 0}

    async def _make_user(*roles, username=None, first_name=None, phone_number=None, login=True):
        counter["n"] += 1
        n = counter["n"]
        user = UserModel(
            first_name=first_name or f"Member{n}",
            last_name="Tester",
            username=(username or f"member{n}") if login else None,
            phone_number=phone_number or f"+255700000{n:03d}",
            gender=GenderModel.Female,
            university="UDSM",
            course="LAW",
            date_of_birth=date(2000, 5, 17),
            roles=set(roles),
        )
        return await repository.create_user(user, PASSWORD if login else None)

    return _make_user


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 1, 22, 10, 0, tzinfo=TZ))


@pytest.fixture
def sms_requests():
    return []


@pytest.fixture
async def gateway(anyio_backend, sms_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        sms_requests.append(request)
        return httpx.Response(200, json={"successful": True})

    gateway = SmsGateway(provider="beem", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    yield gateway
    await gateway.aclose()


@pytest.fixture
async def client(repository, clock, gateway):
    from duty_roster import main
    from duty_roster.dependencies import get_clock, get_repository, get_sms_gateway

    main.app.dependency_overrides[get_repository] = lambda: repository
    main.app.dependency_overrides[get_clock] = lambda: clock.now
    main.app.dependency_overrides[get_sms_gateway] = lambda: gateway
    async with httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test") as c:
        yield c
    main.app.dependency_overrides.clear()


def auth(user: UserModel):
    return (user.username, PASSWORD)
