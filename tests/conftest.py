import random
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from poketeams.api.deps import get_allocator, get_catalog_client
from poketeams.config import settings
from poketeams.db.database import get_session
from poketeams.main import app
from poketeams.models.catalog import CatalogEntry, CatalogItem, CatalogPage
from poketeams.models.db import Base
from poketeams.models.failure import CatalogUnavailableError, NotFoundError
from poketeams.services.email import EmailService, get_email_service
from poketeams.services.mystery_box import MysteryBoxAllocator
from poketeams.services.rarity_cache import RarityCache


def make_item(
    name: str,
    weight: float = 50,
    height: float = 10,
    types: Sequence[str] = ("normal",),
    item_id: int | None = None,
) -> CatalogItem:
    """Build a catalog item with sensible defaults."""
    return CatalogItem(
        id=item_id if item_id is not None else abs(hash(name)) % 10_000,
        name=name,
        image=f"https://img.example/{name}.png",
        types=tuple(types),
        weight=weight,
        height=height,
    )


class FakeCatalog:
    """In-memory catalog that records how often it was asked for the full list."""

    def __init__(self, items: Sequence[CatalogItem] = ()) -> None:
        self.items = {item.name: item for item in items}
        self.fetch_calls = 0
        self.fetch_limits: list[int] = []
        self.fail_with: Exception | None = None

    async def get_item(self, name: str) -> CatalogItem:
        if self.fail_with is not None:
            raise self.fail_with
        try:
            return self.items[name]
        except KeyError:
            raise NotFoundError(f"Pokemon '{name}' not found") from None

    async def fetch_items(self, limit: int) -> list[CatalogItem]:
        self.fetch_calls += 1
        self.fetch_limits.append(limit)
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.items.values())[:limit]

    async def list_page(self, limit: int, offset: int = 0) -> CatalogPage:
        if self.fail_with is not None:
            raise CatalogUnavailableError()
        names = list(self.items)[offset : offset + limit]
        return CatalogPage(
            count=len(self.items),
            next=None,
            previous=None,
            results=tuple(CatalogEntry(name=n, url=f"https://pokeapi.test/{n}") for n in names),
        )


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


DEFAULT_CATALOG = (
    make_item("pikachu", weight=60, height=4, types=("electric",), item_id=25),
    make_item("charmander", weight=85, height=6, types=("fire",), item_id=4),
    make_item("squirtle", weight=90, height=5, types=("water",), item_id=7),
    make_item("rattata", weight=35, height=3, types=("normal",), item_id=19),
    make_item("pidgey", weight=18, height=3, types=("normal", "flying"), item_id=16),
    make_item("vulpix", weight=99, height=6, types=("fire",), item_id=37),
    make_item("growlithe", weight=190, height=7, types=("fire",), item_id=58),
    make_item("ponyta", weight=300, height=10, types=("fire",), item_id=77),
    make_item("magmar", weight=445, height=13, types=("fire",), item_id=126),
    make_item("psyduck", weight=196, height=8, types=("water",), item_id=54),
    make_item("snorlax", weight=4600, height=21, types=("normal",), item_id=143),
)


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch: pytest.MonkeyPatch) -> None:
    """Use the cheapest bcrypt cost factor in tests."""
    monkeypatch.setattr(settings, "bcrypt_rounds", 4)


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    return FakeCatalog(DEFAULT_CATALOG)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def allocator(fake_catalog: FakeCatalog, fake_clock: FakeClock) -> MysteryBoxAllocator:
    cache = RarityCache(fake_catalog, clock=fake_clock)
    return MysteryBoxAllocator(cache, rng=random.Random(1234))


@pytest.fixture
async def client(async_engine, fake_catalog: FakeCatalog, allocator: MysteryBoxAllocator):
    """Provide an async test client with database and catalog dependencies overridden."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_catalog_client] = lambda: fake_catalog
    app.dependency_overrides[get_allocator] = lambda: allocator
    app.dependency_overrides[get_email_service] = lambda: EmailService(host="")

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def register_and_login(
    client: AsyncClient,
    email: str = "ash@example.com",
    password: str = "pikachu123",
    name: str = "Ash",
    last_name: str = "Ketchum",
) -> dict[str, str]:
    """Register an account through the API and return its bearer headers."""
    response = await client.post(
        "/users",
        json={"name": name, "lastName": last_name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text

    response = await client.post("/users/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
async def auth_headers(client: AsyncClient) -> dict[str, str]:
    return await register_and_login(client)
