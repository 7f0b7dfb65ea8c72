import os
import sys
from pathlib import Path
from types import SimpleNamespace

# Settings are cached on first import; configure the environment before anything loads them
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENABLE_RATE_LIMITER"] = "false"
os.environ["SEED_ADMIN"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from apps.notifications.broker import NotificationBroker
from common.hashing import hash_password
from common.jwt import create_access_refresh_tokens
from constants.roles import ADMIN, REQUESTER
from constants.statuses import PRODUCT_AVAILABLE, PRODUCT_UNAVAILABLE
from models.base import Base, get_db
from models.item_budget import ItemBudget  # noqa: F401
from models.item_receipt import ItemReceipt  # noqa: F401
from models.product import Product
from models.purchase_request import PurchaseRequest, RequestItem  # noqa: F401
from models.request_attachment import RequestAttachment  # noqa: F401
from models.sector import Sector
from models.supplier import Supplier
from models.user import User

PASSWORD = "Secret123"


class RecordingNotifier(NotificationBroker):
    """
    Broker that also remembers every published event, in order.
    """

    def __init__(self):
        super().__init__(queue_size=10)
        self.events = []

    def publish(self, event, target_user_ids=None):
        self.events.append(event)
        return super().publish(event, target_user_ids)


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest_asyncio.fixture
async def world(db):
    """
    Two sectors, an admin, two requesters of the same sector, one requester
    of another sector, a handful of products and a supplier.
    """
    engineering = Sector(name="Engineering")
    finance = Sector(name="Finance")
    db.add_all([engineering, finance])
    await db.flush()

    password_hash = hash_password(PASSWORD)
    admin = User(name="Admin", email="admin@example.com", password_hash=password_hash, role=ADMIN, sector_id=engineering.id)
    alice = User(name="Alice", email="alice@example.com", password_hash=password_hash, role=REQUESTER, sector_id=engineering.id)
    bob = User(name="Bob", email="bob@example.com", password_hash=password_hash, role=REQUESTER, sector_id=engineering.id)
    carol = User(name="Carol", email="carol@example.com", password_hash=password_hash, role=REQUESTER, sector_id=finance.id)

    cable = Product(name="Cable", unit="m", sector_id=engineering.id, status=PRODUCT_AVAILABLE)
    drill = Product(name="Drill", unit="un", sector_id=engineering.id, status=PRODUCT_AVAILABLE)
    gloves = Product(name="Gloves", unit="pair", sector_id=engineering.id, status=PRODUCT_AVAILABLE)
    retired = Product(name="Old Saw", unit="un", sector_id=engineering.id, status=PRODUCT_UNAVAILABLE)
    paper = Product(name="Paper", unit="box", sector_id=finance.id, status=PRODUCT_AVAILABLE)

    supplier = Supplier(name="ACME Supplies", cnpj="12.345.678/0001-90")

    db.add_all([admin, alice, bob, carol, cable, drill, gloves, retired, paper, supplier])
    await db.commit()

    return SimpleNamespace(
        engineering=engineering,
        finance=finance,
        admin=admin,
        alice=alice,
        bob=bob,
        carol=carol,
        cable=cable,
        drill=drill,
        gloves=gloves,
        retired=retired,
        paper=paper,
        supplier=supplier,
    )


def auth_headers(user: User) -> dict:
    tokens = create_access_refresh_tokens(str(user.id), user.role)
    return {"Authorization": f"Bearer {tokens['token']}"}


@pytest_asyncio.fixture
async def app(session_factory, notifier):
    from main import create_app

    application = create_app()
    application.state.notifier = notifier

    async def override_get_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
