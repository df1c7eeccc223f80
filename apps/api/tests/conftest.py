"""
Test configuration and fixtures.
"""
import os
import pytest
from datetime import datetime, timedelta, timezone
from typing import Callable, Generator, List, Optional, Tuple
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
import redis
from jose import jwt

TEST_TOKEN_SECRET = "test-warranty-secret-0123456789-abcdefghijklmnop"
TEST_JWT_SECRET = "test-session-secret-0123456789-abcdefghijklmnopq"

# Set test configuration before importing app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["WARRANTY_TOKEN_SECRET"] = TEST_TOKEN_SECRET
os.environ["JWT_SECRET_KEY"] = TEST_JWT_SECRET
os.environ.pop("REDIS_URL", None)

from warranty_api.main import app
from warranty_api.core.config import Settings, get_settings
from warranty_api.core.security import encode_token, hash_token
from warranty_api.db.base import Base
from warranty_api.db.session import get_db
from warranty_api.models import (
    BusinessProfile,
    Customer,
    Sale,
    SaleItem,
    StockItem,
    UserProfile,
    WarrantyPublicToken,
)
from warranty_api.routers.warranty_public import cpf_rate_limiter


# In-memory database shared by every connection of the test
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

STORE_NAME = "iPhoneRepasse Fortaleza"
CUSTOMER_CPF = "21126577391"


def create_access_token(subject: str, secret: str = TEST_JWT_SECRET, expires_delta: Optional[timedelta] = None) -> str:
    """Session JWT shaped like the ones the internal app issues to staff."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=30))
    return jwt.encode({"sub": str(subject), "exp": expire, "type": "access"}, secret, algorithm="HS256")


class FixedClock:
    """Injectable clock for services; tests move it explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh schema and a database session for the test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        WARRANTY_TOKEN_SECRET=TEST_TOKEN_SECRET,
        JWT_SECRET_KEY=TEST_JWT_SECRET,
        REDIS_URL=None,
        APP_PUBLIC_URL="https://garantia.example.com/",
        _env_file=None,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime.now(timezone.utc).replace(microsecond=0))


@pytest.fixture(scope="function")
def client(db: Session, settings: Settings) -> Generator[TestClient, None, None]:
    """Create test client with database session and settings overrides."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[cpf_rate_limiter] = lambda: None

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def store(db: Session) -> BusinessProfile:
    profile = BusinessProfile(name=STORE_NAME)
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def customer(db: Session) -> Customer:
    customer = Customer(name="Maria Souza", cpf="211.265.773-91")
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def make_sale(db: Session) -> Callable[..., Sale]:
    """Factory for sales with device line items given as (model, imei) pairs."""
    def _make_sale(
        customer: Optional[Customer],
        date: datetime,
        warranty_expires_at: Optional[datetime],
        devices: Optional[List[Tuple[str, Optional[str]]]] = None,
    ) -> Sale:
        sale = Sale(
            customer_id=customer.id if customer else None,
            date=date,
            warranty_expires_at=warranty_expires_at,
        )
        for model, imei in devices or [("iPhone 13 Pro", "356789104512345")]:
            stock_item = StockItem(model=model, capacity="128GB", color="Grafite", condition="Seminovo", imei=imei)
            sale.items.append(SaleItem(stock_item=stock_item))
        db.add(sale)
        db.commit()
        db.refresh(sale)
        return sale

    return _make_sale


@pytest.fixture
def sale(make_sale, customer: Customer, clock: FixedClock) -> Sale:
    return make_sale(
        customer,
        date=clock.now - timedelta(days=10),
        warranty_expires_at=clock.now + timedelta(days=80),
    )


@pytest.fixture
def make_token(db: Session) -> Callable[..., str]:
    """Persist a token record and return the serialized token."""
    def _make_token(
        sale: Sale,
        expires_at: datetime,
        token_id: str = "tok-0001",
        secret: str = TEST_TOKEN_SECRET,
        revoked_at: Optional[datetime] = None,
        record_expires_at: Optional[datetime] = None,
    ) -> str:
        token = encode_token(token_id, int(expires_at.timestamp()), secret)
        db.add(WarrantyPublicToken(
            id=token_id,
            sale_id=sale.id,
            token_hash=hash_token(token),
            expires_at=record_expires_at or expires_at,
            revoked_at=revoked_at,
        ))
        db.commit()
        return token

    return _make_token


@pytest.fixture
def make_access_token() -> Callable[..., str]:
    return create_access_token


@pytest.fixture
def make_staff(db: Session) -> Callable[[str, str], dict]:
    """Create a user profile with a role and return its auth headers."""
    def _make_staff(user_id: str, role: str) -> dict:
        db.add(UserProfile(id=user_id, name=user_id, role=role))
        db.commit()
        token = create_access_token(subject=user_id, secret=TEST_JWT_SECRET)
        return {"Authorization": f"Bearer {token}"}

    return _make_staff


@pytest.fixture
def admin_headers(make_staff) -> dict:
    return make_staff("11111111-1111-1111-1111-111111111111", "admin")


@pytest.fixture
def seller_headers(make_staff) -> dict:
    return make_staff("22222222-2222-2222-2222-222222222222", "seller")


class FakeRedis:
    """
    In-memory stand-in for the Redis commands the rate limiter uses.

    ``expire_failures`` makes the next N EXPIRE calls fail after the INCR in
    the same pipeline has already been applied. ``down`` fails every pipeline.
    """

    def __init__(self):
        self.counts = {}
        self.ttls = {}
        self.expire_failures = 0
        self.down = False

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    def incr(self, key):
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    def expire(self, key, seconds, nx=False):
        if self.expire_failures:
            self.expire_failures -= 1
            raise redis.ConnectionError("connection reset during EXPIRE")
        if nx and key in self.ttls:
            return False
        self.ttls[key] = seconds
        return True


class FakePipeline:
    def __init__(self, client: FakeRedis):
        self.client = client
        self.commands = []

    def incr(self, key):
        self.commands.append(("incr", (key,), {}))
        return self

    def expire(self, key, seconds, nx=False):
        self.commands.append(("expire", (key, seconds), {"nx": nx}))
        return self

    def execute(self):
        if self.client.down:
            raise redis.ConnectionError("connection refused")
        commands, self.commands = self.commands, []
        return [getattr(self.client, name)(*args, **kwargs) for name, args, kwargs in commands]


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
