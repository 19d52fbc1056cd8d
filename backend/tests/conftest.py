"""Shared test fixtures for all test modules."""

import contextlib

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from plm.core import database as db_module
from plm.core.database import Base, get_db
from plm.models.collection import Collection
from plm.models.garment_model import GarmentModel, ModelStatus
from plm.models.user import Factory, User, UserRole

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """Create a database session for direct repository and service testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def make_user(db_session):
    """Factory fixture creating users with an optional WeChat identity."""
    counter = {"n": 0}

    def _make(
        role: UserRole,
        name: str | None = None,
        wechat_user_id: str | None = "auto",
        factory_id=None,
        is_active: bool = True,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=f"{role.value}{n}@example.com",
            full_name=name or f"{role.value.title()} {n}",
            role=role.value,
            factory_id=factory_id,
            wechat_user_id=f"wx_{role.value}_{n}" if wechat_user_id == "auto" else wechat_user_id,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def factory(db_session):
    f = Factory(name="Guangzhou Knitwear")
    db_session.add(f)
    db_session.commit()
    db_session.refresh(f)
    return f


@pytest.fixture
def collection(db_session):
    c = Collection(name="SS26 Womenswear")
    db_session.add(c)
    db_session.commit()
    db_session.refresh(c)
    return c


@pytest.fixture
def make_model(db_session, collection):
    """Factory fixture creating garment models directly in a given status."""
    counter = {"n": 0}

    def _make(status: ModelStatus = ModelStatus.DRAFT, factory_id=None) -> GarmentModel:
        counter["n"] += 1
        model = GarmentModel(
            collection_id=collection.id,
            model_number=f"M-{counter['n']:04d}",
            model_name=f"Linen shirt {counter['n']}",
            status=status.value,
            assigned_factory_id=factory_id,
        )
        db_session.add(model)
        db_session.commit()
        db_session.refresh(model)
        return model

    return _make
