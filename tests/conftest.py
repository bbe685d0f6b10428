# tests/conftest.py
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sitecatalog.db.database import create_tables
from sitecatalog.services import PlatformCategoryService
from sitecatalog.store import CatalogStore

# In-memory SQLite; every test gets a fresh schema
TEST_DATABASE_URL = "sqlite://"

SITE_ID = 23  # routes to shard _d


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine with every shard table."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a test database session."""
    Session = sessionmaker(autoflush=False, bind=db_engine)
    session = Session()

    yield session

    session.close()


@pytest.fixture(scope="function")
def store(db_session):
    """Catalog store for site 23."""
    return CatalogStore.for_site(db_session, SITE_ID)


@pytest.fixture(scope="function")
def platform_categories(db_session):
    return PlatformCategoryService(db_session)


@pytest.fixture(scope="function")
def test_product_data():
    """Sample product data."""
    return {
        "name": "Canvas Tote",
        "description": "Heavy cotton tote bag",
        "price": 120,
        "member_price": 100,
        "inventory": 10,
    }


@pytest.fixture(scope="function")
def product_id(store, test_product_data):
    return store.products.create(test_product_data, actor=5)
