import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient
from decimal import Decimal
import os

# Point the app at the test database and keep the sweeper out of API tests.
# Must happen before app.core.config is imported.
TEST_SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
os.environ["DATABASE_URL"] = TEST_SQLALCHEMY_DATABASE_URL
os.environ["INVENTORY_RELEASE_ENABLED"] = "false"

# Add project root to sys.path to allow imports from app
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.main import app
from app.db.base_class import Base
from app.db.session import get_db
from app.crud import crud_location, crud_sim_inventory, crud_bundle, crud_order_status
from app.models.enums import OrderEvent, SimStatus
from app.schemas.sim_inventory import SimInventoryCreate

engine = create_engine(
    TEST_SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base.metadata.create_all(bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture(scope="session")
def test_engine():
    Base.metadata.create_all(bind=engine)
    yield engine

@pytest.fixture(scope="function")
def db_session(test_engine):
    """
    Provides a database session for each test function.
    Tables are dropped and recreated for every test so tests never see each other's rows.
    """
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture(scope="function")
def client(db_session):
    # The TestClient uses the app with the overridden get_db dependency
    with TestClient(app) as c:
        yield c


# --- data fixtures (committed, so API calls in the same test see them) ---

def _create_sim(db: Session, number: str, price: str = "500", status: SimStatus = SimStatus.AVAILABLE, city_id=None):
    sim = crud_sim_inventory.create_sim(
        db,
        obj_in=SimInventoryCreate(number=number, sim_price=Decimal(price), status=status),
        city_id=city_id,
    )
    db.commit()
    return sim

@pytest.fixture(scope="function")
def make_sim(db_session: Session):
    def _make(number: str, price: str = "500", status: SimStatus = SimStatus.AVAILABLE, city_id=None):
        return _create_sim(db_session, number, price=price, status=status, city_id=city_id)
    return _make

@pytest.fixture(scope="function")
def test_region(db_session: Session):
    region = crud_location.create_region(db_session, name="Punjab")
    db_session.commit()
    return region

@pytest.fixture(scope="function")
def test_city(db_session: Session, test_region):
    city = crud_location.create_city(db_session, name="Lahore", region_id=test_region.id)
    db_session.commit()
    return city

@pytest.fixture(scope="function")
def other_city(db_session: Session):
    region = crud_location.create_region(db_session, name="Sindh")
    city = crud_location.create_city(db_session, name="Karachi", region_id=region.id)
    db_session.commit()
    return city

@pytest.fixture(scope="function")
def test_sim(db_session: Session, test_city):
    return _create_sim(db_session, "03001234567", city_id=test_city.id)

@pytest.fixture(scope="function")
def second_sim(db_session: Session, test_city):
    return _create_sim(db_session, "03007654321", price="300", city_id=test_city.id)

@pytest.fixture(scope="function")
def test_bundle(db_session: Session):
    bundle = crud_bundle.create_bundle(
        db_session, bundle_name="Monthly 10GB", bundle_code="B10", bundle_price=Decimal("1000"), discount=Decimal("100")
    )
    db_session.commit()
    return bundle

@pytest.fixture(scope="function")
def pending_status(db_session: Session):
    status = crud_order_status.create_order_status(db_session, name="Pending", event=OrderEvent.ORDER_CREATION)
    db_session.commit()
    return status

@pytest.fixture(scope="function")
def released_status(db_session: Session):
    status = crud_order_status.create_order_status(
        db_session, name="Released", event=OrderEvent.AUTO_RELEASE_INVENTORY
    )
    db_session.commit()
    return status
