"""
Pytest configuration and fixtures for the cart/order pipeline tests.
"""

import os

# ustawienia przed importem aplikacji (settings czyta env przy imporcie)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from foodorder.api.deps import get_catalog_client, get_notification_service
from foodorder.data.database import Base, get_db
from foodorder.data.models import UserModel
from foodorder.domain.schemas import (
    ChoiceGroupSnapshot,
    ChoiceOptionSnapshot,
    ChoiceSelection,
    DeliveryBuildingSnapshot,
    DeliveryLocationSnapshot,
    DeliverySelection,
    MenuItemSnapshot,
    PoolLinkSnapshot,
    SetMenuOptionSnapshot,
    SetMenuSelection,
)
from foodorder.main import app
from foodorder.services.cart_service import CartService
from foodorder.services.delivery_service import DeliveryLabelResolver
from foodorder.services.notification_service import NotificationService
from foodorder.services.order_service import OrderService


SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 12:00 w Bangkoku, 2026-10-18
FIXED_NOW = datetime(2026, 10, 18, 5, 0, tzinfo=timezone.utc)


class FakeCatalog:
    """Katalog w pamieci zamiast HTTP."""

    def __init__(self):
        self.menu_items = {
            "khao-soi": MenuItemSnapshot(
                id="khao-soi",
                name="Khao Soi",
                name_mm="ခေါက်ဆွဲ",
                price=Decimal("100.00"),
                choice_groups=[
                    ChoiceGroupSnapshot(
                        id="protein",
                        title="Protein",
                        min_select=1,
                        max_select=1,
                        is_required=True,
                        options=[
                            ChoiceOptionSnapshot(id="chicken", name="Chicken", extra_price=Decimal("0.00")),
                            ChoiceOptionSnapshot(id="beef", name="Beef", extra_price=Decimal("20.00")),
                        ],
                    ),
                    ChoiceGroupSnapshot(
                        id="extras",
                        title="Extras",
                        min_select=0,
                        max_select=2,
                        options=[
                            ChoiceOptionSnapshot(id="egg", name="Egg", extra_price=Decimal("10.00")),
                            ChoiceOptionSnapshot(id="pickles", name="Pickles", extra_price=Decimal("5.00")),
                            ChoiceOptionSnapshot(id="chili", name="Chili", extra_price=Decimal("0.00")),
                        ],
                    ),
                ],
            ),
            "thai-tea": MenuItemSnapshot(
                id="thai-tea",
                name="Thai Tea",
                price=Decimal("45.00"),
                allows_notes=False,
            ),
            "sold-out": MenuItemSnapshot(
                id="sold-out",
                name="Sold Out Soup",
                price=Decimal("80.00"),
                is_available=False,
            ),
            "curry-set": MenuItemSnapshot(
                id="curry-set",
                name="Curry Set",
                price=Decimal("0.00"),
                is_set_menu=True,
                pool_links=[
                    PoolLinkSnapshot(
                        id="base-curry",
                        label="Curry",
                        is_price_determining=True,
                        is_required=True,
                        options=[
                            SetMenuOptionSnapshot(id="green-curry", name="Green Curry", price=Decimal("90.00"), menu_code="C1"),
                            SetMenuOptionSnapshot(id="red-curry", name="Red Curry", price=Decimal("85.00"), menu_code="C2"),
                            SetMenuOptionSnapshot(id="massaman", name="Massaman", price=Decimal("95.00"), is_available=False),
                        ],
                    ),
                    PoolLinkSnapshot(
                        id="side",
                        label="Side",
                        uses_option_price=False,
                        flat_price=Decimal("25.00"),
                        options=[
                            SetMenuOptionSnapshot(id="spring-roll", name="Spring Roll", price=Decimal("40.00")),
                            SetMenuOptionSnapshot(id="salad", name="Salad", price=Decimal("35.00")),
                        ],
                    ),
                ],
            ),
        }
        self.locations = {
            "condo-a": DeliveryLocationSnapshot(
                id="condo-a",
                condo_name="Condo A",
                buildings=[DeliveryBuildingSnapshot(id="b2", label="Building 2")],
            ),
        }
        self.menu_requests = 0

    def fetch_menu_item(self, menu_item_id):
        self.menu_requests += 1
        return self.menu_items.get(menu_item_id)

    def fetch_delivery_location(self, location_id):
        return self.locations.get(location_id)


class RecordingPublisher:
    def __init__(self):
        self.published = []

    def publish(self, channel, event_name, payload):
        self.published.append((channel, event_name, payload))


class FailingPublisher:
    def __init__(self):
        self.calls = 0

    def publish(self, channel, event_name, payload):
        self.calls += 1
        raise ConnectionError("realtime down")


@pytest.fixture(scope="function")
def db_session():
    """
    Fresh database per test (SQLite in-memory).
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def seed_users(db_session):
    users = [
        UserModel(id=1, name="Alice", phone_number="0811111111"),
        UserModel(id=2, name="Bob", phone_number="0822222222"),
        UserModel(id=3, name="Carol", phone_number=None),
    ]
    db_session.add_all(users)
    db_session.commit()
    return users


@pytest.fixture
def cart_service(db_session, catalog):
    return CartService(db_session, catalog)


@pytest.fixture
def order_service(db_session, catalog, publisher):
    return OrderService(
        db_session,
        delivery_resolver=DeliveryLabelResolver(catalog),
        notification_service=NotificationService(publisher),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def preset_delivery():
    return DeliverySelection(mode="preset", location_id="condo-a", building_id="b2")


@pytest.fixture
def client(db_session, catalog, publisher):
    """
    Test client with database session and collaborators overridden.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog_client] = lambda: catalog
    app.dependency_overrides[get_notification_service] = lambda: NotificationService(publisher)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def beef_with_egg():
    return [
        ChoiceSelection(group_id="protein", option_ids=["beef"]),
        ChoiceSelection(group_id="extras", option_ids=["egg"]),
    ]


def beef_only():
    return [ChoiceSelection(group_id="protein", option_ids=["beef"])]


def green_curry_with_roll():
    return [
        SetMenuSelection(pool_link_id="base-curry", option_id="green-curry"),
        SetMenuSelection(pool_link_id="side", option_id="spring-roll"),
    ]
