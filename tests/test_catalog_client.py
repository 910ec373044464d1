"""
CatalogClient against the dev catalog app (requests routed through TestClient).
"""

from decimal import Decimal

import pytest
import requests
from fastapi.testclient import TestClient

from foodorder.catalog_service.main import app as catalog_app
from foodorder.services import catalog_client as catalog_client_module
from foodorder.services.catalog_client import CatalogClient


@pytest.fixture
def catalog_http(monkeypatch):
    test_client = TestClient(catalog_app)
    urls = []

    def fake_get(url, timeout):
        urls.append(url)
        return test_client.get(url.replace("http://catalog.test", ""))

    monkeypatch.setattr(catalog_client_module.requests, "get", fake_get)
    return urls


def test_fetch_menu_item(catalog_http):
    item = CatalogClient("http://catalog.test/").fetch_menu_item("khao-soi")

    assert catalog_http == ["http://catalog.test/menu/items/khao-soi"]
    assert item.price == Decimal("120.00")
    assert [g.id for g in item.choice_groups] == ["protein", "extras"]
    assert item.choice_groups[0].is_required is True


def test_fetch_menu_item_defaults(catalog_http):
    item = CatalogClient("http://catalog.test").fetch_menu_item("thai-tea")

    assert item.allows_notes is False
    assert item.is_available is True
    assert item.choice_groups == []


def test_missing_menu_item_is_none(catalog_http):
    assert CatalogClient("http://catalog.test").fetch_menu_item("nope") is None


def test_fetch_delivery_location(catalog_http):
    client = CatalogClient("http://catalog.test")

    location = client.fetch_delivery_location("condo-a")

    assert location.condo_name == "Condo A"
    assert [b.id for b in location.buildings] == ["b1", "b2"]
    assert client.fetch_delivery_location("nowhere") is None


@pytest.mark.parametrize("fetch", ["fetch_menu_item", "fetch_delivery_location"])
def test_server_error_is_raised_after_retries(monkeypatch, fetch):
    calls = []

    def failing_get(url, timeout):
        calls.append(url)
        response = requests.Response()
        response.status_code = 500
        response.url = url
        return response

    monkeypatch.setattr(catalog_client_module.requests, "get", failing_get)

    with pytest.raises(requests.HTTPError):
        getattr(CatalogClient("http://catalog.test"), fetch)("condo-a")

    assert len(calls) == 3
