# foodorder/services/catalog_client.py
import requests

from foodorder.domain.schemas import MenuItemSnapshot, DeliveryLocationSnapshot
from foodorder.utils.retry import http_retry
from foodorder.utils.settings import CATALOG_SERVICE_URL
from foodorder.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogClient:
    """
    Klient HTTP do serwisu katalogu (menu + lokalizacje dostawy).
    Zwraca None gdy zasob nie istnieje (404), inne bledy HTTP leca wyzej.
    """

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or CATALOG_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _get(self, path: str) -> dict | None:
        url = f"{self.base_url}{path}"
        logger.info(f"CatalogClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    def fetch_menu_item(self, menu_item_id: str) -> MenuItemSnapshot | None:
        data = self._get(f"/menu/items/{menu_item_id}")
        if data is None:
            return None
        return MenuItemSnapshot.model_validate(data)

    def fetch_delivery_location(self, location_id: str) -> DeliveryLocationSnapshot | None:
        data = self._get(f"/delivery-locations/{location_id}")
        if data is None:
            return None
        return DeliveryLocationSnapshot.model_validate(data)
