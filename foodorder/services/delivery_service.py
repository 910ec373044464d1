# foodorder/services/delivery_service.py
from foodorder.domain.enums import DeliveryMode
from foodorder.domain.errors import DeliveryLocationNotFoundError
from foodorder.domain.schemas import DeliverySelection
from foodorder.services.catalog_client import CatalogClient


class DeliveryLabelResolver:
    """Czytelna etykieta adresu dostawy, np. "Condo A, Building 2"."""

    def __init__(self, catalog: CatalogClient):
        self.catalog = catalog

    def resolve(self, selection: DeliverySelection) -> str:
        if selection.mode == DeliveryMode.PRESET.value:
            location = self.catalog.fetch_delivery_location(selection.location_id)
            if location is None:
                raise DeliveryLocationNotFoundError(selection.location_id)

            label = location.condo_name
            if selection.building_id is not None:
                building = next(
                    (b for b in location.buildings if b.id == selection.building_id),
                    None,
                )
                if building is not None:
                    label += f", {building.label}"
            return label

        label = selection.custom_condo_name.strip()
        if selection.custom_building_name and selection.custom_building_name.strip():
            label += f", {selection.custom_building_name.strip()}"
        return label
