# foodorder/catalog_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Catalog Service (dev mock)")


MENU_ITEMS = {
    "khao-soi": {
        "id": "khao-soi",
        "name": "Khao Soi",
        "name_mm": "ခေါက်ဆွဲ",
        "price": "120.00",
        "is_available": True,
        "allows_notes": True,
        "choice_groups": [
            {
                "id": "protein",
                "title": "Protein",
                "min_select": 1,
                "max_select": 1,
                "is_required": True,
                "options": [
                    {"id": "chicken", "name": "Chicken", "extra_price": "0.00"},
                    {"id": "beef", "name": "Beef", "extra_price": "20.00"},
                ],
            },
            {
                "id": "extras",
                "title": "Extras",
                "min_select": 0,
                "max_select": 3,
                "options": [
                    {"id": "egg", "name": "Egg", "extra_price": "10.00"},
                    {"id": "pickles", "name": "Pickles", "extra_price": "5.00"},
                ],
            },
        ],
    },
    "thai-tea": {
        "id": "thai-tea",
        "name": "Thai Tea",
        "price": "45.00",
        "allows_notes": False,
    },
    "curry-set": {
        "id": "curry-set",
        "name": "Curry Set",
        "price": "0.00",
        "is_set_menu": True,
        "pool_links": [
            {
                "id": "base-curry",
                "label": "Curry",
                "is_price_determining": True,
                "is_required": True,
                "options": [
                    {"id": "green-curry", "name": "Green Curry", "price": "90.00", "menu_code": "C1"},
                    {"id": "red-curry", "name": "Red Curry", "price": "85.00", "menu_code": "C2"},
                ],
            },
            {
                "id": "side",
                "label": "Side",
                "uses_option_price": False,
                "flat_price": "25.00",
                "options": [
                    {"id": "spring-roll", "name": "Spring Roll", "price": "40.00"},
                    {"id": "salad", "name": "Salad", "price": "35.00"},
                ],
            },
        ],
    },
}

DELIVERY_LOCATIONS = {
    "condo-a": {
        "id": "condo-a",
        "condo_name": "Condo A",
        "buildings": [{"id": "b1", "label": "Building 1"}, {"id": "b2", "label": "Building 2"}],
    },
}


@app.get("/menu/items/{menu_item_id}")
def get_menu_item(menu_item_id: str):
    item = MENU_ITEMS.get(menu_item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Menu item not found")
    return item


@app.get("/delivery-locations/{location_id}")
def get_delivery_location(location_id: str):
    location = DELIVERY_LOCATIONS.get(location_id)
    if not location:
        raise HTTPException(status_code=404, detail="Delivery location not found")
    return location
