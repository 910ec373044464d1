"""
Tests for CartService (cart aggregator).
"""

from decimal import Decimal

import pytest

from foodorder.data.models import CartItemModel, CartModel
from foodorder.domain.errors import (
    CartCapacityError,
    CartItemNotFoundError,
    CartValidationError,
    MenuItemUnavailableError,
)
from foodorder.domain.schemas import AddCartItemIn, ChoiceSelection
from tests.conftest import beef_only, beef_with_egg


def _line_totals_sum(cart):
    return sum((Decimal(str(i["total_price"])) for i in cart["items"]), Decimal("0"))


class TestEnsureActiveCart:

    def test_creates_cart_lazily_once(self, cart_service, db_session, seed_users):
        first = cart_service.ensure_active_cart(1)
        second = cart_service.ensure_active_cart(1)

        assert first.id == second.id
        assert first.status == "active"
        assert db_session.query(CartModel).filter_by(user_id=1).count() == 1

    def test_get_active_cart_returns_none_without_cart(self, cart_service, seed_users):
        assert cart_service.get_active_cart(1) is None
        assert cart_service.get_cart_summary(1) is None


class TestAddItem:

    def test_merges_identical_configuration(self, cart_service, seed_users):
        cart_service.add_item(1, "khao-soi", 2, None, beef_only())
        cart = cart_service.add_item(1, "khao-soi", 1, None, beef_only())

        assert len(cart["items"]) == 1
        line = cart["items"][0]
        assert line["quantity"] == 3
        assert line["total_price"] == Decimal("360.00")
        assert cart["subtotal"] == Decimal("360.00")

    def test_selection_order_does_not_create_new_line(self, cart_service, seed_users):
        cart_service.add_item(1, "khao-soi", 1, None, [
            ChoiceSelection(group_id="extras", option_ids=["pickles", "egg"]),
            ChoiceSelection(group_id="protein", option_ids=["beef"]),
        ])
        cart = cart_service.add_item(1, "khao-soi", 1, None, [
            ChoiceSelection(group_id="protein", option_ids=["beef"]),
            ChoiceSelection(group_id="extras", option_ids=["egg", "pickles"]),
        ])

        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 2

    def test_different_configuration_creates_new_line(self, cart_service, seed_users):
        cart_service.add_item(1, "khao-soi", 1, None, beef_only())
        cart = cart_service.add_item(1, "khao-soi", 1, None, beef_with_egg())

        assert len(cart["items"]) == 2
        assert cart["subtotal"] == Decimal("250.00")

    def test_captures_price_and_choice_snapshot(self, cart_service, catalog, seed_users):
        cart = cart_service.add_item(1, "khao-soi", 2, None, beef_with_egg())

        line = cart["items"][0]
        assert line["menu_item_name"] == "Khao Soi"
        assert line["base_price"] == Decimal("100.00")
        assert line["addons_total"] == Decimal("30.00")
        assert line["total_price"] == Decimal("260.00")
        assert {(c["group_name"], c["option_name"], c["extra_price"]) for c in line["choices"]} == {
            ("Protein", "Beef", Decimal("20.00")),
            ("Extras", "Egg", Decimal("10.00")),
        }

        # zmiana w katalogu nie rusza zapisanej pozycji
        catalog.menu_items["khao-soi"].price = Decimal("999.00")
        refreshed = cart_service.get_active_cart(1)
        assert refreshed["items"][0]["base_price"] == Decimal("100.00")

    def test_cap_exceeded_on_merge_leaves_line_unchanged(self, cart_service, seed_users):
        cart_service.add_item(1, "khao-soi", 15, None, beef_only())

        with pytest.raises(CartCapacityError):
            cart_service.add_item(1, "khao-soi", 6, None, beef_only())

        cart = cart_service.get_active_cart(1)
        assert cart["items"][0]["quantity"] == 15
        assert cart["subtotal"] == Decimal("1800.00")

    def test_merge_up_to_cap_is_allowed(self, cart_service, seed_users):
        cart_service.add_item(1, "khao-soi", 15, None, beef_only())
        cart = cart_service.add_item(1, "khao-soi", 5, None, beef_only())

        assert cart["items"][0]["quantity"] == 20

    def test_quantity_over_cap_rejected(self, cart_service, seed_users):
        with pytest.raises(CartCapacityError):
            cart_service.add_item(1, "khao-soi", 21, None, beef_only())

    def test_quantity_zero_rejected(self, cart_service, seed_users):
        with pytest.raises(CartValidationError):
            cart_service.add_item(1, "khao-soi", 0, None, beef_only())

    def test_missing_required_choice(self, cart_service, seed_users):
        with pytest.raises(CartValidationError):
            cart_service.add_item(1, "khao-soi", 1, None, [])

    def test_unknown_group_rejected(self, cart_service, seed_users):
        selections = beef_only() + [ChoiceSelection(group_id="sauce", option_ids=["x"])]

        with pytest.raises(CartValidationError):
            cart_service.add_item(1, "khao-soi", 1, None, selections)

    def test_unknown_option_rejected(self, cart_service, seed_users):
        with pytest.raises(CartValidationError):
            cart_service.add_item(1, "khao-soi", 1, None, [
                ChoiceSelection(group_id="protein", option_ids=["tofu"]),
            ])

    def test_unavailable_option_rejected(self, cart_service, catalog, seed_users):
        catalog.menu_items["khao-soi"].choice_groups[0].options[1].is_available = False

        with pytest.raises(CartValidationError):
            cart_service.add_item(1, "khao-soi", 1, None, beef_only())

    def test_too_many_options_rejected(self, cart_service, seed_users):
        with pytest.raises(CartValidationError):
            cart_service.add_item(1, "khao-soi", 1, None, beef_only() + [
                ChoiceSelection(group_id="extras", option_ids=["egg", "pickles", "chili"]),
            ])

    def test_validation_error_writes_no_lines(self, cart_service, db_session, seed_users):
        with pytest.raises(CartValidationError):
            cart_service.add_item(1, "khao-soi", 1, None, [])

        assert db_session.query(CartItemModel).count() == 0

    @pytest.mark.parametrize("menu_item_id", ["sold-out", "does-not-exist"])
    def test_unavailable_menu_item(self, cart_service, seed_users, menu_item_id):
        with pytest.raises(MenuItemUnavailableError):
            cart_service.add_item(1, menu_item_id, 1)

    def test_note_dropped_when_item_disallows_notes(self, cart_service, seed_users):
        cart_service.add_item(1, "thai-tea", 1, "less sugar")
        cart = cart_service.add_item(1, "thai-tea", 1, "no ice")

        assert len(cart["items"]) == 1
        assert cart["items"][0]["note"] is None
        assert cart["items"][0]["quantity"] == 2

    def test_notes_split_lines_when_allowed(self, cart_service, seed_users):
        cart_service.add_item(1, "khao-soi", 1, "  no onion ", beef_only())
        cart = cart_service.add_item(1, "khao-soi", 1, "extra spicy", beef_only())

        assert len(cart["items"]) == 2
        assert cart["items"][0]["note"] == "no onion"


class TestBulkAdd:

    def test_batch_merges_duplicates(self, cart_service, seed_users):
        entry = AddCartItemIn(menu_item_id="khao-soi", quantity=2, selections=beef_only())
        cart = cart_service.add_items(1, [entry, entry, AddCartItemIn(menu_item_id="thai-tea", quantity=1)])

        assert len(cart["items"]) == 2
        khao = next(i for i in cart["items"] if i["menu_item_id"] == "khao-soi")
        assert khao["quantity"] == 4
        assert cart["subtotal"] == Decimal("525.00")

    def test_batch_is_all_or_nothing(self, cart_service, db_session, seed_users):
        entries = [
            AddCartItemIn(menu_item_id="thai-tea", quantity=1),
            AddCartItemIn(menu_item_id="sold-out", quantity=1),
        ]

        with pytest.raises(MenuItemUnavailableError):
            cart_service.add_items(1, entries)

        assert db_session.query(CartItemModel).count() == 0

    def test_empty_batch_rejected(self, cart_service, seed_users):
        with pytest.raises(CartValidationError):
            cart_service.add_items(1, [])


class TestUpdateAndRemove:

    def test_update_recomputes_from_stored_price(self, cart_service, catalog, seed_users):
        cart = cart_service.add_item(1, "khao-soi", 1, None, beef_only())
        item_id = cart["items"][0]["id"]

        catalog.menu_items["khao-soi"].price = Decimal("500.00")
        cart = cart_service.update_quantity(1, item_id, 4)

        assert cart["items"][0]["quantity"] == 4
        assert cart["items"][0]["total_price"] == Decimal("480.00")
        assert cart["subtotal"] == Decimal("480.00")

    def test_update_clamps_to_cap(self, cart_service, seed_users):
        cart = cart_service.add_item(1, "thai-tea", 1)
        cart = cart_service.update_quantity(1, cart["items"][0]["id"], 50)

        assert cart["items"][0]["quantity"] == 20
        assert cart["subtotal"] == Decimal("900.00")

    def test_update_to_zero_deletes_line(self, cart_service, seed_users):
        cart = cart_service.add_item(1, "thai-tea", 1)
        cart = cart_service.update_quantity(1, cart["items"][0]["id"], 0)

        assert cart["items"] == []
        assert cart["subtotal"] == Decimal("0.00")

    def test_remove_item(self, cart_service, db_session, seed_users):
        cart_service.add_item(1, "thai-tea", 2)
        cart = cart_service.add_item(1, "khao-soi", 1, None, beef_with_egg())
        khao_id = next(i["id"] for i in cart["items"] if i["menu_item_id"] == "khao-soi")

        cart = cart_service.remove_item(1, khao_id)

        assert [i["menu_item_id"] for i in cart["items"]] == ["thai-tea"]
        assert cart["subtotal"] == Decimal("90.00")

    def test_foreign_line_is_not_found(self, cart_service, seed_users):
        cart = cart_service.add_item(1, "thai-tea", 1)
        item_id = cart["items"][0]["id"]

        with pytest.raises(CartItemNotFoundError):
            cart_service.update_quantity(2, item_id, 3)
        with pytest.raises(CartItemNotFoundError):
            cart_service.remove_item(2, item_id)

        assert cart_service.get_active_cart(1)["items"][0]["quantity"] == 1

    def test_subtotal_matches_lines_after_mixed_operations(self, cart_service, seed_users):
        cart = cart_service.add_item(1, "khao-soi", 3, None, beef_only())
        cart = cart_service.add_item(1, "khao-soi", 1, "no onion", beef_with_egg())
        cart = cart_service.add_item(1, "thai-tea", 2)
        assert cart["subtotal"] == _line_totals_sum(cart)

        tea_id = next(i["id"] for i in cart["items"] if i["menu_item_id"] == "thai-tea")
        cart = cart_service.update_quantity(1, tea_id, 7)
        assert cart["subtotal"] == _line_totals_sum(cart)

        cart = cart_service.add_item(1, "khao-soi", 2, None, beef_only())
        first_id = cart["items"][0]["id"]
        cart = cart_service.remove_item(1, first_id)
        assert cart["subtotal"] == _line_totals_sum(cart)

        summary = cart_service.get_cart_summary(1)
        assert summary["subtotal"] == cart["subtotal"]
        assert summary["item_count"] == len(cart["items"])
        assert summary["total_quantity"] == sum(i["quantity"] for i in cart["items"])
