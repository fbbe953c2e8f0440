"""Tests for the receipt normalizer."""

import pytest
from pydantic import ValidationError

from splitsmart.engine import normalize_receipt, receipt_from_payload


class TestNormalizeReceipt:

    def test_ids_follow_input_position(self):
        receipt = normalize_receipt([
            {"name": "Burger", "price": 10},
            {"name": "Fries", "price": 4},
            {"name": "Shake", "price": 5},
        ])
        assert receipt.item_ids == ["item-0", "item-1", "item-2"]
        assert [i.name for i in receipt.items] == ["Burger", "Fries", "Shake"]

    def test_missing_numbers_default_to_zero(self):
        receipt = normalize_receipt([{"name": "Tea", "price": 2}])
        assert receipt.subtotal == 0
        assert receipt.tax == 0
        assert receipt.tip == 0
        assert receipt.total == 0

    @pytest.mark.parametrize("falsy", [None, 0, 0.0, "", False])
    def test_falsy_numbers_default_to_zero(self, falsy):
        receipt = normalize_receipt([], subtotal=falsy, tax=falsy, tip=falsy, total=falsy)
        assert (receipt.subtotal, receipt.tax, receipt.tip, receipt.total) == (0, 0, 0, 0)

    def test_numbers_are_kept(self):
        receipt = normalize_receipt([], subtotal=14, tax=1.4, tip=2, total=17.4)
        assert receipt.subtotal == 14.0
        assert receipt.tax == 1.4
        assert receipt.tip == 2.0
        assert receipt.total == 17.4

    def test_numeric_strings_are_read(self):
        receipt = normalize_receipt([{"name": "Wine", "price": "12.50"}], subtotal="12.50")
        assert receipt.items[0].price == 12.5
        assert receipt.subtotal == 12.5

    def test_unreadable_numbers_become_zero(self):
        receipt = normalize_receipt([{"name": "Wine", "price": "twelve"}], tax="n/a")
        assert receipt.items[0].price == 0
        assert receipt.tax == 0

    def test_negative_prices_pass_through(self):
        receipt = normalize_receipt([{"name": "Discount", "price": -3}])
        assert receipt.items[0].price == -3

    def test_missing_name_gets_default(self):
        receipt = normalize_receipt([{"price": 3}, {"name": "   ", "price": 1}])
        assert [i.name for i in receipt.items] == ["Item", "Item"]

    def test_skipped_entries_keep_later_ids_stable(self):
        receipt = normalize_receipt([
            {"name": "Burger", "price": 10},
            "garbage",
            {"name": "Fries", "price": 4},
        ])
        assert receipt.item_ids == ["item-0", "item-2"]

    def test_subtotal_is_not_derived(self):
        receipt = normalize_receipt([{"name": "Burger", "price": 10}])
        assert receipt.subtotal == 0
        assert receipt.items_sum == 10

    def test_receipt_is_immutable(self):
        receipt = normalize_receipt([{"name": "Burger", "price": 10}], subtotal=10)
        with pytest.raises(ValidationError):
            receipt.subtotal = 20
        with pytest.raises(ValidationError):
            receipt.items[0].price = 1

    def test_get_item(self):
        receipt = normalize_receipt([{"name": "Burger", "price": 10}])
        assert receipt.get_item("item-0").name == "Burger"
        assert receipt.get_item("item-5") is None


class TestReceiptFromPayload:

    def test_full_payload(self):
        receipt = receipt_from_payload({
            "items": [{"name": "Burger", "price": 10}, {"name": "Fries", "price": 4}],
            "subtotal": 14,
            "tax": 1.4,
            "total": 15.4,
        })
        assert receipt.item_ids == ["item-0", "item-1"]
        assert receipt.subtotal == 14
        assert receipt.tip == 0
        assert receipt.total == 15.4

    @pytest.mark.parametrize("payload", [None, [], "text", {"items": "Burger"}, {}])
    def test_unusable_payload_gives_empty_receipt(self, payload):
        receipt = receipt_from_payload(payload)
        assert receipt.items == ()
        assert receipt.total == 0
