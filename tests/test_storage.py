"""Tests for state persistence and schema migration."""

import json

import pytest

from config import DEFAULT_SELLER_VALUES
from models import PitMode
from storage import (
    LAST_STATE_KEY,
    SAVED_RECORDS_KEY,
    AppState,
    StateStore,
    normalize_buyer_input,
    normalize_seller_input,
    normalize_state,
)


def test_normalize_seller_fills_defaults():
    seller = normalize_seller_input({"sale_price": 2_500_000})
    assert seller.sale_price == 2_500_000
    assert seller.original_purchase_price == DEFAULT_SELLER_VALUES["original_purchase_price"]
    assert seller.vat_guide_price is None
    assert seller.vat_base_price == 2_500_000


def test_normalize_seller_upgrades_camel_case_shape():
    """Older blobs used camelCase keys and had no vat guide price."""
    seller = normalize_seller_input(
        {
            "salePrice": "3000000",
            "isOverTwoYears": False,
            "surchargeOnVAT": 0.06,
            "pitMode": "diff20",
            "paidLoanInterest": 12_000,
        }
    )
    assert seller.sale_price == 3_000_000.0
    assert seller.is_over_two_years is False
    assert seller.surcharge_on_vat == 0.06
    assert seller.pit_mode is PitMode.DIFF20
    assert seller.paid_loan_interest == 12_000
    assert seller.vat_guide_price is None


def test_normalize_seller_bad_values_fall_back():
    seller = normalize_seller_input({"pit_mode": "flat5", "remaining_loan": "lots", "only_home": "true"})
    assert seller.pit_mode is PitMode.ASSESSED1
    assert seller.remaining_loan == DEFAULT_SELLER_VALUES["remaining_loan"]
    assert seller.only_home is True


def test_normalize_buyer_keeps_assessed_price():
    buyer = normalize_buyer_input({"assessedPrice": 3_200_000, "deedTaxRate": 0.015})
    assert buyer.assessed_price == 3_200_000
    assert buyer.deed_tax_rate == 0.015
    assert buyer.buyer_loan_fees == 0


def test_normalize_state_unknown_city():
    state = normalize_state({"cityName": "火星", "surchargeDiscount": "yes"})
    assert state.city_name == "通用口径"
    assert state.surcharge_discount is True


def test_load_state_defaults_when_missing(tmp_path):
    store = StateStore(tmp_path)
    state = store.load_state("北京")
    assert state.city_name == "北京"
    assert state.seller_input.sale_price == DEFAULT_SELLER_VALUES["sale_price"]


def test_state_round_trip(tmp_path, base_seller, base_buyer):
    store = StateStore(tmp_path)
    state = AppState(base_seller.with_changes(pit_mode=PitMode.DIFF20), base_buyer, "上海", True)

    store.save_state(state)

    assert store.load_state() == state
    blob = json.loads(store.path_for(LAST_STATE_KEY).read_text(encoding="utf-8"))
    assert blob["version"] == 2
    assert blob["data"]["seller_input"]["pit_mode"] == "diff20"
    assert list(tmp_path.glob(".tmp-*")) == []


def test_load_state_upgrades_unversioned_blob(tmp_path):
    store = StateStore(tmp_path)
    legacy = {
        "sellerInput": {"salePrice": 1_000_000, "originalPurchasePrice": 800_000},
        "buyerInput": {"salePrice": 1_000_000, "deedTaxRate": 0.01},
        "cityName": "深圳",
        "surchargeDiscount": False,
    }
    store.path_for(LAST_STATE_KEY).write_text(json.dumps(legacy), encoding="utf-8")

    state = store.load_state()

    assert state.city_name == "深圳"
    assert state.seller_input.sale_price == 1_000_000
    assert state.seller_input.vat_guide_price is None
    assert state.buyer_input.assessed_price is None


def test_load_state_replaces_non_finite_numbers(tmp_path):
    """json accepts NaN/Infinity literals; they must not reach the form."""
    store = StateStore(tmp_path)
    blob = '{"seller_input": {"sale_price": NaN, "remaining_loan": Infinity, "vat_guide_price": -Infinity}}'
    store.path_for(LAST_STATE_KEY).write_text(blob, encoding="utf-8")

    seller = store.load_state().seller_input

    assert seller.sale_price == DEFAULT_SELLER_VALUES["sale_price"]
    assert seller.remaining_loan == DEFAULT_SELLER_VALUES["remaining_loan"]
    assert seller.vat_guide_price is None


def test_corrupt_blob_yields_defaults(tmp_path):
    store = StateStore(tmp_path)
    store.path_for(LAST_STATE_KEY).write_text("{not json", encoding="utf-8")
    store.path_for(SAVED_RECORDS_KEY).write_text("[1, 2", encoding="utf-8")

    assert store.load_state().city_name == "通用口径"
    assert store.load_records() == []


def test_save_records_replace_by_name(tmp_path, base_seller, base_buyer):
    store = StateStore(tmp_path)
    state = AppState(base_seller, base_buyer)

    store.save_record("方案A", state, saved_at="2024-01-01T10:00:00")
    store.save_record("方案B", state, saved_at="2024-01-02T10:00:00")
    store.save_record(" 方案A ", AppState(base_seller.with_changes(sale_price=1), base_buyer))

    records = store.load_records()
    assert [r.name for r in records] == ["方案B", "方案A"]
    assert store.get_record("方案A").seller_input.sale_price == 1
    assert store.get_record("missing") is None


def test_save_record_requires_name(tmp_path, base_seller, base_buyer):
    with pytest.raises(ValueError):
        StateStore(tmp_path).save_record("  ", AppState(base_seller, base_buyer))


def test_delete_record(tmp_path, base_seller, base_buyer):
    store = StateStore(tmp_path)
    store.save_record("方案A", AppState(base_seller, base_buyer))

    assert store.delete_record("方案A") is True
    assert store.delete_record("方案A") is False
    assert store.load_records() == []


def test_load_records_skips_nameless_entries(tmp_path):
    store = StateStore(tmp_path)
    blob = {"version": 2, "data": [{"name": ""}, "junk", {"name": "ok", "cityName": "杭州"}]}
    store.path_for(SAVED_RECORDS_KEY).write_text(json.dumps(blob), encoding="utf-8")

    records = store.load_records()

    assert [r.name for r in records] == ["ok"]
    assert StateStore.record_to_state(records[0]).city_name == "杭州"
