"""Tests for applying city presets to inputs."""

import pytest

from config import CITY_POLICIES, DEFAULT_CITY
from models import PitMode
from policy import (
    apply_city_to_seller,
    deed_tax_rate_for_preset,
    effective_surcharge,
    preset_label_for_rate,
    sync_buyer_sale_price,
)


def test_effective_surcharge_halves_on_discount():
    beijing = CITY_POLICIES["北京"]
    assert effective_surcharge(beijing, False) == pytest.approx(0.12)
    assert effective_surcharge(beijing, True) == pytest.approx(0.06)


def test_apply_city_overwrites_policy_fields_only(base_seller):
    shanghai = CITY_POLICIES["上海"]
    seller = base_seller.with_changes(vat_rate=0.05, surcharge_on_vat=0.5)

    updated = apply_city_to_seller(seller, shanghai, surcharge_discount=True)

    assert updated.vat_rate == pytest.approx(0.053)
    assert updated.surcharge_on_vat == pytest.approx(0.03)
    assert updated.pit_mode is PitMode.DIFF20
    assert updated.sale_price == seller.sale_price
    assert updated.remaining_loan == seller.remaining_loan
    # original untouched
    assert seller.vat_rate == 0.05


def test_sync_buyer_sale_price_keeps_assessed_price(base_seller, base_buyer):
    buyer = base_buyer.with_changes(assessed_price=3_200_000)
    synced = sync_buyer_sale_price(buyer, base_seller.with_changes(sale_price=3_500_000))
    assert synced.sale_price == 3_500_000
    assert synced.assessed_price == 3_200_000


def test_sync_buyer_sale_price_noop_returns_same_object(base_seller, base_buyer):
    assert sync_buyer_sale_price(base_buyer, base_seller) is base_buyer


def test_deed_tax_rate_for_preset():
    assert deed_tax_rate_for_preset("上海", "二套住房") == pytest.approx(0.03)
    assert deed_tax_rate_for_preset(None, "首套住房 90-140㎡") == pytest.approx(0.015)
    assert deed_tax_rate_for_preset("上海", "二套住房 ≤90㎡") is None


def test_preset_label_for_rate():
    assert preset_label_for_rate(DEFAULT_CITY, 0.01) == "首套住房 ≤90㎡"
    assert preset_label_for_rate(DEFAULT_CITY, 0.0123) == "自定义"
    assert preset_label_for_rate(DEFAULT_CITY, 0.0) == "自定义"
