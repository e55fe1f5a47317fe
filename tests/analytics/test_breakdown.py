"""Tests for the line-item tables and formula explanations."""

import pytest

from analytics.breakdown import (
    buyer_line_items,
    explanations,
    pit_explanation,
    seller_cost_shares,
    seller_line_items,
    seller_summary,
    surcharge_explanation,
    vat_explanation,
)
from finance.taxes import calc_buyer, calc_seller
from models import PitMode


def test_seller_line_items_skip_zero_bridge_and_other_fees(base_seller):
    df = seller_line_items(base_seller, calc_seller(base_seller))
    assert list(df["Item"]) == ["增值税", "增值税附加税", "个人所得税", "卖方中介费"]


def test_seller_line_items_include_bridge_and_other_fees(base_seller):
    inputs = base_seller.with_changes(remaining_loan=500_000, bridge_months=1, other_seller_fees=80)
    df = seller_line_items(inputs, calc_seller(inputs))
    assert list(df["Item"])[-2:] == ["过桥费", "其他费用"]
    assert df["Amount"].iloc[-1] == 80


def test_line_items_sum_to_total(base_seller):
    inputs = base_seller.with_changes(remaining_loan=500_000, bridge_months=1, other_seller_fees=80)
    res = calc_seller(inputs)
    assert seller_line_items(inputs, res)["Amount"].sum() == pytest.approx(res.seller_taxes_and_fees)


def test_negative_other_fees_stay_in_line_items(base_seller):
    """A negative adjustment is listed so the rows still add up to the total."""
    inputs = base_seller.with_changes(other_seller_fees=-500)
    res = calc_seller(inputs)
    df = seller_line_items(inputs, res)
    assert df["Amount"].iloc[-1] == -500
    assert df["Amount"].sum() == pytest.approx(res.seller_taxes_and_fees)


def test_surcharge_explanation_with_zero_surcharge_rate(base_seller):
    inputs = base_seller.with_changes(surcharge_on_vat=0.0)
    text = surcharge_explanation(inputs, calc_seller(inputs))
    assert text != "无增值税，无附加税"
    assert text.startswith("增值税 ¥")
    assert text.endswith("= ¥0")

    exempt = base_seller.with_changes(is_over_two_years=True)
    assert surcharge_explanation(exempt, calc_seller(exempt)) == "无增值税，无附加税"


def test_seller_summary_rows(base_seller):
    res = calc_seller(base_seller)
    df = seller_summary(base_seller, res)
    assert len(df) == 6
    assert df["Amount"].iloc[-1] == pytest.approx(res.net_cash_after_loan)


def test_cost_shares_drop_zero_items_and_sum_to_one(base_seller):
    inputs = base_seller.with_changes(is_over_two_years=True)
    df = seller_cost_shares(inputs, calc_seller(inputs))
    assert "增值税" not in list(df["Item"])
    assert df["Share"].sum() == pytest.approx(1.0)


def test_buyer_line_items(base_buyer):
    inputs = base_buyer.with_changes(buyer_loan_fees=3_000)
    df = buyer_line_items(inputs, calc_buyer(inputs))
    assert list(df["Item"]) == ["成交价", "契税", "买方中介费", "贷款费用"]


def test_vat_explanation(base_seller):
    assert vat_explanation(base_seller.with_changes(is_over_two_years=True), calc_seller(base_seller)) == "满2年免征"
    text = vat_explanation(base_seller, calc_seller(base_seller))
    assert text.startswith("不含税价格 ¥")
    assert "5.3%" in text


def test_pit_explanation_modes(base_seller):
    exempt = base_seller.with_changes(is_over_five_years=True, only_home=True)
    assert pit_explanation(exempt, calc_seller(exempt)) == "满五唯一，免征个税"

    assert pit_explanation(base_seller, calc_seller(base_seller)) == "核定征收 ¥3,000,000 × 1% = ¥30,000"

    diff = base_seller.with_changes(pit_mode=PitMode.DIFF20, allowed_deductibles=10_000)
    text = pit_explanation(diff, calc_seller(diff))
    assert text == "差额征收 (¥3,000,000 - ¥2,000,000 - ¥20,000 - ¥10,000) × 20% = ¥194,000"

    none = base_seller.with_changes(pit_mode=PitMode.EXEMPT)
    assert pit_explanation(none, calc_seller(none)) == "免征"


def test_explanations_add_bridge_line_only_when_charged(base_seller, base_buyer):
    lines = explanations(base_seller, calc_seller(base_seller), base_buyer, calc_buyer(base_buyer))
    assert [title for title, _ in lines] == ["增值税计算", "附加税计算", "个税计算", "契税计算"]

    with_bridge = base_seller.with_changes(remaining_loan=800_000, bridge_months=1)
    lines = explanations(with_bridge, calc_seller(with_bridge), base_buyer, calc_buyer(base_buyer))
    assert lines[-1] == ("过桥费计算", "¥800,000 × 0.8% × 1个月 = ¥6,400")
