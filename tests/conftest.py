"""Shared fixtures for the calculator tests."""

import pytest

from models import BuyerInput, PitMode, SellerInput


@pytest.fixture
def base_seller() -> SellerInput:
    return SellerInput(
        sale_price=3_000_000,
        vat_guide_price=3_000_000,
        original_purchase_price=2_000_000,
        original_deed_tax_rate=0.01,
        is_over_two_years=False,
        is_over_five_years=False,
        only_home=False,
        vat_rate=0.053,
        surcharge_on_vat=0.12,
        seller_agent_rate=0.01,
        remaining_loan=0,
        bridge_monthly_rate=0.008,
        bridge_months=0,
        pit_mode=PitMode.ASSESSED1,
        allowed_deductibles=0,
        paid_loan_interest=0,
        other_seller_fees=0,
        vat_rate_editable=False,
    )


@pytest.fixture
def base_buyer() -> BuyerInput:
    return BuyerInput(
        sale_price=3_000_000,
        assessed_price=3_000_000,
        deed_tax_rate=0.01,
        buyer_agent_rate=0.01,
        buyer_loan_fees=0,
    )
