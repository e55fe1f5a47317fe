from typing import Tuple

from models import BuyerInput, BuyerResult, PitMode, SellerInput, SellerResult
from finance.financing import bridge_fee

ASSESSED_PIT_RATE = 0.01
DIFF_PIT_RATE = 0.20


def original_deed_tax(original_purchase_price: float, original_deed_tax_rate: float) -> float:
    return original_purchase_price * original_deed_tax_rate


def vat_breakdown(
    guide_price: float, vat_rate: float, surcharge_on_vat: float, is_over_two_years: bool
) -> Tuple[float, float, float, float]:
    """
    Value-added tax on a resale, computed off a tax-INCLUSIVE guide price:
      vat_base      = guide_price / (1 + vat_rate)
      vat           = vat_base * vat_rate
      vat_surcharge = vat * surcharge_on_vat
    Homes held two years or more are exempt (all four figures are 0).

    Returns: (vat_base, vat, vat_surcharge, vat_total)
    """
    if is_over_two_years:
        return 0.0, 0.0, 0.0, 0.0
    vat_base = guide_price / (1 + vat_rate)
    vat = vat_base * vat_rate
    surcharge = vat * surcharge_on_vat
    return vat_base, vat, surcharge, vat + surcharge


def personal_income_tax(inputs: SellerInput, deed_tax_paid: float) -> float:
    """
    Seller PIT under the selected method.

    The five-years-and-only-home exemption wins over any mode. Otherwise:
      - ASSESSED1: 1% of the sale price (fixed, not editable)
      - DIFF20:    20% of (sale - original price - original deed tax
                   - allowed deductibles - paid loan interest), floored at 0
      - EXEMPT:    0
    """
    if inputs.is_pit_exempt:
        return 0.0

    mode = PitMode(inputs.pit_mode)
    if mode is PitMode.ASSESSED1:
        return inputs.sale_price * ASSESSED_PIT_RATE
    if mode is PitMode.DIFF20:
        profit_base = (
            inputs.sale_price
            - inputs.original_purchase_price
            - deed_tax_paid
            - inputs.allowed_deductibles
            - inputs.paid_loan_interest
        )
        return max(profit_base, 0.0) * DIFF_PIT_RATE
    if mode is PitMode.EXEMPT:
        return 0.0
    raise AssertionError(f"unhandled PIT mode: {mode!r}")


def calc_seller(inputs: SellerInput) -> SellerResult:
    """Pure computation of seller taxes, fees and net proceeds. Never validates."""
    deed_tax_paid = original_deed_tax(inputs.original_purchase_price, inputs.original_deed_tax_rate)

    vat_base, vat, vat_surcharge, vat_total = vat_breakdown(
        inputs.vat_base_price,
        inputs.vat_rate,
        inputs.surcharge_on_vat,
        inputs.is_over_two_years,
    )

    pit = personal_income_tax(inputs, deed_tax_paid)
    agent_fee = inputs.sale_price * inputs.seller_agent_rate
    bridge = bridge_fee(inputs.remaining_loan, inputs.bridge_monthly_rate, inputs.bridge_months)

    taxes_and_fees = vat_total + pit + agent_fee + bridge + inputs.other_seller_fees

    # Historical gain: independent of PIT mode and of deductions
    difference = inputs.sale_price - (inputs.original_purchase_price + deed_tax_paid)

    return SellerResult(
        original_deed_tax=deed_tax_paid,
        vat=vat,
        vat_surcharge=vat_surcharge,
        vat_total=vat_total,
        pit=pit,
        seller_agent_fee=agent_fee,
        bridge_fee=bridge,
        seller_taxes_and_fees=taxes_and_fees,
        difference=difference,
        net_profit_before_loan=difference - taxes_and_fees,
        net_cash_after_loan=inputs.sale_price - taxes_and_fees - inputs.remaining_loan,
        vat_base=vat_base,
    )


def calc_buyer(inputs: BuyerInput) -> BuyerResult:
    """
    Buyer costs. Deed tax keys off the ASSESSED price, the agent fee and the
    total off the contract sale price.
    """
    deed_tax = inputs.deed_tax_base_price * inputs.deed_tax_rate
    agent_fee = inputs.sale_price * inputs.buyer_agent_rate
    total = inputs.sale_price + deed_tax + agent_fee + inputs.buyer_loan_fees
    return BuyerResult(deed_tax=deed_tax, buyer_agent_fee=agent_fee, buyer_total=total)
