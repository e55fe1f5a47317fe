# Line-item tables and formula explanations for the presentation and report layers
from typing import List, Tuple

import pandas as pd

from finance.amounts import format_currency, format_percent
from models import BuyerInput, BuyerResult, PitMode, SellerInput, SellerResult

EXEMPT_LABEL = "免征"


def seller_line_items(inputs: SellerInput, res: SellerResult) -> pd.DataFrame:
    """Seller costs as rows of (Item, Amount). A zero bridge fee or zero other fees are omitted."""
    rows: List[Tuple[str, float]] = [
        ("增值税", res.vat),
        ("增值税附加税", res.vat_surcharge),
        ("个人所得税", res.pit),
        ("卖方中介费", res.seller_agent_fee),
    ]
    if res.bridge_fee != 0:
        rows.append(("过桥费", res.bridge_fee))
    if inputs.other_seller_fees != 0:
        rows.append(("其他费用", inputs.other_seller_fees))
    return pd.DataFrame(rows, columns=["Item", "Amount"])


def seller_summary(inputs: SellerInput, res: SellerResult) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Metric": ["成交价", "原购房契税", "历史差价", "卖方税费合计", "交易盈亏（不含贷款）", "到手净额（含贷款）"],
            "Amount": [
                inputs.sale_price,
                res.original_deed_tax,
                res.difference,
                res.seller_taxes_and_fees,
                res.net_profit_before_loan,
                res.net_cash_after_loan,
            ],
        }
    )


def buyer_line_items(inputs: BuyerInput, res: BuyerResult) -> pd.DataFrame:
    rows: List[Tuple[str, float]] = [
        ("成交价", inputs.sale_price),
        ("契税", res.deed_tax),
    ]
    if res.buyer_agent_fee > 0:
        rows.append(("买方中介费", res.buyer_agent_fee))
    if inputs.buyer_loan_fees > 0:
        rows.append(("贷款费用", inputs.buyer_loan_fees))
    return pd.DataFrame(rows, columns=["Item", "Amount"])


def seller_cost_shares(inputs: SellerInput, res: SellerResult) -> pd.DataFrame:
    """Non-zero seller cost items with their share of the total, for the pie chart."""
    df = seller_line_items(inputs, res)
    df = df[df["Amount"] > 0].reset_index(drop=True)
    total = df["Amount"].sum()
    df["Share"] = df["Amount"] / total if total > 0 else 0.0
    return df


def vat_explanation(inputs: SellerInput, res: SellerResult) -> str:
    if inputs.is_over_two_years:
        return "满2年免征"
    return (
        f"不含税价格 {format_currency(res.vat_base)} × {format_percent(inputs.vat_rate)}"
        f" = {format_currency(res.vat)}"
    )


def surcharge_explanation(inputs: SellerInput, res: SellerResult) -> str:
    if res.vat <= 0:
        return "无增值税，无附加税"
    return (
        f"增值税 {format_currency(res.vat)} × {format_percent(inputs.surcharge_on_vat)}"
        f" = {format_currency(res.vat_surcharge)}"
    )


def pit_explanation(inputs: SellerInput, res: SellerResult) -> str:
    if inputs.is_pit_exempt:
        return "满五唯一，免征个税"
    mode = PitMode(inputs.pit_mode)
    if mode is PitMode.ASSESSED1:
        return f"核定征收 {format_currency(inputs.sale_price)} × 1% = {format_currency(res.pit)}"
    if mode is PitMode.DIFF20:
        terms = [
            format_currency(inputs.sale_price),
            format_currency(inputs.original_purchase_price),
            format_currency(res.original_deed_tax),
        ]
        if inputs.allowed_deductibles > 0:
            terms.append(format_currency(inputs.allowed_deductibles))
        if inputs.paid_loan_interest > 0:
            terms.append(format_currency(inputs.paid_loan_interest))
        return f"差额征收 ({' - '.join(terms)}) × 20% = {format_currency(res.pit)}"
    return EXEMPT_LABEL


def deed_tax_explanation(inputs: BuyerInput, res: BuyerResult) -> str:
    return (
        f"{format_currency(inputs.deed_tax_base_price)} × {format_percent(inputs.deed_tax_rate)}"
        f" = {format_currency(res.deed_tax)}"
    )


def bridge_fee_explanation(inputs: SellerInput, res: SellerResult) -> str:
    if res.bridge_fee <= 0:
        return ""
    months = f"{inputs.bridge_months:g}"
    return (
        f"{format_currency(inputs.remaining_loan)} × {format_percent(inputs.bridge_monthly_rate)}"
        f" × {months}个月 = {format_currency(res.bridge_fee)}"
    )


def explanations(
    seller: SellerInput, seller_res: SellerResult, buyer: BuyerInput, buyer_res: BuyerResult
) -> List[Tuple[str, str]]:
    """Ordered (title, formula) pairs; the bridge fee line only when one is charged."""
    lines = [
        ("增值税计算", vat_explanation(seller, seller_res)),
        ("附加税计算", surcharge_explanation(seller, seller_res)),
        ("个税计算", pit_explanation(seller, seller_res)),
        ("契税计算", deed_tax_explanation(buyer, buyer_res)),
    ]
    bridge = bridge_fee_explanation(seller, seller_res)
    if bridge:
        lines.append(("过桥费计算", bridge))
    return lines
