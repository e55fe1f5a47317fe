# What-if tables built on the pure calculators
import numpy as np
import pandas as pd

from finance.taxes import calc_buyer, calc_seller
from models import BuyerInput, PitMode, SellerInput


def sale_price_profile_dataframe(
    seller: SellerInput, buyer: BuyerInput, low: float, high: float, steps: int = 21
) -> pd.DataFrame:
    """
    Re-run both calculators across evenly spaced sale prices in [low, high], everything
    else held fixed. A guide/assessed price that differs from the sale price stays fixed too;
    one that follows the sale price keeps following it.
    """
    if steps < 2:
        raise ValueError("steps must be >= 2")
    if high < low:
        raise ValueError("high must be >= low")

    rows = []
    for price in np.linspace(low, high, steps):
        price = float(price)
        s = seller.with_changes(sale_price=price)
        b = buyer.with_changes(sale_price=price)
        s_res = calc_seller(s)
        b_res = calc_buyer(b)
        rows.append(
            {
                "Sale price": price,
                "Seller taxes & fees": s_res.seller_taxes_and_fees,
                "Net profit before loan": s_res.net_profit_before_loan,
                "Net cash after loan": s_res.net_cash_after_loan,
                "Buyer total": b_res.buyer_total,
            }
        )
    return pd.DataFrame(rows)


def pit_mode_comparison_dataframe(seller: SellerInput) -> pd.DataFrame:
    """Seller figures under every PIT mode, the current one flagged."""
    current = PitMode(seller.pit_mode)
    rows = []
    for mode in PitMode:
        res = calc_seller(seller.with_changes(pit_mode=mode))
        rows.append(
            {
                "PIT mode": mode.value,
                "PIT": res.pit,
                "Seller taxes & fees": res.seller_taxes_and_fees,
                "Net cash after loan": res.net_cash_after_loan,
                "Selected": mode is current,
            }
        )
    return pd.DataFrame(rows)
