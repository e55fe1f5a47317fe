def bridge_fee(remaining_loan: float, monthly_rate: float, months: float) -> float:
    """
    Cost of short-term bridge money used to clear the existing mortgage before closing.
    Linear and non-compounding: remaining_loan * monthly_rate * months.
    No amortization; a fractional month count enters the product as-is.
    """
    return remaining_loan * monthly_rate * months
