from dataclasses import asdict, is_dataclass
from typing import Any, List, Mapping, Optional, Tuple, Union

from models import BuyerInput, SellerInput

# (field, message) - checked in this order
_SELLER_POSITIVE = (
    ("sale_price", "成交价必须大于0"),
    ("original_purchase_price", "原购房总价必须大于0"),
)
_SELLER_RATES = (
    ("original_deed_tax_rate", "原购房契税税率必须在0-100%之间"),
    ("vat_rate", "增值税税率必须在0-100%之间"),
    ("surcharge_on_vat", "附加税系数必须在0-100%之间"),
    ("seller_agent_rate", "中介费率必须在0-100%之间"),
    ("bridge_monthly_rate", "过桥费月费率必须在0-100%之间"),
)
_SELLER_NON_NEGATIVE = (
    ("remaining_loan", "贷款余额不能为负数"),
    ("bridge_months", "过桥费使用月数不能为负数"),
    ("paid_loan_interest", "已还贷款利息不能为负数"),
)

_BUYER_POSITIVE = (
    ("sale_price", "成交价必须大于0"),
)
_BUYER_RATES = (
    ("deed_tax_rate", "契税税率必须在0-100%之间"),
    ("buyer_agent_rate", "中介费率必须在0-100%之间"),
)
_BUYER_NON_NEGATIVE = (
    ("buyer_loan_fees", "贷款费用不能为负数"),
)

InputLike = Union[SellerInput, BuyerInput, Mapping[str, Any], None]


def _as_mapping(partial: InputLike) -> Mapping[str, Any]:
    if partial is None:
        return {}
    if is_dataclass(partial) and not isinstance(partial, type):
        return asdict(partial)
    if isinstance(partial, Mapping):
        return partial
    return {}


def _number(values: Mapping[str, Any], name: str) -> Optional[float]:
    value = values.get(name)
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN
        return None
    return number


def _check(
    values: Mapping[str, Any],
    positive: Tuple[Tuple[str, str], ...],
    rates: Tuple[Tuple[str, str], ...],
    non_negative: Tuple[Tuple[str, str], ...],
) -> List[str]:
    errors: List[str] = []
    for name, message in positive:
        n = _number(values, name)
        if n is None or n <= 0:
            errors.append(message)
    for name, message in rates:
        n = _number(values, name)
        if n is None or n < 0 or n > 1:
            errors.append(message)
    for name, message in non_negative:
        n = _number(values, name)
        if n is None or n < 0:
            errors.append(message)
    return errors


def validate_seller_input(partial: InputLike) -> List[str]:
    """
    Advisory checks on a (possibly partial) seller input.
    Missing and out-of-range fields are both reported; never raises.
    Returns an empty list when valid.
    """
    return _check(_as_mapping(partial), _SELLER_POSITIVE, _SELLER_RATES, _SELLER_NON_NEGATIVE)


def validate_buyer_input(partial: InputLike) -> List[str]:
    return _check(_as_mapping(partial), _BUYER_POSITIVE, _BUYER_RATES, _BUYER_NON_NEGATIVE)
