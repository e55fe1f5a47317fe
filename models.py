from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple


class PitMode(str, Enum):
    """Personal income tax method."""

    EXEMPT = "exempt"  # no PIT
    ASSESSED1 = "assessed1"  # 1% of sale price
    DIFF20 = "diff20"  # 20% of the deducted gain


@dataclass(frozen=True)
class SellerInput:
    sale_price: float
    original_purchase_price: float
    original_deed_tax_rate: float
    is_over_two_years: bool
    is_over_five_years: bool
    only_home: bool
    vat_rate: float
    surcharge_on_vat: float  # fraction of the VAT amount
    seller_agent_rate: float
    remaining_loan: float
    bridge_monthly_rate: float
    bridge_months: float
    pit_mode: PitMode
    allowed_deductibles: float = 0.0  # renovation etc., diff20 only
    paid_loan_interest: float = 0.0  # diff20 only
    other_seller_fees: float = 0.0
    vat_guide_price: Optional[float] = None  # None = use sale_price
    vat_rate_editable: bool = False  # UI flag only

    @property
    def vat_base_price(self) -> float:
        """Tax-inclusive price used as the VAT base."""
        return self.sale_price if self.vat_guide_price is None else self.vat_guide_price

    @property
    def is_pit_exempt(self) -> bool:
        """Held five years and the family's only home."""
        return self.is_over_five_years and self.only_home

    def with_changes(self, **changes) -> "SellerInput":
        return replace(self, **changes)


@dataclass(frozen=True)
class BuyerInput:
    sale_price: float
    deed_tax_rate: float
    buyer_agent_rate: float
    buyer_loan_fees: float = 0.0
    assessed_price: Optional[float] = None  # None = use sale_price

    @property
    def deed_tax_base_price(self) -> float:
        return self.sale_price if self.assessed_price is None else self.assessed_price

    def with_changes(self, **changes) -> "BuyerInput":
        return replace(self, **changes)


@dataclass(frozen=True)
class SellerResult:
    original_deed_tax: float
    vat: float
    vat_surcharge: float
    vat_total: float
    pit: float
    seller_agent_fee: float
    bridge_fee: float
    seller_taxes_and_fees: float
    difference: float  # historical gain, may be negative
    net_profit_before_loan: float  # may be negative
    net_cash_after_loan: float  # may be negative
    vat_base: float = 0.0  # tax-exclusive guide price, 0 when exempt

    @property
    def taxes_only(self) -> float:
        """VAT with surcharge plus PIT, excluding fees."""
        return self.vat_total + self.pit


@dataclass(frozen=True)
class BuyerResult:
    deed_tax: float
    buyer_agent_fee: float
    buyer_total: float

    @property
    def tax_and_agent_fee(self) -> float:
        return self.deed_tax + self.buyer_agent_fee


@dataclass(frozen=True)
class DeedTaxPreset:
    label: str
    rate: float


@dataclass(frozen=True)
class CityPolicy:
    name: str
    vat_rate: float
    surcharge_on_vat: float  # 0.12 typical, 0.06 when halved
    pit_default: PitMode
    deed_tax_presets: Tuple[DeedTaxPreset, ...] = field(default_factory=tuple)

    def preset_labels(self) -> Tuple[str, ...]:
        return tuple(p.label for p in self.deed_tax_presets)


@dataclass(frozen=True)
class SavedRecord:
    name: str
    saved_at: str  # ISO timestamp
    city_name: str
    surcharge_discount: bool
    seller_input: SellerInput
    buyer_input: BuyerInput
