from typing import Optional

from config import get_city_by_name
from models import BuyerInput, CityPolicy, SellerInput


def effective_surcharge(city: CityPolicy, surcharge_discount: bool) -> float:
    """City surcharge on VAT, halved when the temporary discount applies."""
    if surcharge_discount:
        return city.surcharge_on_vat / 2
    return city.surcharge_on_vat


def apply_city_to_seller(seller: SellerInput, city: CityPolicy, surcharge_discount: bool = False) -> SellerInput:
    """Overwrite the city-derived policy fields; everything else is kept."""
    return seller.with_changes(
        vat_rate=city.vat_rate,
        surcharge_on_vat=effective_surcharge(city, surcharge_discount),
        pit_mode=city.pit_default,
    )


def sync_buyer_sale_price(buyer: BuyerInput, seller: SellerInput) -> BuyerInput:
    """Buyer pays the seller's contract price. A distinct assessed price is kept."""
    if buyer.sale_price == seller.sale_price:
        return buyer
    return buyer.with_changes(sale_price=seller.sale_price)


def deed_tax_rate_for_preset(city_name: Optional[str], label: str) -> Optional[float]:
    """Rate of a city's deed-tax preset, None when the label is unknown."""
    city = get_city_by_name(city_name)
    for preset in city.deed_tax_presets:
        if preset.label == label:
            return preset.rate
    return None


def preset_label_for_rate(city: CityPolicy, rate: float) -> str:
    """First preset label matching a rate; the custom preset otherwise."""
    for preset in city.deed_tax_presets:
        if preset.rate == rate and preset.rate > 0:
            return preset.label
    return city.deed_tax_presets[-1].label
