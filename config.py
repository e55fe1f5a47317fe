import os
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Optional

from models import CityPolicy, DeedTaxPreset, PitMode

DEFAULT_CITY_NAME = "通用口径"

_FIRST_HOME_PRESETS = (
    DeedTaxPreset("首套住房 ≤90㎡", 0.01),
    DeedTaxPreset("首套住房 90-140㎡", 0.015),
    DeedTaxPreset("首套住房 >140㎡", 0.03),
)
_CITY_PRESETS = _FIRST_HOME_PRESETS + (
    DeedTaxPreset("二套住房", 0.03),
    DeedTaxPreset("自定义", 0.0),
)


def _city(name: str, surcharge_on_vat: float, pit_default: PitMode, presets=_CITY_PRESETS) -> CityPolicy:
    return CityPolicy(
        name=name,
        vat_rate=0.053,  # 5.3%
        surcharge_on_vat=surcharge_on_vat,
        pit_default=pit_default,
        deed_tax_presets=presets,
    )


# Urban construction 7% + education 3% + local education 2% = 12% of VAT
CITY_POLICIES = MappingProxyType({
    city.name: city
    for city in (
        _city(
            DEFAULT_CITY_NAME,
            0.12,
            PitMode.ASSESSED1,
            presets=_FIRST_HOME_PRESETS + (
                DeedTaxPreset("二套住房 ≤90㎡", 0.01),
                DeedTaxPreset("二套住房 90-140㎡", 0.02),
                DeedTaxPreset("二套住房 >140㎡", 0.03),
                DeedTaxPreset("三套及以上", 0.03),
                DeedTaxPreset("自定义", 0.0),
            ),
        ),
        _city("上海", 0.06, PitMode.DIFF20),  # surcharge halved
        _city("北京", 0.12, PitMode.DIFF20),
        _city("深圳", 0.12, PitMode.ASSESSED1),
        _city("广州", 0.12, PitMode.ASSESSED1),
        _city("杭州", 0.12, PitMode.ASSESSED1),
        _city("南京", 0.12, PitMode.ASSESSED1),
    )
})

DEFAULT_CITY = CITY_POLICIES[DEFAULT_CITY_NAME]


def get_city_by_name(name: Optional[str]) -> CityPolicy:
    """Look up a city policy, falling back to the default city."""
    if name is None:
        return DEFAULT_CITY
    return CITY_POLICIES.get(name, DEFAULT_CITY)


DEFAULT_SELLER_VALUES = {
    "sale_price": 3000000.0,
    "original_purchase_price": 2000000.0,
    "original_deed_tax_rate": 0.015,
    "is_over_two_years": True,
    "is_over_five_years": False,
    "only_home": False,
    "vat_rate": 0.053,
    "surcharge_on_vat": 0.12,
    "seller_agent_rate": 0.01,
    "remaining_loan": 800000.0,
    "bridge_monthly_rate": 0.008,
    "bridge_months": 1.0,
    "pit_mode": PitMode.ASSESSED1,
    "allowed_deductibles": 0.0,
    "paid_loan_interest": 0.0,
    "other_seller_fees": 80.0,  # registration fee
    "vat_guide_price": None,
    "vat_rate_editable": False,
}

DEFAULT_BUYER_VALUES = {
    "sale_price": 3000000.0,
    "assessed_price": None,
    "deed_tax_rate": 0.01,
    "buyer_agent_rate": 0.01,
    "buyer_loan_fees": 0.0,
}

# Money fields cleared on reset; rates and flags keep their defaults
RESET_SELLER_ZEROED = ("sale_price", "original_purchase_price", "remaining_loan")
RESET_BUYER_ZEROED = ("sale_price",)

PIT_MODE_DESCRIPTIONS = MappingProxyType({
    PitMode.EXEMPT: "满五唯一免征",
    PitMode.ASSESSED1: "核定征收1%",
    PitMode.DIFF20: "差额征收20%",
})

FEE_DESCRIPTIONS = MappingProxyType({
    "vat": "增值税：不满2年的住房转让需缴纳，税率5.3%",
    "vat_surcharge": "增值税附加税：城建税+教育费附加+地方教育附加，通常为增值税额的12%",
    "pit": "个人所得税：满五唯一免征，否则按核定1%或差额20%征收",
    "deed_tax": "契税：买方承担，根据房屋面积和套数确定税率",
    "agent_fee": "中介费：买卖双方各自承担，通常为成交价的1-2%",
    "bridge_fee": "过桥费：用于提前还清贷款的短期资金成本",
    "registration_fee": "不动产登记费：住宅80元/件",
})

DISCLAIMER_LINES = (
    "本测算结果仅供参考，不构成税务或法律意见",
    "各地政策存在差异，实际执行标准请以当地税务、不动产登记部门为准",
    "税费政策可能调整，请及时关注最新政策变化",
    "建议在实际交易前咨询专业税务顾问或相关部门",
)


@dataclass(frozen=True)
class AppSettings:
    """Runtime settings sourced from the environment.

    Attributes:
        storage_dir: Directory holding the persisted JSON blobs.
        log_level: Name of the application log level.
        log_dir: Optional directory for a log file; console only when unset.
        default_city: City preselected when no state has been saved.
    """

    storage_dir: Path = Path("~/.resale_tax").expanduser()
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    default_city: str = DEFAULT_CITY_NAME

    @classmethod
    def from_env(cls) -> "AppSettings":
        """Build settings from RESALE_TAX_* environment variables."""
        storage_dir = Path(os.getenv("RESALE_TAX_STORAGE_DIR", "~/.resale_tax")).expanduser()
        log_level = os.getenv("RESALE_TAX_LOG_LEVEL", "INFO").strip().upper()
        raw_log_dir = os.getenv("RESALE_TAX_LOG_DIR")
        log_dir = Path(raw_log_dir).expanduser() if raw_log_dir else None
        default_city = get_city_by_name(os.getenv("RESALE_TAX_CITY")).name
        return cls(
            storage_dir=storage_dir,
            log_level=log_level,
            log_dir=log_dir,
            default_city=default_city,
        )
