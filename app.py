from pathlib import Path
from typing import List

import altair as alt
import pandas as pd
import streamlit as st

from analytics.breakdown import (
    buyer_line_items,
    explanations,
    seller_cost_shares,
    seller_line_items,
    seller_summary,
)
from analytics.sensitivity import pit_mode_comparison_dataframe, sale_price_profile_dataframe
from config import (
    CITY_POLICIES,
    DISCLAIMER_LINES,
    FEE_DESCRIPTIONS,
    PIT_MODE_DESCRIPTIONS,
    RESET_BUYER_ZEROED,
    RESET_SELLER_ZEROED,
    AppSettings,
    get_city_by_name,
)
from finance.amounts import format_amount_input, format_currency, format_percent, parse_amount
from finance.taxes import calc_buyer, calc_seller
from finance.validation import validate_buyer_input, validate_seller_input
from logger import configure_logging, get_app_logger
from models import BuyerInput, CityPolicy, PitMode, SellerInput
from policy import apply_city_to_seller, deed_tax_rate_for_preset, preset_label_for_rate, sync_buyer_sale_price
from report import (
    ReportExportError,
    build_report_data,
    export_blockers,
    export_report,
    render_report,
    report_filename,
)
from storage import AppState, StateStore, normalize_buyer_input, normalize_seller_input

logger = get_app_logger("app")

STATE_KEY = "app_state"
FORM_VERSION_KEY = "form_version"


# ------------------------- State helpers -------------------------

def reset_state(state: AppState) -> AppState:
    """Clear the money fields; rates and PIT mode come from the active city."""
    city = get_city_by_name(state.city_name)
    seller = normalize_seller_input(**{name: 0.0 for name in RESET_SELLER_ZEROED})
    seller = apply_city_to_seller(seller, city, state.surcharge_discount)
    buyer = normalize_buyer_input(**{name: 0.0 for name in RESET_BUYER_ZEROED})
    return AppState(seller, buyer, city.name, state.surcharge_discount)


def change_city(state: AppState, city_name: str, surcharge_discount: bool) -> AppState:
    if city_name == state.city_name and surcharge_discount == state.surcharge_discount:
        return state
    city = get_city_by_name(city_name)
    seller = apply_city_to_seller(state.seller_input, city, surcharge_discount)
    return AppState(seller, state.buyer_input, city.name, surcharge_discount)


def widget_key(name: str) -> str:
    """Widget keys change with the form version so reset/load/city changes repaint the form."""
    return f"{name}_v{st.session_state.get(FORM_VERSION_KEY, 0)}"


def bump_form_version():
    st.session_state[FORM_VERSION_KEY] = st.session_state.get(FORM_VERSION_KEY, 0) + 1


def clamp(value: float, low: float, high: float) -> float:
    """Restored values outside a widget's limits are pulled back in, number_input rejects them otherwise."""
    return min(max(float(value), low), high)


def money_input(label: str, value: float, key: str, help: str = None) -> float:
    """Text box accepting "300万", "1,234" etc."""
    text = st.text_input(label, value=format_amount_input(value), key=widget_key(key), help=help)
    return parse_amount(text)


def percent_input(label: str, rate: float, key: str, max_pct: float = 100.0, step: float = 0.1, **kwargs) -> float:
    pct = st.number_input(label, min_value=0.0, max_value=max_pct, value=clamp(rate * 100.0, 0.0, max_pct),
                          step=step, format="%.2f", key=widget_key(key), **kwargs)
    return pct / 100.0


def preset_select(city: CityPolicy, rate: float) -> str:
    """Deed-tax preset picker; its selection is seeded from state once per form version."""
    key = widget_key("deed_tax_preset")
    labels = list(city.preset_labels())
    if st.session_state.get(key) not in labels:
        st.session_state[key] = preset_label_for_rate(city, rate)
    return st.selectbox("契税档位", labels, key=key, help=FEE_DESCRIPTIONS["deed_tax"])


def persist(store: StateStore, state: AppState):
    st.session_state[STATE_KEY] = state
    try:
        store.save_state(state)
    except OSError as exc:
        logger.error(f"Could not save state: {exc}")
        st.warning("本地保存失败，本次修改仅在当前会话有效")


def show_errors(errors: List[str]):
    for msg in errors:
        st.warning(msg)


# ------------------------- UI -------------------------

def seller_form(state: AppState) -> SellerInput:
    s = state.seller_input

    sale_price = money_input("成交价", s.sale_price, "sale_price")
    separate_guide = st.checkbox("增值税计税价与成交价不同", value=s.vat_guide_price is not None,
                                 help="当地核定/指导价与合同价不一致时使用")
    vat_guide_price = None
    if separate_guide:
        vat_guide_price = money_input("增值税计税价（含税）", s.vat_guide_price or sale_price, "vat_guide_price")

    original_purchase_price = money_input("原购房总价", s.original_purchase_price, "original_purchase_price")
    original_deed_tax_rate = percent_input("原购房契税税率 (%)", s.original_deed_tax_rate, "original_deed_tax_rate")

    st.markdown("#### 房龄与套数")
    is_over_two_years = st.toggle("满2年", value=s.is_over_two_years, help="满2年免征增值税")
    is_over_five_years = st.toggle("满5年", value=s.is_over_five_years)
    only_home = st.toggle("家庭唯一住房", value=s.only_home)

    st.markdown("#### 增值税")
    vat_rate_editable = st.checkbox("手动修改增值税税率", value=s.vat_rate_editable)
    vat_rate = percent_input("增值税税率 (%)", s.vat_rate, "vat_rate", disabled=not vat_rate_editable)
    surcharge_on_vat = percent_input("附加税系数 (% of VAT)", s.surcharge_on_vat, "surcharge_on_vat",
                                     disabled=not vat_rate_editable)

    st.markdown("#### 个人所得税")
    exempt = is_over_five_years and only_home
    if exempt:
        st.success("✓ 满五唯一住房，个人所得税免征")
    modes = list(PitMode)
    pit_mode = st.radio(
        "申报方式", modes, index=modes.index(PitMode(s.pit_mode)), horizontal=True,
        format_func=lambda m: PIT_MODE_DESCRIPTIONS[m], disabled=exempt,
    )
    allowed_deductibles = s.allowed_deductibles
    paid_loan_interest = s.paid_loan_interest
    if pit_mode is PitMode.DIFF20 and not exempt:
        allowed_deductibles = money_input("可扣除成本（装修等）", s.allowed_deductibles, "allowed_deductibles")
        paid_loan_interest = money_input("已还贷款利息", s.paid_loan_interest, "paid_loan_interest")

    st.markdown("#### 费用与贷款")
    seller_agent_rate = percent_input("卖方中介费率 (%)", s.seller_agent_rate, "seller_agent_rate", max_pct=10.0)
    remaining_loan = money_input("剩余贷款", s.remaining_loan, "remaining_loan")
    bridge_monthly_rate = percent_input("过桥费月费率 (%)", s.bridge_monthly_rate, "bridge_monthly_rate",
                                        max_pct=10.0, step=0.05)
    bridge_months = st.number_input("过桥使用月数", min_value=0.0, value=max(0.0, float(s.bridge_months)), step=0.5)
    other_seller_fees = money_input("其他卖方费用", s.other_seller_fees, "other_seller_fees",
                                    help=FEE_DESCRIPTIONS["registration_fee"])

    seller = SellerInput(
        sale_price=sale_price, original_purchase_price=original_purchase_price,
        original_deed_tax_rate=original_deed_tax_rate, is_over_two_years=is_over_two_years,
        is_over_five_years=is_over_five_years, only_home=only_home, vat_rate=vat_rate,
        surcharge_on_vat=surcharge_on_vat, seller_agent_rate=seller_agent_rate,
        remaining_loan=remaining_loan, bridge_monthly_rate=bridge_monthly_rate,
        bridge_months=bridge_months, pit_mode=pit_mode, allowed_deductibles=allowed_deductibles,
        paid_loan_interest=paid_loan_interest, other_seller_fees=other_seller_fees,
        vat_guide_price=vat_guide_price, vat_rate_editable=vat_rate_editable,
    )
    if not vat_rate_editable:
        seller = seller.with_changes(vat_rate=s.vat_rate, surcharge_on_vat=s.surcharge_on_vat)
    return seller


def buyer_form(state: AppState, seller: SellerInput) -> BuyerInput:
    b = sync_buyer_sale_price(state.buyer_input, seller)
    city = get_city_by_name(state.city_name)

    st.caption(f"成交价随卖方同步：{format_currency(b.sale_price)}")
    separate_assessed = st.checkbox("契税计税价与成交价不同", value=b.assessed_price is not None)
    assessed_price = None
    if separate_assessed:
        assessed_price = money_input("契税计税价（评估价）", b.assessed_price or b.sale_price, "assessed_price")

    label = preset_select(city, b.deed_tax_rate)
    preset_rate = deed_tax_rate_for_preset(city.name, label)
    if preset_rate:
        deed_tax_rate = preset_rate
        st.caption(f"契税税率：{format_percent(deed_tax_rate)}")
    else:
        deed_tax_rate = percent_input("自定义契税税率 (%)", b.deed_tax_rate, "deed_tax_rate", max_pct=10.0)

    buyer_agent_rate = percent_input("买方中介费率 (%)", b.buyer_agent_rate, "buyer_agent_rate", max_pct=10.0)
    buyer_loan_fees = money_input("买方贷款费用", b.buyer_loan_fees, "buyer_loan_fees")

    return BuyerInput(
        sale_price=b.sale_price, deed_tax_rate=deed_tax_rate, buyer_agent_rate=buyer_agent_rate,
        buyer_loan_fees=buyer_loan_fees, assessed_price=assessed_price,
    )


def results_panel(state: AppState):
    seller, buyer = state.seller_input, state.buyer_input
    s_res = calc_seller(seller)
    b_res = calc_buyer(buyer)

    st.markdown("### 卖方")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("到手净额（含贷款）", format_currency(s_res.net_cash_after_loan))
    col2.metric("交易盈亏（不含贷款）", format_currency(s_res.net_profit_before_loan))
    col3.metric("卖方税费合计", format_currency(s_res.seller_taxes_and_fees))
    col4.metric("其中税金", format_currency(s_res.taxes_only), help="增值税及附加 + 个人所得税")

    st.markdown("### 买方")
    col1, col2, col3 = st.columns(3)
    col1.metric("购房总成本", format_currency(b_res.buyer_total))
    col2.metric("契税", format_currency(b_res.deed_tax))
    col3.metric("契税 + 中介费", format_currency(b_res.tax_and_agent_fee))

    with st.expander("计算明细", expanded=False):
        st.markdown("**卖方**")
        st.dataframe(seller_summary(seller, s_res), hide_index=True, use_container_width=True,
                     column_config={"Amount": st.column_config.NumberColumn(format="¥%.2f")})
        st.dataframe(seller_line_items(seller, s_res), hide_index=True, use_container_width=True,
                     column_config={"Amount": st.column_config.NumberColumn(format="¥%.2f")})
        st.markdown("**买方**")
        st.dataframe(buyer_line_items(buyer, b_res), hide_index=True, use_container_width=True,
                     column_config={"Amount": st.column_config.NumberColumn(format="¥%.2f")})
        for title, text in explanations(seller, s_res, buyer, b_res):
            st.markdown(f"**{title}**：{text}")

    shares = seller_cost_shares(seller, s_res)
    if not shares.empty:
        st.markdown("#### 卖方税费构成")
        pie_chart = alt.Chart(shares).mark_arc(innerRadius=50, outerRadius=120).encode(
            theta=alt.Theta("Amount:Q"),
            color=alt.Color("Item:N", legend=alt.Legend(orient="left", titleLimit=0, labelLimit=0)),
            tooltip=["Item:N", alt.Tooltip("Amount:Q", format=",.0f"), alt.Tooltip("Share:Q", format=".1%")],
        )
        st.altair_chart(pie_chart, use_container_width=True)

    if seller.sale_price > 0:
        st.markdown("#### 成交价敏感性")
        profile = sale_price_profile_dataframe(seller, buyer, seller.sale_price * 0.8, seller.sale_price * 1.2)
        melted = pd.melt(profile, id_vars=["Sale price"],
                         value_vars=["Net cash after loan", "Seller taxes & fees"],
                         var_name="Series", value_name="Amount")
        line_chart = alt.Chart(melted).mark_line(point=True).encode(
            x=alt.X("Sale price:Q", title="成交价", axis=alt.Axis(format=",.0f")),
            y=alt.Y("Amount:Q", title="金额", axis=alt.Axis(format=",.0f")),
            color=alt.Color("Series:N"),
            tooltip=[alt.Tooltip("Sale price:Q", format=",.0f"), "Series:N",
                     alt.Tooltip("Amount:Q", format=",.0f")],
        )
        st.altair_chart(line_chart, use_container_width=True)

        st.markdown("#### 个税申报方式对比")
        st.dataframe(pit_mode_comparison_dataframe(seller), hide_index=True, use_container_width=True)

    return s_res, b_res


def records_panel(store: StateStore, state: AppState) -> AppState:
    st.markdown("### 保存的测算")
    name = st.text_input("记录名称", key="record_name")
    if st.button("保存当前测算", disabled=not name.strip()):
        try:
            store.save_record(name, state)
            st.success(f"已保存：{name.strip()}")
        except OSError as exc:
            logger.error(f"Could not save record {name!r}: {exc}")
            st.error("保存失败")

    records = store.load_records()
    if not records:
        st.caption("暂无保存记录")
        return state
    labels = [f"{r.name}（{r.saved_at}）" for r in records]
    idx = st.selectbox("已保存记录", range(len(records)), format_func=lambda i: labels[i])
    col1, col2 = st.columns(2)
    if col1.button("载入"):
        state = StateStore.record_to_state(records[idx])
        logger.info(f"Loaded record {records[idx].name!r}")
    if col2.button("删除"):
        store.delete_record(records[idx].name)
        st.rerun()
    return state


def export_panel(state: AppState, reports_dir: Path):
    st.markdown("### 导出报告")
    blockers = export_blockers(state.seller_input, state.buyer_input)
    if blockers:
        logger.debug(f"Export blocked: {blockers[0]}")
        show_errors(blockers[:1])
        return
    data = build_report_data(state.seller_input, state.buyer_input, get_city_by_name(state.city_name))
    try:
        content = render_report(data)
    except ReportExportError as exc:
        st.error(str(exc))
        return
    col1, col2 = st.columns(2)
    col1.download_button("下载测算报告 (HTML)", data=content.encode("utf-8"),
                         file_name=report_filename(data), mime="text/html")
    if col2.button("保存报告到本地"):
        try:
            path = export_report(data, reports_dir)
        except ReportExportError as exc:
            st.error(str(exc))
        else:
            st.success(f"报告已保存：{path}")


def main():
    settings = AppSettings.from_env()
    configure_logging(settings.log_level, settings.log_dir)
    store = StateStore(Path(settings.storage_dir))

    st.set_page_config(page_title="二手房税费测算", page_icon="🏠", layout="wide")
    st.title("🏠 二手房交易税费测算")
    st.caption("仅供参考 · " + DISCLAIMER_LINES[0])

    if STATE_KEY not in st.session_state:
        st.session_state[STATE_KEY] = store.load_state(settings.default_city)
    state: AppState = st.session_state[STATE_KEY]

    left, right = st.columns([1, 2], gap="large")

    with left:
        st.markdown("### 政策配置")
        city_names = list(CITY_POLICIES)
        city_name = st.selectbox("城市", city_names, index=city_names.index(state.city_name))
        surcharge_discount = st.checkbox("附加税减半优惠", value=state.surcharge_discount,
                                         help="部分城市阶段性将附加税减半征收")
        changed = change_city(state, city_name, surcharge_discount)
        if changed is not state:
            bump_form_version()
            state = changed

        if st.button("重置表单"):
            state = reset_state(state)
            bump_form_version()
            persist(store, state)
            st.rerun()

        seller_tab, buyer_tab = st.tabs(["卖方", "买方"])
        with seller_tab:
            seller = seller_form(state)
            show_errors(validate_seller_input(seller))
        with buyer_tab:
            buyer = buyer_form(state, seller)
            show_errors(validate_buyer_input(buyer))
        state = AppState(seller, buyer, state.city_name, state.surcharge_discount)

    with right:
        results_panel(state)
        loaded = records_panel(store, state)
        if loaded is not state:
            bump_form_version()
            persist(store, loaded)
            st.rerun()
        export_panel(state, Path(settings.storage_dir) / "reports")

    if state != st.session_state[STATE_KEY]:
        persist(store, state)


if __name__ == "__main__":
    main()
