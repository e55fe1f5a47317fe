"""HTML report of a calculation snapshot."""

import html
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from analytics.breakdown import buyer_line_items, explanations, seller_line_items
from config import DISCLAIMER_LINES
from finance.amounts import format_currency, format_percent
from finance.taxes import calc_buyer, calc_seller
from finance.validation import validate_buyer_input, validate_seller_input
from logger import get_app_logger
from models import BuyerInput, BuyerResult, CityPolicy, SellerInput, SellerResult

logger = get_app_logger("report")

EXPORT_FILENAME_PREFIX = "二手房税费测算"


class ReportExportError(Exception):
    """Raised when a report cannot be rendered or written."""


@dataclass(frozen=True)
class ReportData:
    seller_input: SellerInput
    buyer_input: BuyerInput
    seller_result: SellerResult
    buyer_result: BuyerResult
    city: CityPolicy
    timestamp: str


def build_report_data(
    seller: SellerInput, buyer: BuyerInput, city: CityPolicy, now: Optional[datetime] = None
) -> ReportData:
    """Snapshot inputs with freshly computed results."""
    now = now or datetime.now()
    return ReportData(
        seller_input=seller,
        buyer_input=buyer,
        seller_result=calc_seller(seller),
        buyer_result=calc_buyer(buyer),
        city=city,
        timestamp=now.strftime("%Y-%m-%d %H:%M:%S"),
    )


def export_blockers(seller: SellerInput, buyer: BuyerInput) -> List[str]:
    """Reasons the report may not be exported yet; empty when export is allowed."""
    errors = validate_seller_input(seller) + validate_buyer_input(buyer)
    if errors:
        return ["请先修正输入错误"] + errors
    if seller.sale_price == 0:
        return ["请输入成交价"]
    return []


def report_filename(data: ReportData) -> str:
    stamp = data.timestamp.replace(":", "_").replace(" ", "_")
    return f"{EXPORT_FILENAME_PREFIX}_{stamp}.html"


def _yes_no(flag: bool) -> str:
    return "是" if flag else "否"


def _amount_or_exempt(amount: float) -> str:
    return format_currency(amount) if amount > 0 else "免征"


def _table(df) -> str:
    df = df.copy()
    df["Amount"] = df["Amount"].map(format_currency)
    return df.to_html(index=False, header=False, border=0, classes="items", escape=True)


def render_report_html(data: ReportData) -> str:
    """Render the report as a standalone HTML document."""
    s_in, b_in = data.seller_input, data.buyer_input
    s_res, b_res = data.seller_result, data.buyer_result
    e = html.escape

    basics = [
        ("成交价", format_currency(s_in.sale_price)),
        ("原购房价", format_currency(s_in.original_purchase_price)),
        ("原契税税率", format_percent(s_in.original_deed_tax_rate)),
        ("房龄满2年", _yes_no(s_in.is_over_two_years)),
        ("房龄满5年", _yes_no(s_in.is_over_five_years)),
        ("家庭唯一", _yes_no(s_in.only_home)),
    ]
    seller_rows = [
        ("增值税及附加", _amount_or_exempt(s_res.vat_total)),
        ("个人所得税", _amount_or_exempt(s_res.pit)),
        ("中介费", format_currency(s_res.seller_agent_fee)),
    ]
    if s_res.bridge_fee > 0:
        seller_rows.append(("过桥费", format_currency(s_res.bridge_fee)))
    seller_rows.append(("税费合计", format_currency(s_res.seller_taxes_and_fees)))

    def rows(pairs):
        return "\n".join(f"<tr><td>{e(k)}</td><td class='num'>{e(v)}</td></tr>" for k, v in pairs)

    notes = "\n".join(
        f"<p><strong>{e(title)}:</strong> {e(text)}</p>"
        for title, text in explanations(s_in, s_res, b_in, b_res)
    )
    disclaimer = "\n".join(f"<p>{i}. {e(line)}</p>" for i, line in enumerate(DISCLAIMER_LINES, start=1))

    return f"""<!DOCTYPE html>
<html lang="zh-CN">
<head>
<meta charset="utf-8">
<title>{e(EXPORT_FILENAME_PREFIX)}报告</title>
<style>
body {{ font-family: -apple-system, 'Segoe UI', sans-serif; font-size: 12px; color: #333; max-width: 210mm; margin: 0 auto; }}
h1 {{ color: #2563eb; text-align: center; }}
td.num, table.items td:last-child {{ text-align: right; }}
table {{ width: 100%; border-collapse: collapse; }}
td {{ padding: 6px 0; border-bottom: 1px solid #e5e7eb; }}
</style>
</head>
<body>
<h1>二手房税费测算报告</h1>
<p>生成时间: {e(data.timestamp)}</p>
<p>政策口径: {e(data.city.name)}</p>
<h2>房屋基本信息</h2>
<table>{rows(basics)}</table>
<h2>卖方收益测算</h2>
<p>到手净额（含贷款）: <strong>{e(format_currency(s_res.net_cash_after_loan))}</strong></p>
<p>交易盈亏（不含贷款）: <strong>{e(format_currency(s_res.net_profit_before_loan))}</strong></p>
<table>{rows(seller_rows)}</table>
<h3>卖方费用明细</h3>
{_table(seller_line_items(s_in, s_res))}
<h2>买方成本测算</h2>
<p>购房总成本: <strong>{e(format_currency(b_res.buyer_total))}</strong></p>
{_table(buyer_line_items(b_in, b_res))}
<h2>计算说明</h2>
{notes}
<h2>重要提示</h2>
{disclaimer}
</body>
</html>
"""


def render_report(data: ReportData) -> str:
    """Render the report HTML, wrapping any failure in ReportExportError."""
    try:
        return render_report_html(data)
    except Exception as exc:
        logger.exception("Report rendering failed")
        raise ReportExportError("报告生成失败，请重试") from exc


def export_report(data: ReportData, out_dir: Path) -> Path:
    """Render and write the report, returning its path.

    Raises:
        ReportExportError: rendering or writing failed. Inputs are never modified.
    """
    out_dir = Path(out_dir)
    logger.info(f"Exporting report for {data.city.name} to {out_dir}")
    content = render_report(data)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / report_filename(data)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        logger.exception("Report export failed")
        raise ReportExportError("报告导出失败，请重试") from exc
    return path
