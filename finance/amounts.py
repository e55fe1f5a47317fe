import math
import re

_STRIP_CHARS = re.compile(r"[,，￥¥\s]")

# Informal magnitude suffixes, expanded by plain text substitution
_SUFFIXES = (
    ("万", "0000"),  # x10,000
    ("千", "000"),  # x1,000
)

_FLOAT_PREFIX = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def parse_amount(text) -> float:
    """
    Parse a user-typed money amount.

    Strips thousands separators, currency glyphs and whitespace, then expands
    the suffixes 万 and 千 into zeros by text replacement (so "300万" -> 3000000,
    but "1万5千" -> "10000" + "5000" -> 100005000). The longest leading
    number is parsed; anything unparsable yields 0.
    """
    if not text:
        return 0.0
    cleaned = _STRIP_CHARS.sub("", str(text))
    for suffix, zeros in _SUFFIXES:
        cleaned = cleaned.replace(suffix, zeros)
    match = _FLOAT_PREFIX.match(cleaned)
    if match is None:
        return 0.0
    value = float(match.group(0))
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value


def format_amount_input(amount: float) -> str:
    """Grouped digits, no decimals, for an amount being edited. Zero means 'no input yet'."""
    if not amount:
        return ""
    return f"{amount:,.0f}"


def format_currency(amount: float, symbol: str = "¥") -> str:
    """Currency with grouping and at most two decimals, trailing zeros dropped."""
    sign = "-" if amount < 0 else ""
    text = f"{abs(amount):,.2f}".rstrip("0").rstrip(".")
    return f"{sign}{symbol}{text}"


def format_percent(rate: float) -> str:
    """Percent with one to two decimals, e.g. 0.053 -> '5.3%', 0.01 -> '1.0%'."""
    text = f"{rate * 100:,.2f}"
    if text.endswith("0"):
        text = text[:-1]
    return f"{text}%"
