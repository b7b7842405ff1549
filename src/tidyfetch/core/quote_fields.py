"""Tag table for the real-time quote endpoint.

The endpoint takes a concatenated list of tags (``f=aa2a5b...``) and answers
with one CSV row whose cells follow the tag order. Each tag is described once
here, with the output column name and the coercion rule for its value.
"""

from __future__ import annotations

from tidyfetch.core.models import FieldType, QuoteField

_N = FieldType.NUMERIC
_P = FieldType.PERCENT
_D = FieldType.DATE
_C = FieldType.CURRENCY
_S = FieldType.STRING

_TAGS: list[tuple[str, str, str, FieldType]] = [
    ("a", "Ask", "ask", _N),
    ("a2", "Average Daily Volume", "average_daily_volume", _N),
    ("a5", "Ask Size", "ask_size", _N),
    ("b", "Bid", "bid", _N),
    ("b4", "Book Value", "book_value", _N),
    ("b6", "Bid Size", "bid_size", _N),
    ("c1", "Change", "change", _N),
    ("c4", "Currency", "currency", _S),
    ("d", "Dividend per Share", "dividend_per_share", _N),
    ("d1", "Last Trade Date", "last_trade_date", _D),
    ("e", "EPS", "eps", _N),
    ("e7", "EPS Estimate Current Year", "eps_estimate_current_year", _N),
    ("e8", "EPS Estimate Next Year", "eps_estimate_next_year", _N),
    ("e9", "EPS Estimate Next Quarter", "eps_estimate_next_quarter", _N),
    ("f6", "Float Shares", "float_shares", _N),
    ("g", "Day's Low", "days_low", _N),
    ("h", "Day's High", "days_high", _N),
    ("j", "52-week Low", "low_52_week", _N),
    ("j1", "Market Capitalization", "market_capitalization", _C),
    ("j2", "Shares Outstanding", "shares_outstanding", _N),
    ("j4", "EBITDA", "ebitda", _C),
    ("j5", "Change From 52-week Low", "change_from_52_week_low", _N),
    ("j6", "Percent Change From 52-week Low", "percent_change_from_52_week_low", _P),
    ("k", "52-week High", "high_52_week", _N),
    ("k3", "Last Trade Size", "last_trade_size", _N),
    ("k4", "Change From 52-week High", "change_from_52_week_high", _N),
    ("k5", "Percent Change From 52-week High", "percent_change_from_52_week_high", _P),
    ("l", "Last Trade With Time", "last_trade_with_time", _S),
    ("l1", "Last Trade Price Only", "last_trade_price_only", _N),
    ("m", "Day's Range", "days_range", _S),
    ("m3", "50-day Moving Average", "moving_average_50_day", _N),
    ("m4", "200-day Moving Average", "moving_average_200_day", _N),
    ("m5", "Change From 200-day Moving Average", "change_from_200_day_moving_average", _N),
    ("m6", "Percent Change From 200-day Moving Average", "percent_change_from_200_day_moving_average", _P),
    ("m7", "Change From 50-day Moving Average", "change_from_50_day_moving_average", _N),
    ("m8", "Percent Change From 50-day Moving Average", "percent_change_from_50_day_moving_average", _P),
    ("n", "Name", "name", _S),
    ("o", "Open", "open", _N),
    ("p", "Previous Close", "previous_close", _N),
    ("p2", "Change in Percent", "change_in_percent", _P),
    ("p5", "Price to Sales", "price_to_sales", _N),
    ("p6", "Price to Book", "price_to_book", _N),
    ("q", "Ex-Dividend Date", "ex_dividend_date", _D),
    ("r", "PE Ratio", "pe_ratio", _N),
    ("r1", "Dividend Pay Date", "dividend_pay_date", _D),
    ("r5", "PEG Ratio", "peg_ratio", _N),
    ("r6", "Price to EPS Estimate Current Year", "price_to_eps_estimate_current_year", _N),
    ("r7", "Price to EPS Estimate Next Year", "price_to_eps_estimate_next_year", _N),
    ("s6", "Revenue", "revenue", _C),
    ("s7", "Short Ratio", "short_ratio", _N),
    ("t8", "Target Price 1 yr", "target_price_1_yr", _N),
    ("v", "Volume", "volume", _N),
    ("w", "52-week Range", "range_52_week", _S),
    ("x", "Stock Exchange", "stock_exchange", _S),
    ("y", "Dividend Yield", "dividend_yield", _N),
]

QUOTE_FIELDS: tuple[QuoteField, ...] = tuple(
    QuoteField(tag=tag, description=desc, name=name, kind=kind)
    for tag, desc, name, kind in _TAGS
)

QUOTE_COLUMNS: tuple[str, ...] = tuple(sorted(f.name for f in QUOTE_FIELDS))


def tag_string() -> str:
    """Concatenate the tags in request order."""
    return "".join(f.tag for f in QUOTE_FIELDS)
