"""Tests for tidyfetch.core.strategies and the quote tag table."""

import pytest
from pydantic import ValidationError

from tidyfetch.core.models import (
    AdapterKind,
    Category,
    SeriesKind,
    StrategyDescriptor,
    Upstream,
)
from tidyfetch.core.quote_fields import QUOTE_COLUMNS, QUOTE_FIELDS, tag_string
from tidyfetch.core.strategies import (
    FX_WINDOW_DAYS,
    OHLCV_FIELDS,
    STRATEGY_TABLE,
    lookup,
)


class TestStrategyTable:
    @pytest.mark.parametrize("category", list(Category))
    def test_total_over_categories(self, category):
        assert lookup(category).category == category

    def test_read_only(self):
        with pytest.raises(TypeError):
            STRATEGY_TABLE[Category.STOCK_PRICES] = None

    def test_descriptors_frozen(self):
        with pytest.raises(ValidationError):
            lookup(Category.STOCK_PRICES).display_name = "other"

    def test_stock_prices(self):
        d = lookup(Category.STOCK_PRICES)
        assert d.adapter == AdapterKind.TIME_SERIES
        assert d.series == SeriesKind.PRICES
        assert d.columns == ("date", *OHLCV_FIELDS)
        assert d.window_limit_days is None

    @pytest.mark.parametrize("category", [Category.EXCHANGE_RATES, Category.METAL_PRICES])
    def test_fx_and_metals_have_window_ceiling(self, category):
        assert lookup(category).window_limit_days == FX_WINDOW_DAYS == 180

    def test_economic_data_filters_window(self):
        d = lookup(Category.ECONOMIC_DATA)
        assert d.filter_window is True
        assert d.source == Upstream.FRED
        assert d.columns == ("date", "price")

    def test_exchange_rate_column(self):
        assert lookup(Category.EXCHANGE_RATES).columns == ("date", "exchange.rate")

    def test_nested_categories(self):
        assert lookup(Category.FINANCIALS).columns == ("type", "annual", "quarter")
        assert lookup(Category.KEY_RATIOS).columns == ("section", "data")

    def test_marketplace_has_no_fixed_schema(self):
        assert lookup(Category.QUANDL).columns is None
        assert lookup(Category.QUANDL_DATATABLE).adapter == AdapterKind.MARKETPLACE_DATATABLE

    def test_window_limit_must_be_positive(self):
        with pytest.raises(ValidationError, match="window_limit_days"):
            StrategyDescriptor(
                category=Category.EXCHANGE_RATES,
                adapter=AdapterKind.TIME_SERIES,
                source=Upstream.YAHOO_FX,
                display_name="x",
                window_limit_days=0,
            )


class TestQuoteFields:
    def test_fifty_five_fields(self):
        assert len(QUOTE_FIELDS) == 55

    def test_tags_and_names_unique(self):
        assert len({f.tag for f in QUOTE_FIELDS}) == 55
        assert len({f.name for f in QUOTE_FIELDS}) == 55

    def test_columns_sorted(self):
        assert list(QUOTE_COLUMNS) == sorted(QUOTE_COLUMNS)

    def test_tag_string_in_request_order(self):
        tags = tag_string()
        assert tags.startswith("aa2a5b")
        assert tags == "".join(f.tag for f in QUOTE_FIELDS)

    def test_key_stats_columns(self):
        assert lookup(Category.KEY_STATS).columns == QUOTE_COLUMNS
