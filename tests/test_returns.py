"""Tests for the returns summary helpers."""

from steps.returns import PRODUCTS, summarize_returns
from steps.store_list import store_points


def test_summarize_returns_sums_each_product():
    sales = [
        {"sales_name": "Ani", "total_returns": {"stock_roll_on": 2, "stock_20_ml": "3"}},
        {"sales_name": "Budi", "total_returns": {"stock_roll_on": 1, "stock_30_ml": 4}},
    ]
    assert summarize_returns(sales) == {"stock_roll_on": 3, "stock_20_ml": 3, "stock_30_ml": 4}


def test_summarize_returns_ignores_bad_rows():
    sales = [None, {}, {"total_returns": {"stock_roll_on": -5, "stock_20_ml": "x"}}]
    assert summarize_returns(sales) == {product: 0 for product in PRODUCTS}


def test_store_points_skip_unparseable_locations():
    stores = [{"loc": "(-6.2, 106.8)"}, {"loc": "nowhere"}, {"name": "no loc"}]
    assert store_points(stores) == [(stores[0], (-6.2, 106.8))]
