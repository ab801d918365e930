# Overview: Pytest coverage for effective stock limits and shortfall detection.

import pytest

from storefront.models import Category, Product
from storefront.services import stock_governor
from storefront.services.stock_governor import UNLIMITED


def _product(stock=None, category_id=None, pid=1):
    return Product(id=pid, name=f"P{pid}", stock=stock, category_id=category_id)


def _category(current=None, cid=1):
    return Category(id=cid, name=f"C{cid}", max_stock=current, current_stock=current)


class TestEffectiveLimit:
    def test_category_pool_binds_and_held_is_subtracted(self):
        """stock 5, pool 3, 2 already held -> 1 more."""
        limit = stock_governor.effective_limit(_product(5, 1), _category(3), held=2)
        assert limit == 1

    def test_editing_ignores_held_quantity(self):
        limit = stock_governor.effective_limit(_product(5, 1), _category(3), held=2, editing=True)
        assert limit == 3

    def test_unlimited_when_no_ceilings(self):
        assert stock_governor.effective_limit(_product(None), None, held=50) == UNLIMITED

    def test_never_negative(self):
        assert stock_governor.effective_limit(_product(2), None, held=10) == 0

    def test_category_held_across_products(self):
        """The pool is shared: units of other products in the category count too."""
        limit = stock_governor.effective_limit(
            _product(10, 1), _category(4), held=1, category_held=3,
        )
        assert limit == 1

    @pytest.mark.parametrize("stock,pool,held", [
        (5, 3, 0), (5, 3, 2), (None, 7, 1), (4, None, 0), (0, 9, 0), (3, 0, 0),
    ])
    def test_limit_never_exceeds_either_ceiling(self, stock, pool, held):
        product, category = _product(stock, 1), _category(pool)
        limit = stock_governor.effective_limit(product, category, held=held)
        ceiling = min(
            stock if stock is not None else UNLIMITED,
            pool if pool is not None else UNLIMITED,
        )
        assert limit <= ceiling


class TestOutOfStock:
    def test_sold_out_product_even_with_empty_cart(self):
        assert stock_governor.is_out_of_stock(_product(0), None) is True

    def test_sold_out_category_pool(self):
        assert stock_governor.is_out_of_stock(_product(None, 1), _category(0)) is True

    def test_limited_by_category(self):
        assert stock_governor.is_limited_by_category(_product(5, 1), _category(3)) is True
        assert stock_governor.is_limited_by_category(_product(2, 1), _category(3)) is False


class TestShortfalls:
    def test_product_and_category_shortfalls(self):
        pool = _category(3)
        a = _product(2, 1, pid=1)
        b = _product(None, 1, pid=2)
        products = {1: a, 2: b}

        shortfalls = stock_governor.find_shortfalls(products, {1: pool}, {1: 3, 2: 1})

        assert [(s.scope, s.id, s.requested, s.available) for s in shortfalls] == [
            ("product", 1, 3, 2),
            ("category", 1, 4, 3),
        ]

    def test_within_limits_is_empty_and_repeatable(self):
        products = {1: _product(5, 1)}
        categories = {1: _category(3)}
        requested = {1: 3}

        assert stock_governor.find_shortfalls(products, categories, requested) == []
        assert stock_governor.find_shortfalls(products, categories, requested) == []

    def test_aggregate_requested(self):
        assert stock_governor.aggregate_requested([(1, 2), (2, 1), (1, 3)]) == {1: 5, 2: 1}
