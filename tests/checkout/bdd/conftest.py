"""Shared BDD fixtures and step definitions for checkout."""

import pytest
from checkout.errors import CheckoutError
from checkout.order.order import Order
from protean import current_domain
from pytest_bdd import given, parsers, then


@pytest.fixture()
def products():
    """Products created by the scenario, keyed by title."""
    return {}


@pytest.fixture()
def outcome():
    return {"quote": None, "order_id": None, "exc": None}


@given(parsers.cfparse("shipping costs {fee:f} and is free from {threshold:f}"))
def shipping_rules(shipping_settings, fee, threshold):
    shipping_settings(default_fee=fee, free_above_subtotal=threshold)


@given(parsers.cfparse('a product "{title}" priced at {price:f} with {level:d} in stock'))
def a_product(make_product, products, title, price, level):
    products[title] = make_product(title=title, price=price, stock_level=level)


@then(parsers.cfparse('{level:d} of "{title}" remain in stock'))
def stock_remaining(stock, products, level, title):
    assert stock.level(str(products[title].id)) == level


@then("no order exists")
def no_order():
    assert current_domain.repository_for(Order)._dao.query.all().total == 0


@then(parsers.cfparse('the order is rejected with "{message}"'))
def order_rejected(outcome, message):
    assert isinstance(outcome["exc"], CheckoutError)
    assert outcome["exc"].message == message
