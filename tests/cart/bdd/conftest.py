"""Shared BDD fixtures and Given steps for the checkout flow."""

import pytest
from catalogue.catalog import find_package
from fake_backend import USER_ID
from pytest_bdd import given, parsers


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def outcome():
    """Container for the payment verification result."""
    return {"result": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a signed-in RGUKT student", target_fixture="user")
def rgukt_student(host_user):
    return host_user


@given(parsers.cfparse('the fest offers event "{event_id}" with fee {fee:d}'))
def offered_event(backend, event_id, fee):
    backend.add_event(event_id, fee=fee)


@given(parsers.cfparse('the fest offers workshop "{workshop_id}" with price {price:d}'))
def offered_workshop(backend, workshop_id, price):
    backend.add_workshop(workshop_id, price=price)


@given(parsers.cfparse('the server cart holds event "{event_id}"'))
def server_cart_event(backend, event_id):
    backend.put_in_cart(USER_ID, event_ids=[event_id])


@given(parsers.cfparse('the server cart holds workshop "{workshop_id}"'))
def server_cart_workshop(backend, workshop_id):
    backend.put_in_cart(USER_ID, workshop_ids=[workshop_id])


@given(parsers.cfparse('the server has package "{package_id}" selected'))
def server_package(backend, package_id):
    backend.set_combo(USER_ID, find_package(package_id).to_combo().to_wire())


@given("the cart page has been opened")
def cart_page_opened(screen, user):
    screen.set_user(user)


@given(parsers.cfparse('order "{order_id}" for {amount:d} has been paid'))
def paid_order(backend, order_id, amount):
    backend.create_order(order_id, amount, user_id=USER_ID, status="completed")
