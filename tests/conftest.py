"""Pytest fixtures for snackshop tests."""

from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from Accounts.models import Account
from Inventory.models import Item


@pytest.fixture
def admin(db):
    return Account.objects.create_user(
        username="admin", password="secret123", role=Account.Role.ADMIN, first_name="Shop", last_name="Admin"
    )


@pytest.fixture
def customer(db):
    return Account.objects.create_user(username="ravi", password="secret123", first_name="Ravi")


@pytest.fixture
def other_customer(db):
    return Account.objects.create_user(username="meera", password="secret123", first_name="Meera")


@pytest.fixture
def chips(admin):
    """The reference item: 10 in stock at 20 each."""
    return Item.objects.create(
        name="Masala Chips",
        category=Item.Category.CHIPS,
        price=Decimal("20.00"),
        cost_price=Decimal("12.00"),
        quantity=10,
        low_stock_threshold=3,
        created_by=admin,
    )


@pytest.fixture
def chocolate(admin):
    return Item.objects.create(
        name="Dark Chocolate",
        category=Item.Category.CHOCOLATE,
        price=Decimal("45.50"),
        quantity=4,
        created_by=admin,
    )


@pytest.fixture
def api():
    return APIClient()


@pytest.fixture
def admin_api(admin):
    client = APIClient()
    client.force_authenticate(user=admin)
    return client


@pytest.fixture
def customer_api(customer):
    client = APIClient()
    client.force_authenticate(user=customer)
    return client


def line(item, quantity, **extra):
    return dict({"item": item.pk, "quantity": quantity}, **extra)
