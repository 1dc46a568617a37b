"""Tests for account aggregate bookkeeping."""

from decimal import Decimal

import pytest

from Accounts import ledger
from Orders import services

from .conftest import line

pytestmark = pytest.mark.django_db


class TestLedger:
    def test_record_and_reverse(self, customer):
        ledger.record_order(customer.pk, Decimal("60.00"))
        ledger.record_order(customer.pk, Decimal("15.50"))
        customer.refresh_from_db()
        assert customer.total_purchases == 2
        assert customer.total_spent == Decimal("75.50")

        ledger.reverse_order(customer.pk, Decimal("15.50"))
        customer.refresh_from_db()
        assert customer.total_purchases == 1
        assert customer.total_spent == Decimal("60.00")

    def test_clamped_at_zero(self, customer):
        ledger.reverse_order(customer.pk, Decimal("10"))
        ledger.record_refund(customer.pk, Decimal("10"))
        customer.refresh_from_db()
        assert customer.total_purchases == 0
        assert customer.total_spent == Decimal("0.00")

    def test_unknown_account(self, db):
        assert ledger.record_order(987654, Decimal("1")) is False


class TestAggregatesMatchHistory:
    def test_n_orders_totalling_a(self, admin, customer, chips, chocolate):
        orders = [
            services.place_order(customer, [line(chips, 1)]),
            services.place_order(customer, [line(chocolate, 2)]),
            services.place_order(customer, [line(chips, 2), line(chocolate, 1)]),
        ]
        customer.refresh_from_db()
        assert customer.total_purchases == 3
        assert customer.total_spent == sum(o.total_amount for o in orders)

        services.cancel_order(admin, orders[1].pk)
        customer.refresh_from_db()
        assert customer.total_purchases == 2
        assert customer.total_spent == orders[0].total_amount + orders[2].total_amount
        assert ledger.recompute_account_totals(customer, save=False) == (
            customer.total_purchases, customer.total_spent,
        )

    def test_recompute_repairs_drift(self, customer, chips):
        services.place_order(customer, [line(chips, 2)])
        type(customer).objects.filter(pk=customer.pk).update(total_purchases=7, total_spent=Decimal("1.00"))
        customer.refresh_from_db()
        assert ledger.recompute_account_totals(customer) == (1, Decimal("40.00"))
        customer.refresh_from_db()
        assert customer.total_purchases == 1
        assert customer.total_spent == Decimal("40.00")
