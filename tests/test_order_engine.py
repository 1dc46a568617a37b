"""Tests for order placement."""

from decimal import Decimal

import pytest
from django.db import DatabaseError
from rest_framework.exceptions import NotAuthenticated, PermissionDenied, ValidationError

from Inventory import stock
from Inventory.models import Item
from Orders import services
from Orders.models import Order
from snackshop.exceptions import Conflict, InsufficientStock, ItemNotFound, PartialFailure

from .conftest import line

pytestmark = pytest.mark.django_db


class TestReferenceScenario:
    def test_chips_place_reject_cancel(self, admin, customer, chips):
        first = services.place_order(customer, [line(chips, 3)])
        assert first.total_amount == Decimal("60.00")
        assert first.status == Order.Status.CONFIRMED
        chips.refresh_from_db()
        assert chips.quantity == 7

        with pytest.raises(InsufficientStock) as exc:
            services.place_order(customer, [line(chips, 8)])
        assert exc.value.item_id == chips.pk
        assert exc.value.available == 7
        assert exc.value.requested == 8
        chips.refresh_from_db()
        assert chips.quantity == 7

        customer.refresh_from_db()
        assert customer.total_purchases == 1
        assert customer.total_spent == Decimal("60.00")

        services.set_order_status(admin, first.pk, Order.Status.CANCELLED)
        chips.refresh_from_db()
        customer.refresh_from_db()
        assert chips.quantity == 10
        assert customer.total_purchases == 0
        assert customer.total_spent == Decimal("0.00")


class TestPricing:
    def test_total_is_sum_of_line_totals(self, customer, chips, chocolate):
        order = services.place_order(customer, [line(chips, 2), line(chocolate, 3)])
        lines = list(order.lines.all())
        assert sum(l.unit_price * l.quantity for l in lines) == order.total_amount
        assert order.subtotal == Decimal("176.50")
        assert {l.item_name for l in lines} == {"Masala Chips", "Dark Chocolate"}

    def test_client_prices_are_ignored(self, customer, chips):
        order = services.place_order(
            customer, [line(chips, 2, unit_price="0.01", name="free chips")]
        )
        only = order.lines.get()
        assert only.unit_price == Decimal("20.00")
        assert only.item_name == "Masala Chips"
        assert order.total_amount == Decimal("40.00")

    def test_line_prices_are_snapshots(self, customer, chips):
        order = services.place_order(customer, [line(chips, 1)])
        Item.objects.filter(pk=chips.pk).update(price=Decimal("99.00"))
        order.refresh_from_db()
        assert order.lines.get().unit_price == Decimal("20.00")
        assert order.total_amount == Decimal("20.00")

    def test_discount_tax_and_profit(self, admin, customer, chips, settings):
        settings.ORDERS_TAX_PERCENTAGE = "10"
        order = services.place_order(admin, [line(chips, 5)], customer=customer.pk, discount_percentage=10)
        assert order.subtotal == Decimal("100.00")
        assert order.discount_amount == Decimal("10.00")
        assert order.tax_amount == Decimal("9.00")
        assert order.total_amount == Decimal("99.00")
        assert order.total_cost == Decimal("60.00")
        assert order.profit == Decimal("30.00")
        assert order.customer == customer
        assert order.created_by == admin

    def test_missing_cost_counts_as_zero(self, customer, chocolate):
        order = services.place_order(customer, [line(chocolate, 2)])
        assert order.total_cost == Decimal("0.00")
        assert order.profit == order.subtotal

    def test_compute_totals_empty(self):
        totals = services.compute_totals([])
        assert totals["subtotal"] == Decimal("0.00")
        assert totals["total_amount"] == Decimal("0.00")


class TestStockEffects:
    def test_stock_and_counters_move(self, customer, chips):
        services.place_order(customer, [line(chips, 4)])
        chips.refresh_from_db()
        assert chips.quantity == 6
        assert chips.sales == 4
        assert chips.revenue == Decimal("80.00")

    def test_repeated_item_lines_are_merged(self, customer, chips):
        order = services.place_order(customer, [line(chips, 2), line(chips, 3)])
        assert order.lines.count() == 1
        assert order.lines.get().quantity == 5
        chips.refresh_from_db()
        assert chips.quantity == 5

    def test_merged_quantity_is_checked_against_stock(self, customer, chips):
        with pytest.raises(InsufficientStock):
            services.place_order(customer, [line(chips, 6), line(chips, 6)])
        chips.refresh_from_db()
        assert chips.quantity == 10

    def test_failure_on_second_line_leaves_first_untouched(self, customer, chips, chocolate):
        with pytest.raises(InsufficientStock) as exc:
            services.place_order(customer, [line(chips, 2), line(chocolate, 5)])
        assert exc.value.item_id == chocolate.pk
        chips.refresh_from_db()
        chocolate.refresh_from_db()
        assert chips.quantity == 10
        assert chocolate.quantity == 4
        assert Order.objects.count() == 0

    def test_exact_stock_can_be_bought(self, customer, chocolate):
        services.place_order(customer, [line(chocolate, 4)])
        chocolate.refresh_from_db()
        assert chocolate.quantity == 0
        assert chocolate.stock_status == "out_of_stock"


class TestConcurrency:
    def test_lost_race_is_insufficient_stock(self, customer, other_customer, chips, monkeypatch):
        # second buyer validated against a snapshot taken before the first sale
        stale = Item.objects.get(pk=chips.pk)
        services.place_order(customer, [line(chips, 6)])
        monkeypatch.setattr(services, "_load_items", lambda ids: {stale.pk: stale})

        with pytest.raises(InsufficientStock) as exc:
            services.place_order(other_customer, [line(chips, 6)])
        assert exc.value.available == 4
        assert exc.value.requested == 6

        chips.refresh_from_db()
        other_customer.refresh_from_db()
        assert chips.quantity == 4
        assert Order.objects.count() == 1
        assert other_customer.total_purchases == 0

    def test_conditional_decrement(self, chips):
        assert stock.try_decrement_stock(chips.pk, 10) is True
        assert stock.try_decrement_stock(chips.pk, 1) is False
        chips.refresh_from_db()
        assert chips.quantity == 0

    def test_decrement_skips_inactive_item(self, chips):
        Item.objects.filter(pk=chips.pk).update(is_active=False)
        assert stock.try_decrement_stock(chips.pk, 1) is False


class TestWithoutTransactions:
    @pytest.fixture(autouse=True)
    def no_transactions(self, monkeypatch):
        monkeypatch.setattr(services, "_supports_transactions", lambda: False)

    def test_happy_path(self, customer, chips):
        order = services.place_order(customer, [line(chips, 2)])
        chips.refresh_from_db()
        customer.refresh_from_db()
        assert chips.quantity == 8
        assert customer.total_purchases == 1
        assert order.pk is not None

    def test_failure_before_any_mutation_is_clean(self, customer, chips, monkeypatch):
        monkeypatch.setattr(stock, "try_decrement_stock", lambda *a, **kw: False)
        with pytest.raises(InsufficientStock):
            services.place_order(customer, [line(chips, 2)])

    def test_failure_mid_way_is_partial_failure(self, customer, chips, chocolate, monkeypatch):
        real = stock.try_decrement_stock
        calls = []

        def flaky(item_id, amount, revenue=Decimal("0")):
            if calls:
                raise DatabaseError("connection lost")
            calls.append(item_id)
            return real(item_id, amount, revenue)

        monkeypatch.setattr(stock, "try_decrement_stock", flaky)
        with pytest.raises(PartialFailure) as exc:
            services.place_order(customer, [line(chips, 2), line(chocolate, 1)])
        assert exc.value.extra["applied"] == [{"item_id": chips.pk, "quantity": 2}]
        assert exc.value.status_code == 500
        assert Order.objects.count() == 0


class TestValidation:
    def test_empty_lines(self, customer):
        with pytest.raises(ValidationError):
            services.place_order(customer, [])

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True])
    def test_bad_quantity(self, customer, chips, quantity):
        with pytest.raises(ValidationError):
            services.place_order(customer, [{"item": chips.pk, "quantity": quantity}])

    def test_unknown_item(self, customer):
        with pytest.raises(ItemNotFound) as exc:
            services.place_order(customer, [{"item": 9999, "quantity": 1}])
        assert exc.value.item_id == 9999

    def test_inactive_item(self, customer, chips):
        Item.objects.filter(pk=chips.pk).update(is_active=False)
        with pytest.raises(ItemNotFound):
            services.place_order(customer, [line(chips, 1)])

    def test_bad_payment_method(self, customer, chips):
        with pytest.raises(ValidationError):
            services.place_order(customer, [line(chips, 1)], payment_method="barter")

    def test_notes_too_long(self, customer, chips):
        with pytest.raises(ValidationError):
            services.place_order(customer, [line(chips, 1)], notes="x" * 501)

    def test_anonymous_caller(self, chips):
        from django.contrib.auth.models import AnonymousUser

        with pytest.raises(NotAuthenticated):
            services.place_order(AnonymousUser(), [line(chips, 1)])


class TestAuthorization:
    def test_customer_cannot_order_for_someone_else(self, customer, other_customer, chips):
        with pytest.raises(PermissionDenied):
            services.place_order(customer, [line(chips, 1)], customer=other_customer.pk)

    def test_customer_can_name_themselves(self, customer, chips):
        order = services.place_order(customer, [line(chips, 1)], customer=customer.pk)
        assert order.customer == customer
        assert order.created_by is None

    def test_customer_cannot_apply_discount(self, customer, chips):
        with pytest.raises(PermissionDenied):
            services.place_order(customer, [line(chips, 1)], discount_percentage=50)

    def test_admin_orders_for_unknown_customer(self, admin, chips):
        with pytest.raises(ValidationError):
            services.place_order(admin, [line(chips, 1)], customer=424242)

    def test_admin_orders_for_inactive_customer(self, admin, customer, chips):
        customer.is_active = False
        customer.save()
        with pytest.raises(ValidationError):
            services.place_order(admin, [line(chips, 1)], customer=customer.pk)


class TestOrderNumbers:
    def test_format(self, customer, chips):
        order = services.place_order(customer, [line(chips, 1)])
        prefix, millis, suffix = order.order_number.split("-")
        assert prefix == "SALE"
        assert millis.isdigit()
        assert len(suffix) == 5

    def test_collision_is_retried(self, customer, chips, monkeypatch):
        numbers = iter(["SALE-1-AAAAA", "SALE-1-AAAAA", "SALE-2-BBBBB"])
        monkeypatch.setattr(services, "new_order_number", lambda: next(numbers))
        services.place_order(customer, [line(chips, 1)])
        second = services.place_order(customer, [line(chips, 1)])
        assert second.order_number == "SALE-2-BBBBB"

    def test_persistent_collision_is_conflict(self, customer, chips, monkeypatch):
        monkeypatch.setattr(services, "new_order_number", lambda: "SALE-1-AAAAA")
        services.place_order(customer, [line(chips, 1)])
        with pytest.raises(Conflict):
            services.place_order(customer, [line(chips, 1)])
        chips.refresh_from_db()
        assert chips.quantity == 9
