"""Tests for order status transitions, refunds and deletion."""

from decimal import Decimal

import pytest
from rest_framework.exceptions import PermissionDenied, ValidationError

from Orders import lifecycle, services
from Orders.models import Order
from snackshop.exceptions import InvalidTransition, OrderNotFound

from .conftest import line

pytestmark = pytest.mark.django_db

S = Order.Status


@pytest.fixture
def order(customer, chips, chocolate):
    # 3 x 20 + 2 x 45.50 = 151
    return services.place_order(customer, [line(chips, 3), line(chocolate, 2)])


class TestTransitionRules:
    @pytest.mark.parametrize("src,dst", [
        (S.PENDING, S.CONFIRMED),
        (S.PENDING, S.CANCELLED),
        (S.CONFIRMED, S.DELIVERED),
        (S.CONFIRMED, S.CANCELLED),
    ])
    def test_allowed(self, src, dst):
        assert lifecycle.can_transition(src, dst)

    @pytest.mark.parametrize("src,dst", [
        (S.DELIVERED, S.CANCELLED),
        (S.CANCELLED, S.CONFIRMED),
        (S.CONFIRMED, S.PENDING),
        (S.PENDING, S.DELIVERED),
    ])
    def test_rejected(self, src, dst):
        assert not lifecycle.can_transition(src, dst)


class TestCancel:
    def test_restores_stock_counters_and_aggregates(self, admin, customer, chips, chocolate, order):
        assert order.total_amount == Decimal("151.00")
        services.set_order_status(admin, order.pk, S.CANCELLED, "customer left campus")

        chips.refresh_from_db()
        chocolate.refresh_from_db()
        customer.refresh_from_db()
        order.refresh_from_db()
        assert (chips.quantity, chocolate.quantity) == (10, 4)
        assert (chips.sales, chocolate.sales) == (0, 0)
        assert chips.revenue == Decimal("0.00")
        assert customer.total_purchases == 0
        assert customer.total_spent == Decimal("0.00")
        assert order.status == S.CANCELLED
        assert order.cancelled_at is not None
        assert order.cancellation_reason == "customer left campus"
        assert "Cancelled: customer left campus" in order.notes

    def test_second_cancel_is_noop(self, admin, chips, order):
        services.cancel_order(admin, order.pk)
        again = services.cancel_order(admin, order.pk)
        assert again.status == S.CANCELLED
        chips.refresh_from_db()
        assert chips.quantity == 10

    def test_default_reason(self, admin, order):
        cancelled = services.cancel_order(admin, order.pk)
        assert cancelled.cancellation_reason == "Cancelled by admin"

    def test_only_this_order_is_reversed(self, admin, customer, chips):
        first = services.place_order(customer, [line(chips, 2)])
        services.place_order(customer, [line(chips, 3)])
        services.cancel_order(admin, first.pk)
        customer.refresh_from_db()
        chips.refresh_from_db()
        assert customer.total_purchases == 1
        assert customer.total_spent == Decimal("60.00")
        assert chips.quantity == 7

    def test_delivered_order_cannot_be_cancelled(self, admin, order):
        services.set_order_status(admin, order.pk, S.DELIVERED)
        with pytest.raises(InvalidTransition):
            services.cancel_order(admin, order.pk)

    def test_cancel_after_partial_refund_reverses_net_amount(self, admin, customer, order):
        services.refund_order(admin, order.pk, "51", "stale")
        services.cancel_order(admin, order.pk)
        customer.refresh_from_db()
        assert customer.total_spent == Decimal("0.00")
        assert customer.total_purchases == 0

    def test_customer_cannot_cancel(self, customer, order):
        with pytest.raises(PermissionDenied):
            services.cancel_order(customer, order.pk)


class TestDeliver:
    def test_marks_payment_completed(self, admin, chips, order):
        delivered = services.set_order_status(admin, order.pk, S.DELIVERED, "handed over")
        assert delivered.status == S.DELIVERED
        assert delivered.payment_status == Order.PaymentStatus.COMPLETED
        assert delivered.completed_at is not None
        assert delivered.notes.endswith("handed over")
        chips.refresh_from_db()
        assert chips.quantity == 7

    def test_refunded_order_keeps_refunded_payment_status(self, admin, order):
        services.refund_order(admin, order.pk, "20", "melted")
        delivered = services.set_order_status(admin, order.pk, S.DELIVERED)
        assert delivered.status == S.DELIVERED
        assert delivered.payment_status == Order.PaymentStatus.REFUNDED
        assert delivered.refund_amount == Decimal("20.00")
        assert delivered.completed_at is not None

    def test_same_status_is_noop(self, admin, order):
        same = services.set_order_status(admin, order.pk, S.CONFIRMED)
        assert same.updated_at == order.updated_at

    def test_unknown_status(self, admin, order):
        with pytest.raises(ValidationError):
            services.set_order_status(admin, order.pk, "shipped")

    def test_unknown_order(self, admin):
        with pytest.raises(OrderNotFound):
            services.set_order_status(admin, 31337, S.DELIVERED)

    def test_pending_can_be_confirmed(self, admin, order):
        Order.objects.filter(pk=order.pk).update(status=S.PENDING)
        confirmed = services.set_order_status(admin, order.pk, S.CONFIRMED, "paid at counter")
        assert confirmed.status == S.CONFIRMED
        assert "paid at counter" in confirmed.notes


class TestRefund:
    def test_refund_lowers_spent_but_not_stock(self, admin, customer, chips, order):
        refunded = services.refund_order(admin, order.pk, Decimal("20"), "soggy chips")
        assert refunded.payment_status == Order.PaymentStatus.REFUNDED
        assert refunded.refund_amount == Decimal("20.00")
        assert refunded.refund_reason == "soggy chips"
        assert "Refund: soggy chips" in refunded.notes
        assert refunded.status == S.CONFIRMED

        customer.refresh_from_db()
        chips.refresh_from_db()
        assert customer.total_spent == Decimal("131.00")
        assert customer.total_purchases == 1
        assert chips.quantity == 7

    def test_refunds_accumulate_up_to_total(self, admin, order):
        services.refund_order(admin, order.pk, "100", "first")
        services.refund_order(admin, order.pk, "51", "second")
        with pytest.raises(ValidationError):
            services.refund_order(admin, order.pk, "0.01", "third")

    def test_refund_above_total(self, admin, order):
        with pytest.raises(ValidationError):
            services.refund_order(admin, order.pk, "151.01", "too much")

    @pytest.mark.parametrize("amount", ["0", "-5", "abc", "0.004", "NaN", "Infinity"])
    def test_refund_amount_must_be_positive(self, admin, order, amount):
        with pytest.raises(ValidationError):
            services.refund_order(admin, order.pk, amount, "reason")

    def test_sub_cent_refund_leaves_order_untouched(self, admin, order):
        with pytest.raises(ValidationError):
            services.refund_order(admin, order.pk, "0.004", "rounding")
        order.refresh_from_db()
        assert order.refund_amount == Decimal("0.00")
        assert order.payment_status == Order.PaymentStatus.PENDING
        assert "Refund" not in order.notes

    def test_reason_required(self, admin, order):
        with pytest.raises(ValidationError):
            services.refund_order(admin, order.pk, "10", "   ")

    def test_cancelled_order_cannot_be_refunded(self, admin, order):
        services.cancel_order(admin, order.pk)
        with pytest.raises(InvalidTransition):
            services.refund_order(admin, order.pk, "10", "late")

    def test_customer_cannot_refund(self, customer, order):
        with pytest.raises(PermissionDenied):
            services.refund_order(customer, order.pk, "10", "please")


class TestDelete:
    def test_only_cancelled_orders(self, admin, order):
        with pytest.raises(InvalidTransition):
            services.delete_order(admin, order.pk)
        services.cancel_order(admin, order.pk)
        services.delete_order(admin, order.pk)
        assert not Order.objects.filter(pk=order.pk).exists()


class TestGetOrder:
    def test_customer_sees_only_own(self, customer, other_customer, order):
        assert services.get_order(order.pk, customer) == order
        with pytest.raises(OrderNotFound):
            services.get_order(order.pk, other_customer)
