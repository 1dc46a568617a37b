"""
Order engine.

`place_order` validates every requested line against the current catalog
before anything is written, then persists the order, decrements stock with
conditional updates and books the customer aggregates. Status changes and
refunds go through `set_order_status` / `refund_order`. All stock and
aggregate mutations are delegated to Inventory.stock and Accounts.ledger.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError, IntegrityError, connection, transaction
from django.utils import timezone
from rest_framework.exceptions import NotAuthenticated, PermissionDenied, ValidationError

from Accounts import ledger
from Accounts.permissions import is_admin
from Inventory import stock
from Inventory.models import Item
from snackshop.exceptions import (
    Conflict,
    InsufficientStock,
    InvalidTransition,
    ItemNotFound,
    OrderNotFound,
    PartialFailure,
    ShopClosed,
)
from Storefront import status as site_status

from .lifecycle import validate_transition
from .models import Order, OrderLine
from .numbering import new_order_number

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
MAX_NOTES_LENGTH = 500
MAX_REASON_LENGTH = 200


def _money(value):
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _to_decimal(value, field):
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError({field: "invalid number"})


def _supports_transactions():
    return connection.features.supports_transactions


def _tax_percentage():
    return _to_decimal(getattr(settings, "ORDERS_TAX_PERCENTAGE", "0") or "0", "tax_percentage")


# ---- input handling ----

def normalize_lines(lines):
    """
    Turn [{"item": id, "quantity": n}, ...] into [(item_id, quantity), ...],
    merging repeated items. Unknown extra keys (name, price) are ignored.
    """
    if not lines:
        raise ValidationError({"lines": "Items are required and must not be empty"})
    merged = {}
    for idx, line in enumerate(lines):
        try:
            item_id = int(line["item"])
            quantity = line["quantity"]
        except (KeyError, TypeError, ValueError):
            raise ValidationError({"lines": f"line {idx}: valid item id and quantity required"})
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError({"lines": f"line {idx}: quantity must be a positive integer"})
        merged[item_id] = merged.get(item_id, 0) + quantity
    return list(merged.items())


def _resolve_customer(actor, customer):
    if not getattr(actor, "is_authenticated", False):
        raise NotAuthenticated()
    if customer is None:
        return actor
    customer_id = getattr(customer, "pk", customer)
    if str(customer_id) == str(actor.pk):
        return actor
    if not is_admin(actor):
        raise PermissionDenied("Customers may only place orders for themselves")
    Account = get_user_model()
    try:
        resolved = Account.objects.get(pk=customer_id)
    except (Account.DoesNotExist, ValueError, TypeError):
        raise ValidationError({"customer": f"Customer {customer_id} not found"})
    if not resolved.is_active:
        raise ValidationError({"customer": "Customer account is inactive"})
    return resolved


def _load_items(item_ids):
    return Item.objects.in_bulk(item_ids)


# ---- pricing ----

def price_line(item, quantity):
    """Snapshot of the item's server-side price for one order line."""
    unit_price = _money(item.price)
    return {
        "item": item,
        "item_name": item.name,
        "quantity": quantity,
        "unit_price": unit_price,
        "cost_price": _money(item.cost_price or ZERO),
        "line_total": _money(unit_price * quantity),
    }


def compute_totals(priced_lines, discount_percentage=ZERO, tax_percentage=ZERO):
    """
    subtotal = sum of line totals
    total    = subtotal - discount + tax (tax applies after discount)
    profit   = (subtotal - discount) - cost; never part of the customer total
    """
    subtotal = _money(sum((line["line_total"] for line in priced_lines), ZERO))
    discount_amount = _money(subtotal * Decimal(discount_percentage) / 100)
    taxable = subtotal - discount_amount
    tax_amount = _money(taxable * Decimal(tax_percentage) / 100)
    total_cost = _money(sum((line["cost_price"] * line["quantity"] for line in priced_lines), ZERO))
    return {
        "subtotal": subtotal,
        "discount_amount": discount_amount,
        "tax_amount": tax_amount,
        "total_amount": _money(taxable + tax_amount),
        "total_cost": total_cost,
        "profit": _money(taxable - total_cost),
    }


# ---- placement ----

def place_order(actor, lines, customer=None, payment_method=Order.PaymentMethod.CASH, notes="",
                location=None, discount_percentage=ZERO):
    """
    Validate, price and persist an order for `customer` (defaults to the actor).
    Raises ValidationError, PermissionDenied, ShopClosed, ItemNotFound or InsufficientStock
    without side effects; PartialFailure only when the database cannot roll back.
    """
    customer = _resolve_customer(actor, customer)
    if not is_admin(actor):
        current = site_status.current_status()
        if current.is_temporarily_closed:
            raise ShopClosed(reason=current.reason)

    if payment_method not in Order.PaymentMethod.values:
        raise ValidationError({"payment_method": "Invalid payment method"})
    notes = (notes or "").strip()
    if len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError({"notes": f"Notes must be less than {MAX_NOTES_LENGTH} characters"})
    discount_percentage = _to_decimal(discount_percentage or 0, "discount_percentage")
    if not ZERO <= discount_percentage <= 100:
        raise ValidationError({"discount_percentage": "Discount percentage must be between 0 and 100"})
    if discount_percentage and not is_admin(actor):
        raise PermissionDenied("Only admins may apply discounts")

    requested = normalize_lines(lines)

    # validation phase: nothing is written until every line passes
    items = _load_items([item_id for item_id, _ in requested])
    priced = []
    for item_id, quantity in requested:
        item = items.get(item_id)
        if item is None or not item.is_active:
            raise ItemNotFound(item_id)
        if item.quantity < quantity:
            logger.warning("order rejected: item=%s available=%s requested=%s", item_id, item.quantity, quantity)
            raise InsufficientStock(item_id, item.quantity, quantity, item_name=item.name)
        priced.append(price_line(item, quantity))

    tax_percentage = _tax_percentage()
    totals = compute_totals(priced, discount_percentage, tax_percentage)
    order = Order(
        customer=customer,
        customer_name=customer.display_name,
        created_by=actor if is_admin(actor) else None,
        discount_percentage=discount_percentage,
        tax_percentage=tax_percentage,
        status=Order.Status.CONFIRMED,
        payment_method=payment_method,
        payment_status=Order.PaymentStatus.PENDING,
        notes=notes,
        location=location or {},
        **totals,
    )

    if _supports_transactions():
        with transaction.atomic():
            _save_order(order, priced)
            _decrement_all(priced)
            ledger.record_order(customer.pk, order.total_amount)
    else:
        _commit_without_transaction(order, priced)

    logger.info(
        "order %s placed: customer=%s lines=%s total=%s",
        order.order_number, customer.pk, len(priced), order.total_amount,
    )
    return order


def _save_order(order, priced):
    """Insert order and lines, regenerating the order number on a collision."""
    retries = getattr(settings, "ORDERS_NUMBER_RETRIES", 3)
    for attempt in range(retries):
        order.order_number = new_order_number()
        try:
            with transaction.atomic():
                order.save(force_insert=True)
        except IntegrityError:
            if not Order.objects.filter(order_number=order.order_number).exists():
                raise
            logger.warning("order number collision on %s (attempt %s)", order.order_number, attempt + 1)
            order.pk = None
            continue
        break
    else:
        raise Conflict("Could not allocate a unique order number, please retry")

    OrderLine.objects.bulk_create([
        OrderLine(
            order=order,
            item=line["item"],
            item_name=line["item_name"],
            quantity=line["quantity"],
            unit_price=line["unit_price"],
            cost_price=line["cost_price"],
            line_total=line["line_total"],
        )
        for line in priced
    ])
    return order


def _decrement_all(priced, applied=None):
    for line in priced:
        item = line["item"]
        if not stock.try_decrement_stock(item.pk, line["quantity"], line["line_total"]):
            # lost a race since validation; report what is on hand now
            available = Item.objects.filter(pk=item.pk).values_list("quantity", flat=True).first() or 0
            raise InsufficientStock(item.pk, available, line["quantity"], item_name=item.name)
        if applied is not None:
            applied.append((item.pk, line["quantity"]))


def _commit_without_transaction(order, priced):
    """
    Without transactions: decrement stock first, then write the order. A failure
    after the first decrement cannot be rolled back and is raised as PartialFailure.
    """
    applied = []
    try:
        _decrement_all(priced, applied)
        _save_order(order, priced)
        ledger.record_order(order.customer_id, order.total_amount)
    except (InsufficientStock, DatabaseError, Conflict) as exc:
        if not applied:
            raise
        logger.error(
            "partial failure placing order for customer=%s: applied=%s error=%s",
            order.customer_id, applied, exc,
        )
        raise PartialFailure(applied=[{"item_id": i, "quantity": q} for i, q in applied])


# ---- lifecycle ----

def get_order(order_id, actor=None):
    """Fetch an order; customers only ever see their own."""
    qs = Order.objects.all()
    if actor is not None and not is_admin(actor):
        qs = qs.filter(customer_id=actor.pk)
    try:
        return qs.get(pk=order_id)
    except (Order.DoesNotExist, ValueError, TypeError):
        raise OrderNotFound(f"Order {order_id} not found")


def _locked_order(order_id):
    try:
        return Order.objects.select_for_update().get(pk=order_id)
    except (Order.DoesNotExist, ValueError, TypeError):
        raise OrderNotFound(f"Order {order_id} not found")


def _require_admin(actor):
    if not getattr(actor, "is_authenticated", False):
        raise NotAuthenticated()
    if not is_admin(actor):
        raise PermissionDenied("Admin access required")


def _clean_reason(reason, required=False):
    reason = (reason or "").strip()
    if required and not reason:
        raise ValidationError({"reason": "Reason is required"})
    if len(reason) > MAX_REASON_LENGTH:
        raise ValidationError({"reason": f"Reason must be less than {MAX_REASON_LENGTH} characters"})
    return reason


def set_order_status(actor, order_id, new_status, reason=""):
    """
    Admin status change. Setting the current status again returns the order
    untouched, so repeated cancels never restore stock twice.
    """
    _require_admin(actor)
    if new_status not in Order.Status.values:
        raise ValidationError({"status": "Invalid status"})
    reason = _clean_reason(reason)

    with transaction.atomic():
        order = _locked_order(order_id)
        if order.status == new_status:
            return order
        validate_transition(order, new_status)
        if new_status == Order.Status.CANCELLED:
            return _cancel(order, reason or "Cancelled by admin")
        if new_status == Order.Status.DELIVERED:
            order.status = Order.Status.DELIVERED
            if not order.refund_amount:
                order.payment_status = Order.PaymentStatus.COMPLETED
            order.completed_at = timezone.now()
        else:
            order.status = new_status
        if reason:
            order.append_note(reason)
        order.save()

    logger.info("order %s -> %s by %s", order.order_number, new_status, actor.pk)
    return order


def _cancel(order, reason):
    previous = order.status
    now = timezone.now()
    order.append_note(f"Cancelled: {reason}")
    # conditional move out of a live state; only one caller can win it
    moved = Order.objects.filter(
        pk=order.pk, status__in=[Order.Status.PENDING, Order.Status.CONFIRMED]
    ).update(
        status=Order.Status.CANCELLED,
        cancelled_at=now,
        cancellation_reason=reason,
        notes=order.notes,
        updated_at=now,
    )
    order.refresh_from_db()
    if not moved:
        if order.status == Order.Status.CANCELLED:
            return order
        raise InvalidTransition(f"Order {order.order_number} cannot transition from '{order.status}' to 'cancelled'")

    for line in order.lines.all():
        stock.restore_stock(line.item_id, line.quantity, line.line_total)
    ledger.reverse_order(order.customer_id, order.net_amount)
    logger.info("order %s cancelled (was %s): %s", order.order_number, previous, reason)
    return order


def cancel_order(actor, order_id, reason=""):
    return set_order_status(actor, order_id, Order.Status.CANCELLED, reason)


def refund_order(actor, order_id, amount, reason):
    """
    Record a refund against an order. Lowers the customer's spent aggregate by
    `amount`; stock is untouched, refunding is not cancelling.
    """
    _require_admin(actor)
    amount = _to_decimal(amount, "amount")
    # amounts below one cent round to zero and are rejected like zero
    if not amount.is_finite() or _money(amount) <= 0:
        raise ValidationError({"amount": "Refund amount must be a positive number"})
    amount = _money(amount)
    reason = _clean_reason(reason, required=True)

    with transaction.atomic():
        order = _locked_order(order_id)
        if order.status == Order.Status.CANCELLED:
            raise InvalidTransition(f"Order {order.order_number} is cancelled and cannot be refunded")
        remaining = order.total_amount - order.refund_amount
        if amount > remaining:
            raise ValidationError({"amount": f"Refund amount cannot exceed sale total (refundable: {remaining})"})
        order.refund_amount = order.refund_amount + amount
        order.payment_status = Order.PaymentStatus.REFUNDED
        order.refund_reason = reason
        order.append_note(f"Refund: {reason}")
        order.save()
        ledger.record_refund(order.customer_id, amount)

    logger.info("order %s refunded %s by %s", order.order_number, amount, actor.pk)
    return order


def delete_order(actor, order_id):
    """Hard delete, permitted for cancelled orders only."""
    _require_admin(actor)
    with transaction.atomic():
        order = _locked_order(order_id)
        if order.status != Order.Status.CANCELLED:
            raise InvalidTransition("Only cancelled orders can be deleted")
        number = order.order_number
        order.delete()
    logger.info("order %s deleted by %s", number, actor.pk)
