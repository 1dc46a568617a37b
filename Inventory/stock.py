"""
Stock mutation primitives.

Each function is one conditional UPDATE; the database re-checks the quantity,
so two concurrent buyers of the last units cannot both succeed.
"""
import logging
from decimal import Decimal

from django.db.models import DecimalField, F, IntegerField, Value
from django.db.models.functions import Greatest

from .models import Item

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def try_decrement_stock(item_id, amount, revenue=ZERO):
    """
    Decrement quantity by `amount` only if at least `amount` is on hand and the
    item is active, bumping the sales counters in the same statement.
    Returns True when the row was updated.
    """
    if amount <= 0:
        raise ValueError("amount must be positive")
    updated = Item.objects.filter(pk=item_id, is_active=True, quantity__gte=amount).update(
        quantity=F("quantity") - amount,
        sales=F("sales") + amount,
        revenue=F("revenue") + Value(Decimal(revenue)),
    )
    if updated:
        logger.info("stock: item=%s -%s", item_id, amount)
    else:
        logger.warning("stock: decrement of item=%s by %s rejected", item_id, amount)
    return bool(updated)


def restore_stock(item_id, amount, revenue=ZERO):
    """Put `amount` units back (order cancelled) and roll back the sales counters."""
    updated = Item.objects.filter(pk=item_id).update(
        quantity=F("quantity") + amount,
        sales=Greatest(F("sales") - Value(amount), Value(0), output_field=IntegerField()),
        revenue=Greatest(
            F("revenue") - Value(Decimal(revenue)),
            Value(ZERO),
            output_field=DecimalField(max_digits=12, decimal_places=2),
        ),
    )
    logger.info("stock: item=%s +%s (restore)", item_id, amount)
    return bool(updated)


def add_stock(item_id, amount):
    """Restock; does not touch sales counters."""
    if amount <= 0:
        raise ValueError("amount must be positive")
    updated = Item.objects.filter(pk=item_id).update(quantity=F("quantity") + amount)
    logger.info("stock: item=%s +%s (restock)", item_id, amount)
    return bool(updated)
