"""
Account aggregate bookkeeping.

Every change to `Account.total_purchases` / `Account.total_spent` goes through
`_adjust`, a single UPDATE with F() expressions clamped at zero, so order
placement, cancellation and refunds cannot drift apart.
"""
import logging
from decimal import Decimal

from django.db.models import DecimalField, F, IntegerField, Sum, Value
from django.db.models.functions import Coalesce, Greatest

from .models import Account

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def _adjust(account_id, orders_delta=0, spent_delta=ZERO):
    updated = Account.objects.filter(pk=account_id).update(
        total_purchases=Greatest(
            F("total_purchases") + Value(orders_delta),
            Value(0),
            output_field=IntegerField(),
        ),
        total_spent=Greatest(
            F("total_spent") + Value(Decimal(spent_delta)),
            Value(ZERO),
            output_field=DecimalField(max_digits=12, decimal_places=2),
        ),
    )
    if not updated:
        logger.warning("ledger update skipped, account %s does not exist", account_id)
    return bool(updated)


def record_order(account_id, amount):
    """A new order was placed: +1 order, +amount spent."""
    logger.info("ledger: account=%s order +1 spent +%s", account_id, amount)
    return _adjust(account_id, 1, amount)


def reverse_order(account_id, amount):
    """An order was cancelled: -1 order, -amount spent (never below zero)."""
    logger.info("ledger: account=%s order -1 spent -%s", account_id, amount)
    return _adjust(account_id, -1, -Decimal(amount))


def record_refund(account_id, amount):
    logger.info("ledger: account=%s refund spent -%s", account_id, amount)
    return _adjust(account_id, 0, -Decimal(amount))


def recompute_account_totals(account, save=True):
    """
    Derive the aggregates from order history: count of non-cancelled orders and
    the sum of their totals net of refunds. Returns (total_purchases, total_spent).
    """
    # imported here, Orders depends on Accounts
    from Orders.models import Order

    qs = Order.objects.filter(customer=account).exclude(status=Order.Status.CANCELLED)
    agg = qs.aggregate(
        spent=Coalesce(
            Sum(F("total_amount") - F("refund_amount")),
            Value(ZERO),
            output_field=DecimalField(max_digits=12, decimal_places=2),
        ),
    )
    purchases = qs.count()
    spent = max(Decimal(agg["spent"]), ZERO).quantize(Decimal("0.01"))
    if save and (account.total_purchases != purchases or account.total_spent != spent):
        logger.info(
            "ledger: reconciled account=%s purchases %s->%s spent %s->%s",
            account.pk, account.total_purchases, purchases, account.total_spent, spent,
        )
        Account.objects.filter(pk=account.pk).update(total_purchases=purchases, total_spent=spent)
        account.total_purchases = purchases
        account.total_spent = spent
    return purchases, spent
