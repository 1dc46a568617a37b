"""
Read-only statistics over committed orders and the catalog.

Cancelled orders never count. Every function returns zeroed values or empty
lists on an empty dataset.
"""
from datetime import timedelta
from decimal import Decimal

from django.db.models import (
    Avg,
    Count,
    DecimalField,
    ExpressionWrapper,
    F,
    IntegerField,
    Max,
    Q,
    Sum,
    Value,
)
from django.db.models.functions import Coalesce, TruncDate, TruncMonth
from django.utils import timezone

from Inventory.models import Item
from Orders.models import Order, OrderLine

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
MONEY = DecimalField(max_digits=14, decimal_places=2)


def _dsum(expr):
    return Coalesce(Sum(expr), Value(ZERO), output_field=MONEY)


def _davg(expr):
    return Coalesce(Avg(expr), Value(ZERO), output_field=MONEY)


def _isum(expr):
    return Coalesce(Sum(expr), Value(0), output_field=IntegerField())


def _money(value):
    return Decimal(value or 0).quantize(CENT)


def live_orders(start=None, end=None, customer=None):
    qs = Order.objects.exclude(status=Order.Status.CANCELLED)
    if start:
        qs = qs.filter(created_at__gte=start)
    if end:
        qs = qs.filter(created_at__lte=end)
    if customer is not None:
        qs = qs.filter(customer=customer)
    return qs


def live_lines(start=None, end=None, customer=None):
    qs = OrderLine.objects.exclude(order__status=Order.Status.CANCELLED)
    if start:
        qs = qs.filter(order__created_at__gte=start)
    if end:
        qs = qs.filter(order__created_at__lte=end)
    if customer is not None:
        qs = qs.filter(order__customer=customer)
    return qs


def sales_summary(start=None, end=None):
    agg = live_orders(start, end).aggregate(
        total_sales=Count("id"),
        total_revenue=_dsum("total_amount"),
        total_profit=_dsum("profit"),
        average_order_value=_davg("total_amount"),
    )
    items = live_lines(start, end).aggregate(n=_isum("quantity"))["n"]
    return {
        "total_sales": agg["total_sales"],
        "total_revenue": _money(agg["total_revenue"]),
        "total_profit": _money(agg["total_profit"]),
        "total_items": items,
        "average_order_value": _money(agg["average_order_value"]),
    }


def top_customers(limit=10, start=None, end=None):
    rows = list(
        live_orders(start, end)
        .values("customer_id")
        .annotate(
            customer_name=Max("customer_name"),
            total_orders=Count("id"),
            total_spent=_dsum(F("total_amount") - F("refund_amount")),
        )
        .order_by("-total_spent", "customer_id")[:limit]
    )
    ids = [r["customer_id"] for r in rows]
    # line quantities in a separate query, joining would multiply order totals
    items = dict(
        live_lines(start, end)
        .filter(order__customer_id__in=ids)
        .values("order__customer_id")
        .annotate(n=_isum("quantity"))
        .values_list("order__customer_id", "n")
    )
    return [
        {
            "customer_id": r["customer_id"],
            "customer_name": r["customer_name"],
            "total_orders": r["total_orders"],
            "total_spent": _money(r["total_spent"]),
            "total_items": items.get(r["customer_id"], 0),
        }
        for r in rows
    ]


def _item_performance(lines, order_by, limit):
    rows = (
        lines.values("item_id")
        .annotate(
            item_name=Max("item_name"),
            quantity_sold=_isum("quantity"),
            revenue=_dsum("line_total"),
            order_count=Count("order", distinct=True),
            average_price=_davg("unit_price"),
        )
        .order_by(order_by, "item_id")
    )
    if limit:
        rows = rows[:limit]
    return [
        {
            "item_id": r["item_id"],
            "item_name": r["item_name"],
            "quantity_sold": r["quantity_sold"],
            "revenue": _money(r["revenue"]),
            "order_count": r["order_count"],
            "average_price": _money(r["average_price"]),
        }
        for r in rows
    ]


def top_items_by_quantity(limit=10, start=None, end=None):
    return _item_performance(live_lines(start, end), "-quantity_sold", limit)


def top_items_by_revenue(limit=10, start=None, end=None):
    return _item_performance(live_lines(start, end), "-revenue", limit)


def category_stats():
    """Per category: active item count and average price from the catalog, units and revenue from order lines."""
    catalog = {
        r["category"]: r
        for r in Item.objects.filter(is_active=True)
        .values("category")
        .annotate(item_count=Count("id"), average_price=_davg("price"))
    }
    sold = {
        r["item__category"]: r
        for r in live_lines()
        .values("item__category")
        .annotate(units_sold=_isum("quantity"), revenue=_dsum("line_total"))
    }
    result = []
    for category in sorted(set(catalog) | set(sold)):
        c = catalog.get(category, {})
        s = sold.get(category, {})
        result.append({
            "category": category,
            "item_count": c.get("item_count", 0),
            "units_sold": s.get("units_sold", 0),
            "revenue": _money(s.get("revenue")),
            "average_price": _money(c.get("average_price")),
        })
    result.sort(key=lambda r: (-r["revenue"], r["category"]))
    return result


def daily_revenue(days=30, now=None):
    since = (now or timezone.now()) - timedelta(days=days)
    rows = (
        live_orders(start=since)
        .annotate(day=TruncDate("created_at"))
        .values("day")
        .annotate(total_sales=Count("id"), total_revenue=_dsum("total_amount"), total_profit=_dsum("profit"))
        .order_by("day")
    )
    return [
        {
            "date": r["day"].isoformat(),
            "total_sales": r["total_sales"],
            "total_revenue": _money(r["total_revenue"]),
            "total_profit": _money(r["total_profit"]),
        }
        for r in rows
    ]


def monthly_revenue(year):
    rows = (
        live_orders()
        .filter(created_at__year=year)
        .annotate(month=TruncMonth("created_at"))
        .values("month")
        .annotate(total_sales=Count("id"), total_revenue=_dsum("total_amount"), total_profit=_dsum("profit"))
        .order_by("month")
    )
    return [
        {
            "month": r["month"].month,
            "total_sales": r["total_sales"],
            "total_revenue": _money(r["total_revenue"]),
            "total_profit": _money(r["total_profit"]),
        }
        for r in rows
    ]


def low_stock_items():
    return Item.objects.filter(is_active=True, quantity__gt=0, quantity__lte=F("low_stock_threshold")).order_by("quantity")


def out_of_stock_items():
    return Item.objects.filter(is_active=True, quantity=0).order_by("-updated_at")


def inventory_stats():
    stock_value = ExpressionWrapper(F("price") * F("quantity"), output_field=MONEY)
    agg = Item.objects.filter(is_active=True).aggregate(
        total_items=Count("id"),
        total_quantity=_isum("quantity"),
        total_value=_dsum(stock_value),
        total_revenue=_dsum("revenue"),
        low_stock_items=Count("id", filter=Q(quantity__gt=0, quantity__lte=F("low_stock_threshold"))),
        out_of_stock_items=Count("id", filter=Q(quantity=0)),
    )
    agg["total_value"] = _money(agg["total_value"])
    agg["total_revenue"] = _money(agg["total_revenue"])
    return agg


def customer_summary(customer):
    agg = live_orders(customer=customer).aggregate(
        total_orders=Count("id"),
        total_spent=_dsum(F("total_amount") - F("refund_amount")),
        average_order_value=_davg("total_amount"),
    )
    return {
        "total_orders": agg["total_orders"],
        "total_spent": _money(agg["total_spent"]),
        "total_items": live_lines(customer=customer).aggregate(n=_isum("quantity"))["n"],
        "average_order_value": _money(agg["average_order_value"]),
    }


def favorite_items(customer, limit=10):
    rows = (
        live_lines(customer=customer)
        .values("item_id")
        .annotate(
            item_name=Max("item_name"),
            total_quantity=_isum("quantity"),
            total_spent=_dsum("line_total"),
            purchase_count=Count("order", distinct=True),
            last_purchased=Max("order__created_at"),
        )
        .order_by("-total_quantity", "item_id")[:limit]
    )
    return [dict(r, total_spent=_money(r["total_spent"])) for r in rows]


def recent_orders(limit=10):
    return list(
        live_orders()
        .order_by("-created_at", "-id")
        .values("id", "order_number", "customer_name", "total_amount", "status", "created_at")[:limit]
    )
