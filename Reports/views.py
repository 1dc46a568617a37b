from django.utils import timezone
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from Accounts.permissions import IsAdminRole
from Inventory.serializers import ItemSerializer
from snackshop.params import parse_date_param, parse_int_param

from . import reports


class ReportViewSet(viewsets.ViewSet):
    """
    Admin dashboards:
      - sales: ?start_date=&end_date= for the summary, ?days= for the daily series,
        ?year= for the monthly series, ?limit= for top lists
      - inventory: stock totals, low/out of stock items, category rollups
    """
    permission_classes = [IsAuthenticated, IsAdminRole]

    @action(detail=False, methods=["get"], url_path="sales")
    def sales(self, request):
        params = request.query_params
        start = parse_date_param(params.get("start_date"), "start_date")
        end = parse_date_param(params.get("end_date"), "end_date", end=True)
        days = parse_int_param(params.get("days"), "days", 30, maximum=366)
        year = parse_int_param(params.get("year"), "year", timezone.now().year, minimum=2000, maximum=9999)
        limit = parse_int_param(params.get("limit"), "limit", 10, maximum=100)
        return Response({
            "overall": reports.sales_summary(start, end),
            "daily": reports.daily_revenue(days),
            "monthly": reports.monthly_revenue(year),
            "top_customers": reports.top_customers(limit, start, end),
            "top_items_by_quantity": reports.top_items_by_quantity(limit, start, end),
            "top_items_by_revenue": reports.top_items_by_revenue(limit, start, end),
            "recent": reports.recent_orders(limit),
        })

    @action(detail=False, methods=["get"], url_path="inventory")
    def inventory(self, request):
        low = reports.low_stock_items()
        out = reports.out_of_stock_items()
        return Response({
            "overall": reports.inventory_stats(),
            "low_stock_count": low.count(),
            "out_of_stock_count": out.count(),
            "low_stock_items": ItemSerializer(low, many=True).data,
            "out_of_stock_items": ItemSerializer(out, many=True).data,
            "category_stats": reports.category_stats(),
        })
