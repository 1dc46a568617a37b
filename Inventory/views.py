import logging

from django.db.models import F, Q
from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from Accounts.permissions import is_admin

from . import stock
from .models import Item
from .permissions import IsAdminOrReadOnly
from .serializers import ItemSerializer, RestockSerializer, StockUpdateSerializer

logger = logging.getLogger(__name__)


class ItemViewSet(viewsets.ModelViewSet):
    """
    Catalog endpoints:
      - list/retrieve (anyone, active items; admins also see deactivated ones)
      - create/update/soft delete (admins only)
      - restock/update-stock (admins only), low-stock (authenticated), availability (anyone)
    Stock is decremented only by the Orders app through Inventory.stock.
    """
    queryset = Item.objects.all()
    serializer_class = ItemSerializer
    permission_classes = [IsAdminOrReadOnly]

    def get_permissions(self):
        if self.action == "low_stock":
            return [IsAuthenticated()]
        if self.action == "availability":
            return [AllowAny()]
        return super().get_permissions()

    # filters: ?search=, ?category=, ?is_active= (admins)
    def get_queryset(self):
        qs = super().get_queryset()
        params = self.request.query_params
        if is_admin(self.request.user):
            is_active = params.get("is_active", "")
            if is_active != "" and self.action == "list":
                qs = qs.filter(is_active=is_active.lower() == "true")
        else:
            qs = qs.filter(is_active=True)
        search = params.get("search")
        category = params.get("category")
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(description__icontains=search))
        if category:
            qs = qs.filter(category=category.lower())
        return qs

    def perform_create(self, serializer):
        item = serializer.save(created_by=self.request.user)
        logger.info("catalog: item %s created by %s", item.pk, self.request.user.pk)

    def destroy(self, request, *args, **kwargs):
        """Soft delete: clear the active flag, order history keeps its reference."""
        item = self.get_object()
        item.is_active = False
        item.save(update_fields=["is_active", "updated_at"])
        logger.info("catalog: item %s deactivated by %s", item.pk, request.user.pk)
        return Response({"detail": "Item deactivated"}, status=status.HTTP_200_OK)

    # ---- stock management actions for admins ----
    @action(detail=True, methods=["post"], url_path="restock")
    def restock(self, request, pk=None):
        """
        Add stock. Body: {"quantity": 24}
        """
        item = self.get_object()
        serializer = RestockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        stock.add_stock(item.pk, serializer.validated_data["quantity"])
        item.refresh_from_db()
        return Response(ItemSerializer(item).data)

    @action(detail=True, methods=["patch"], url_path="update-stock")
    def update_stock(self, request, pk=None):
        """
        Patch stock and/or threshold. Body: {"stock": 100, "threshold": 5}
        """
        item = self.get_object()
        serializer = StockUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        fields = ["updated_at"]
        if "stock" in data:
            item.quantity = data["stock"]
            fields.append("quantity")
        if "threshold" in data:
            item.low_stock_threshold = data["threshold"]
            fields.append("low_stock_threshold")
        item.save(update_fields=fields)
        logger.info("catalog: item %s stock set %s by %s", item.pk, dict(data), request.user.pk)
        return Response(ItemSerializer(item).data)

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        qs = Item.objects.filter(
            is_active=True, quantity__gt=0, quantity__lte=F("low_stock_threshold")
        ).order_by("quantity")
        return Response(ItemSerializer(qs, many=True).data)

    # convenience endpoint: current availability for ?item_id=
    @action(detail=False, methods=["get"], url_path="availability")
    def availability(self, request):
        item_id = request.query_params.get("item_id")
        if not item_id:
            raise ValidationError({"detail": "item_id query param required"})
        try:
            item_id = int(item_id)
        except ValueError:
            raise ValidationError({"item_id": "invalid integer"})
        item = get_object_or_404(Item, pk=item_id, is_active=True)
        return Response({
            "item_id": item.pk,
            "available": item.quantity,
            "price": item.price,
            "stock_status": item.stock_status,
        })
