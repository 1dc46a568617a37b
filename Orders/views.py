from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from Accounts.permissions import IsAdminRole, is_admin
from snackshop.params import parse_date_param, parse_int_param

from . import services
from .models import Order
from .serializers import (
    CustomerOrderSerializer,
    OrderSerializer,
    PlaceOrderSerializer,
    RefundSerializer,
    StatusChangeSerializer,
)


class OrderViewSet(mixins.CreateModelMixin,
                   mixins.ListModelMixin,
                   mixins.RetrieveModelMixin,
                   mixins.DestroyModelMixin,
                   viewsets.GenericViewSet):
    """
    Order endpoints:
      - create (any authenticated account; checkout for itself, admins for anyone)
      - list/retrieve (customers see their own orders, admins all)
      - status/refund/destroy (admins only, destroy only for cancelled orders)
    """
    queryset = Order.objects.select_related("customer").prefetch_related("lines")
    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        if self.action in ("set_status", "refund", "destroy"):
            return [IsAuthenticated(), IsAdminRole()]
        return super().get_permissions()

    def get_serializer_class(self):
        if is_admin(self.request.user):
            return OrderSerializer
        return CustomerOrderSerializer

    # filters: ?customer= (admins), ?status=, ?payment_status=, ?start_date=, ?end_date=, ?min_amount=, ?max_amount=
    def get_queryset(self):
        qs = super().get_queryset()
        user = self.request.user
        params = self.request.query_params
        if not is_admin(user):
            qs = qs.filter(customer_id=user.pk)
        elif params.get("customer"):
            qs = qs.filter(customer_id=parse_int_param(params["customer"], "customer", None))
        if self.action != "list":
            return qs

        if params.get("status"):
            qs = qs.filter(status=params["status"])
        if params.get("payment_status"):
            qs = qs.filter(payment_status=params["payment_status"])
        start = parse_date_param(params.get("start_date"), "start_date")
        end = parse_date_param(params.get("end_date"), "end_date", end=True)
        if start:
            qs = qs.filter(created_at__gte=start)
        if end:
            qs = qs.filter(created_at__lte=end)
        try:
            if params.get("min_amount"):
                qs = qs.filter(total_amount__gte=float(params["min_amount"]))
            if params.get("max_amount"):
                qs = qs.filter(total_amount__lte=float(params["max_amount"]))
        except ValueError:
            raise ValidationError({"detail": "min_amount/max_amount must be numbers"})
        return qs

    def create(self, request, *args, **kwargs):
        """
        Checkout. Body: {"lines": [{"item": 3, "quantity": 2}], "payment_method": "cash"}
        """
        body = PlaceOrderSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        data = body.validated_data
        order = services.place_order(
            request.user,
            [{"item": line["item"], "quantity": line["quantity"]} for line in data["lines"]],
            customer=data.get("customer"),
            payment_method=data["payment_method"],
            notes=data.get("notes", ""),
            location=data.get("location"),
            discount_percentage=data.get("discount_percentage", 0),
        )
        order = Order.objects.prefetch_related("lines").get(pk=order.pk)
        return Response(self.get_serializer(order).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, *args, **kwargs):
        services.delete_order(request.user, kwargs["pk"])
        return Response({"detail": "Order deleted"}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post", "put"], url_path="status")
    def set_status(self, request, pk=None):
        """
        Body: {"status": "cancelled", "reason": "out of delivery range"}
        """
        body = StatusChangeSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        order = services.set_order_status(
            request.user, pk, body.validated_data["status"], body.validated_data.get("reason", "")
        )
        return Response(self.get_serializer(order).data)

    @action(detail=True, methods=["post"], url_path="refund")
    def refund(self, request, pk=None):
        """
        Body: {"amount": 20, "reason": "stale chips"}
        """
        body = RefundSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        order = services.refund_order(request.user, pk, body.validated_data["amount"], body.validated_data["reason"])
        return Response(self.get_serializer(order).data)
