import logging

from django.db.models import Q
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from Orders.serializers import CustomerOrderSerializer, OrderSerializer
from Reports import reports
from snackshop.params import parse_date_param

from .models import Account
from .permissions import IsAdminRole, IsSelfOrAdmin, is_admin
from .serializers import AccountSerializer, BulkAccountActionSerializer

logger = logging.getLogger(__name__)


class AccountViewSet(mixins.DestroyModelMixin, viewsets.ReadOnlyModelViewSet):
    """
    Account endpoints (aggregates are maintained by the order engine):
      - list (admins; ?role=, ?search=)
      - retrieve, purchase-history, favorite-items (the account itself or admins)
      - me (current account)
      - destroy = deactivate, activate, bulk-action (admins, never on their own account)
    """
    queryset = Account.objects.all()
    serializer_class = AccountSerializer
    permission_classes = [IsSelfOrAdmin]

    def get_permissions(self):
        if self.action in ("list", "destroy", "activate", "bulk_action"):
            return [IsAuthenticated(), IsAdminRole()]
        if self.action == "me":
            return [IsAuthenticated()]
        return super().get_permissions()

    def get_queryset(self):
        qs = super().get_queryset()
        if self.action != "list":
            return qs
        role = self.request.query_params.get("role")
        search = self.request.query_params.get("search")
        if role:
            qs = qs.filter(role=role)
        if search:
            qs = qs.filter(
                Q(username__icontains=search) | Q(email__icontains=search)
                | Q(first_name__icontains=search) | Q(last_name__icontains=search)
            )
        return qs

    def destroy(self, request, *args, **kwargs):
        """Soft delete: the account keeps its order history but can no longer log in."""
        account = self.get_object()
        if account.pk == request.user.pk:
            raise ValidationError({"detail": "Cannot deactivate your own account"})
        account.is_active = False
        account.save(update_fields=["is_active"])
        logger.info("account %s deactivated by %s", account.pk, request.user.pk)
        return Response({"detail": "Account deactivated"}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="activate")
    def activate(self, request, pk=None):
        account = self.get_object()
        account.is_active = True
        account.save(update_fields=["is_active"])
        logger.info("account %s activated by %s", account.pk, request.user.pk)
        return Response(AccountSerializer(account).data)

    @action(detail=False, methods=["post"], url_path="bulk-action")
    def bulk_action(self, request):
        """
        Body: {"action": "deactivate", "account_ids": [4, 7]}
        "delete" is accepted and deactivates, accounts are never hard deleted.
        """
        body = BulkAccountActionSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        ids = body.validated_data["account_ids"]
        if request.user.pk in ids:
            raise ValidationError({"account_ids": "Cannot perform bulk actions on your own account"})

        active = body.validated_data["action"] == "activate"
        qs = Account.objects.filter(pk__in=ids)
        matched = qs.count()
        modified = qs.exclude(is_active=active).update(is_active=active)
        logger.info("bulk %s by %s: matched=%s modified=%s", body.validated_data["action"], request.user.pk, matched, modified)
        return Response({
            "detail": "Accounts activated" if active else "Accounts deactivated",
            "matched_count": matched,
            "modified_count": modified,
        })

    @action(detail=False, methods=["get"], url_path="me")
    def me(self, request):
        return Response(AccountSerializer(request.user).data)

    @action(detail=True, methods=["get"], url_path="purchase-history")
    def purchase_history(self, request, pk=None):
        """Paginated orders of the account plus a summary. Filters: ?status=, ?start_date=, ?end_date="""
        account = self.get_object()
        params = request.query_params
        orders = account.orders.prefetch_related("lines")
        if params.get("status"):
            orders = orders.filter(status=params["status"])
        start = parse_date_param(params.get("start_date"), "start_date")
        end = parse_date_param(params.get("end_date"), "end_date", end=True)
        if start:
            orders = orders.filter(created_at__gte=start)
        if end:
            orders = orders.filter(created_at__lte=end)

        serializer_class = OrderSerializer if is_admin(request.user) else CustomerOrderSerializer
        page = self.paginate_queryset(orders)
        data = serializer_class(page, many=True).data
        response = self.get_paginated_response(data)
        response.data["stats"] = reports.customer_summary(account)
        return response

    @action(detail=True, methods=["get"], url_path="favorite-items")
    def favorite_items(self, request, pk=None):
        account = self.get_object()
        return Response(reports.favorite_items(account))
