from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from Accounts.permissions import IsAdminRole

from . import status as site_status
from .serializers import SiteStatusHistorySerializer, SiteStatusSerializer, SiteStatusUpdateSerializer


class SiteStatusViewSet(viewsets.ViewSet):
    """
    Shop open/close switch:
      - GET status (anyone), PATCH status (admins)
      - GET status/history (admins, newest first)
    While closed only admins can place orders.
    """
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get_permissions(self):
        if self.action == "status" and self.request.method == "GET":
            return [AllowAny()]
        return super().get_permissions()

    @action(detail=False, methods=["get", "patch"], url_path="status")
    def status(self, request):
        """
        Body for PATCH: {"is_temporarily_closed": true, "reason": "exam week"}
        """
        if request.method == "GET":
            return Response(SiteStatusSerializer(site_status.current_status()).data)
        body = SiteStatusUpdateSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        closed = body.validated_data["is_temporarily_closed"]
        updated = site_status.set_site_status(request.user, closed, body.validated_data["reason"])
        data = SiteStatusSerializer(updated).data
        data["detail"] = "Shop has been temporarily closed" if closed else "Shop has been reopened"
        return Response(data)

    @action(detail=False, methods=["get"], url_path="status/history")
    def history(self, request):
        return Response(SiteStatusHistorySerializer(site_status.status_history(), many=True).data)
