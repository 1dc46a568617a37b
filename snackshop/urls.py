from django.contrib import admin
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from Accounts.views import AccountViewSet
from Inventory.views import ItemViewSet
from Orders.views import OrderViewSet
from Reports.views import ReportViewSet
from Storefront.views import SiteStatusViewSet

router = DefaultRouter()
router.register(r"items", ItemViewSet, basename="item")
router.register(r"orders", OrderViewSet, basename="order")
router.register(r"accounts", AccountViewSet, basename="account")
router.register(r"reports", ReportViewSet, basename="report")
router.register(r"site", SiteStatusViewSet, basename="site")

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/v1/", include(router.urls)),
    path("api-auth/", include("rest_framework.urls")),
]
