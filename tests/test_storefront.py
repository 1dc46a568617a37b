"""Tests for the shop open/close switch."""

import pytest

from Orders import services
from Storefront import status as site_status
from Storefront.models import SiteStatus
from snackshop.exceptions import ShopClosed

from .conftest import line

pytestmark = pytest.mark.django_db

STATUS = "/api/v1/site/status/"
HISTORY = "/api/v1/site/status/history/"


class TestSwitch:
    def test_open_when_never_switched(self, db):
        current = site_status.current_status()
        assert current.is_temporarily_closed is False
        assert current.pk is None
        assert SiteStatus.objects.count() == 0

    def test_latest_switch_wins(self, admin):
        site_status.set_site_status(admin, True, "  exam week ")
        site_status.set_site_status(admin, False)
        current = site_status.current_status()
        assert current.is_temporarily_closed is False
        assert [s.reason for s in site_status.status_history()] == ["", "exam week"]


class TestOrdersWhileClosed:
    def test_customer_cannot_order(self, admin, customer, chips):
        site_status.set_site_status(admin, True, "restocking")
        with pytest.raises(ShopClosed) as exc:
            services.place_order(customer, [line(chips, 1)])
        assert exc.value.extra == {"reason": "restocking"}
        chips.refresh_from_db()
        assert chips.quantity == 10

    def test_admin_still_can(self, admin, customer, chips):
        site_status.set_site_status(admin, True, "restocking")
        order = services.place_order(admin, [line(chips, 1)], customer=customer.pk)
        assert order.customer == customer

    def test_reopened_shop_takes_orders(self, admin, customer, chips):
        site_status.set_site_status(admin, True)
        site_status.set_site_status(admin, False)
        assert services.place_order(customer, [line(chips, 1)]).pk is not None


class TestApi:
    def test_anyone_reads_status(self, api):
        r = api.get(STATUS)
        assert r.status_code == 200
        assert r.data["is_temporarily_closed"] is False

    def test_admin_closes_and_reopens(self, admin_api, api, admin):
        r = admin_api.patch(STATUS, {"is_temporarily_closed": True, "reason": "Diwali break"}, format="json")
        assert r.status_code == 200
        assert r.data["is_temporarily_closed"] is True
        assert r.data["detail"] == "Shop has been temporarily closed"
        assert api.get(STATUS).data["reason"] == "Diwali break"

        r = admin_api.patch(STATUS, {"is_temporarily_closed": False}, format="json")
        assert r.data["detail"] == "Shop has been reopened"

        history = admin_api.get(HISTORY).data
        assert [h["is_temporarily_closed"] for h in history] == [False, True]
        assert history[1]["updated_by"]["id"] == admin.pk

    @pytest.mark.parametrize("value", ["true", 1, None])
    def test_flag_must_be_boolean(self, admin_api, value):
        r = admin_api.patch(STATUS, {"is_temporarily_closed": value}, format="json")
        assert r.status_code == 400
        assert SiteStatus.objects.count() == 0

    def test_customers_cannot_switch_or_read_history(self, customer_api):
        assert customer_api.patch(STATUS, {"is_temporarily_closed": True}, format="json").status_code == 403
        assert customer_api.get(HISTORY).status_code == 403

    def test_closed_checkout_is_409(self, admin, customer_api, chips):
        site_status.set_site_status(admin, True, "closed for inventory")
        r = customer_api.post("/api/v1/orders/", {"lines": [line(chips, 1)]}, format="json")
        assert r.status_code == 409
        assert r.data["code"] == "shop_closed"
        assert r.data["reason"] == "closed for inventory"
