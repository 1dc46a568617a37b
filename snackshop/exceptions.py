"""
Error types shared by the Accounts, Inventory, Orders, Reports and Storefront apps.

Business-rule failures are DRF APIExceptions so they render as structured
responses; storage outages are translated by `api_exception_handler` into a
generic retryable 503 and constraint violations into a 409 Conflict.
"""
import logging

from django.db import IntegrityError, InterfaceError, OperationalError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(APIException):
    """Base for errors that carry extra fields next to `detail`."""

    extra = None

    def __init__(self, detail=None, code=None, **extra):
        super().__init__(detail=detail, code=code)
        self.extra = extra


class ItemNotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Item not found."
    default_code = "not_found"

    def __init__(self, item_id):
        super().__init__(detail=f"Item with ID {item_id} not found", item_id=item_id)
        self.item_id = item_id


class OrderNotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Order not found."
    default_code = "not_found"


class InsufficientStock(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Insufficient stock."
    default_code = "insufficient_stock"

    def __init__(self, item_id, available, requested, item_name=None):
        label = item_name or f"item {item_id}"
        super().__init__(
            detail=f"Insufficient stock for {label}. Available: {available}, Requested: {requested}",
            item_id=item_id,
            available=available,
            requested=requested,
        )
        self.item_id = item_id
        self.available = available
        self.requested = requested


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state."
    default_code = "conflict"


class InvalidTransition(Conflict):
    default_detail = "Order status transition not allowed."
    default_code = "invalid_transition"


class ShopClosed(Conflict):
    default_detail = "The shop is temporarily closed."
    default_code = "shop_closed"


class StorageUnavailable(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Service temporarily unavailable, please try again."
    default_code = "storage_unavailable"


class PartialFailure(ServiceError):
    """
    Some, but not all, stock mutations of an order were applied.
    Needs manual reconciliation (see `manage.py reconcile_aggregates`).
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Order could not be completed and requires reconciliation."
    default_code = "partial_failure"


def api_exception_handler(exc, context):
    """
    Map transient storage errors to StorageUnavailable and constraint
    violations to Conflict, then let DRF render. Other database errors are
    programming faults and propagate as 500s.
    """
    view = context.get("view")
    view_name = view.__class__.__name__ if view else "?"
    if isinstance(exc, (OperationalError, InterfaceError)):
        logger.error("storage error in %s: %s", view_name, exc)
        exc = StorageUnavailable()
    elif isinstance(exc, IntegrityError):
        logger.warning("constraint violation in %s: %s", view_name, exc)
        exc = Conflict()

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(response.data, dict) and "detail" in response.data:
        detail = response.data["detail"]
        response.data["code"] = getattr(detail, "code", None) or getattr(exc, "default_code", None)
        if isinstance(exc, ServiceError) and exc.extra:
            response.data.update(exc.extra)
    return response
