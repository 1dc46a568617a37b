"""Read and switch the shop's open/closed state."""
import logging

from .models import SiteStatus

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50


def current_status():
    """Latest switch, or an unsaved open status when the shop was never closed."""
    return SiteStatus.objects.select_related("updated_by").first() or SiteStatus()


def set_site_status(actor, is_temporarily_closed, reason=""):
    status = SiteStatus.objects.create(
        is_temporarily_closed=is_temporarily_closed,
        reason=(reason or "").strip(),
        updated_by=actor,
    )
    logger.info(
        "site %s by %s: %s", "CLOSED" if is_temporarily_closed else "OPEN", actor.pk, status.reason or "-"
    )
    return status


def status_history(limit=HISTORY_LIMIT):
    return SiteStatus.objects.select_related("updated_by")[:limit]
